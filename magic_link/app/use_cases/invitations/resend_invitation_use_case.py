"""
Resend Invitation Use Case

Regenerates the magic link of an existing invitation.
"""

import logging
from typing import Optional

from magic_link.app.services.token_issuer import TokenIssuer, build_invitation_link
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.base import utcnow
from magic_link.domain.entities import TokenState
from magic_link.domain.errors import (
    ErrorCode,
    StoreUnavailableError,
    make_error,
    store_unavailable,
)
from magic_link.libs.result import Result, Return

from .dtos import ResendInvitationResponse

logger = logging.getLogger(__name__)


class ResendInvitationUseCase:
    """
    Use case for reissuing an invitation link.

    Business Rules:
    - Same invitation id, brand-new token and token hash
    - The previous link stops working (its hash no longer matches)
    - Validation counters and lifecycle timestamps are reset
    - State goes back to created
    - Consumed invitations cannot be reissued (ALREADY_CONSUMED)
    """

    def __init__(self, uow: UnitOfWork, issuer: TokenIssuer, link_base_url: str):
        self.uow = uow
        self.issuer = issuer
        self.link_base_url = link_base_url

    async def execute(
        self, invitation_id: str, expiry_days: Optional[int] = None
    ) -> Result[ResendInvitationResponse]:
        """
        Execute resend invitation use case.

        Args:
            invitation_id: Invitation to reissue
            expiry_days: Lifetime of the new link (1-30, default from settings)

        Returns:
            Result with ResendInvitationResponse DTO, or Error
        """
        async with self.uow:
            try:
                invitation = await self.uow.invitations.get_by_id(invitation_id)
            except StoreUnavailableError as exc:
                logger.error(f"Failed to load invitation {invitation_id}: {exc}")
                return Return.err(store_unavailable())

            if invitation is None:
                return Return.err(
                    make_error(ErrorCode.INVITATION_NOT_FOUND, "Invitation not found")
                )

            if invitation.token_state == TokenState.consumed:
                return Return.err(
                    make_error(
                        ErrorCode.ALREADY_CONSUMED,
                        "Cannot resend an invitation that has already been used",
                    )
                )

            issued_result = self.issuer.issue(
                email=invitation.email,
                company_name=invitation.company_name,
                contact_name=invitation.contact_name,
                requester_id=invitation.requester_id,
                requester_name=invitation.requester_name,
                department_code=invitation.department_code,
                cost_center=invitation.cost_center,
                expiry_days=expiry_days,
                invitation_id=invitation.id,
            )
            if issued_result.is_err():
                return Return.err(issued_result.error)
            issued = issued_result.value

            reissue_count = invitation.reissue_count + 1
            changes = {
                "token_hash": issued.token_hash,
                "token_id": issued.token_id,
                "token_state": TokenState.created,
                "issued_at": issued.issued_at_datetime,
                "expires_at": issued.expires_at_datetime,
                "validation_attempts": 0,
                "last_validation_at": None,
                "last_validation_ip": None,
                "validated_at": None,
                "sent_at": None,
                "delivered_at": None,
                "opened_at": None,
                "failed_at": None,
                "failure_reason": None,
                "revoked_at": None,
                "revoked_by": None,
                "revocation_reason": None,
                "reissue_count": reissue_count,
                "updated_at": utcnow(),
            }

            try:
                updated = await self.uow.invitations.conditional_update(
                    invitation.id,
                    invitation.token_state,
                    invitation.validation_attempts,
                    changes,
                )
                if not updated:
                    return Return.err(
                        make_error(
                            ErrorCode.CONCURRENT_UPDATE,
                            "Invitation changed while resending, please retry",
                        )
                    )
                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(f"Failed to reissue invitation {invitation_id}: {exc}")
                return Return.err(store_unavailable())

        logger.info(f"Invitation {invitation_id} reissued ({reissue_count})")

        return Return.ok(
            ResendInvitationResponse(
                invitation_id=invitation_id,
                status="resent",
                token=issued.token,
                invitation_link=build_invitation_link(issued.token, self.link_base_url),
                expires_at=issued.expires_at_datetime.isoformat(),
                reissue_count=reissue_count,
            )
        )
