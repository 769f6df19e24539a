"""
Create Invitation Use Case

Issues a magic-link token for a supplier and persists its record.
"""

import logging
from typing import Optional

from magic_link.app.services.token_issuer import TokenIssuer, build_invitation_link
from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.entities import SupplierInvitation, TokenState
from magic_link.domain.errors import StoreUnavailableError, store_unavailable
from magic_link.libs.result import Result, Return

from .dtos import CreateInvitationResponse

logger = logging.getLogger(__name__)


class CreateInvitationUseCase:
    """
    Use case for inviting a supplier through a magic link.

    Business Rules:
    - Email must be syntactically valid (INVALID_INPUT otherwise)
    - Expiry between 1 and 30 days, 7 by default
    - Record starts in state created with zero validation attempts
    - Only the token hash is persisted; the token is returned once
    """

    def __init__(self, uow: UnitOfWork, issuer: TokenIssuer, link_base_url: str):
        self.uow = uow
        self.issuer = issuer
        self.link_base_url = link_base_url

    async def execute(
        self,
        email: str,
        company_name: Optional[str] = None,
        contact_name: Optional[str] = None,
        requester_id: Optional[str] = None,
        requester_name: Optional[str] = None,
        department_code: Optional[str] = None,
        cost_center: Optional[str] = None,
        expiry_days: Optional[int] = None,
    ) -> Result[CreateInvitationResponse]:
        """
        Execute create invitation use case.

        Returns:
            Result with CreateInvitationResponse DTO, or Error
        """
        issued_result = self.issuer.issue(
            email=email,
            company_name=company_name,
            contact_name=contact_name,
            requester_id=requester_id,
            requester_name=requester_name,
            department_code=department_code,
            cost_center=cost_center,
            expiry_days=expiry_days,
        )
        if issued_result.is_err():
            return Return.err(issued_result.error)
        issued = issued_result.value

        async with self.uow:
            invitation = SupplierInvitation(
                id=issued.invitation_id,
                token_hash=issued.token_hash,
                token_id=issued.token_id,
                token_state=TokenState.created,
                email=issued.claims.supplier_email,
                company_name=company_name,
                contact_name=contact_name,
                requester_id=requester_id,
                requester_name=requester_name,
                department_code=department_code,
                cost_center=cost_center,
                issued_at=issued.issued_at_datetime,
                expires_at=issued.expires_at_datetime,
                validation_attempts=0,
            )

            try:
                await self.uow.invitations.create(invitation)
                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(f"Failed to persist invitation {issued.invitation_id}: {exc}")
                return Return.err(store_unavailable())

        logger.info(f"Created invitation {issued.invitation_id}")

        return Return.ok(
            CreateInvitationResponse(
                invitation_id=issued.invitation_id,
                token=issued.token,
                invitation_link=build_invitation_link(issued.token, self.link_base_url),
                token_state=TokenState.created.value,
                issued_at=issued.issued_at_datetime.isoformat(),
                expires_at=issued.expires_at_datetime.isoformat(),
            )
        )
