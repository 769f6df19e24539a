"""
Consume Invitation Use Case

Marks an invitation as used once the supplier's submission is complete.
"""

import logging

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

from .dtos import ConsumeInvitationResponse

logger = logging.getLogger(__name__)

_TERMINAL_DENIALS = {
    TokenState.consumed: (ErrorCode.ALREADY_CONSUMED, "This invitation has already been used"),
    TokenState.revoked: (ErrorCode.REVOKED, "This invitation has been revoked by an administrator"),
    TokenState.expired: (ErrorCode.TOKEN_EXPIRED, "This invitation has expired"),
    TokenState.failed: (ErrorCode.DELIVERY_FAILED, "This invitation could not be delivered"),
}


class ConsumeInvitationUseCase:
    """
    Use case for consuming an invitation.

    Business Rules:
    - Any non-terminal invitation can be consumed, exactly once
    - Past expires_at the invitation is expired instead (TOKEN_EXPIRED)
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, invitation_id: str) -> Result[ConsumeInvitationResponse]:
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

            denial = _TERMINAL_DENIALS.get(invitation.token_state)
            if denial:
                code, message = denial
                return Return.err(
                    make_error(code, message, {"invitation_id": invitation.id})
                )

            now = utcnow()
            expired = now > invitation.expires_at
            if expired:
                changes = {"token_state": TokenState.expired, "updated_at": now}
            else:
                changes = {
                    "token_state": TokenState.consumed,
                    "consumed_at": now,
                    "updated_at": now,
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
                            "Invitation changed while consuming, please retry",
                        )
                    )
                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(f"Failed to consume invitation {invitation_id}: {exc}")
                return Return.err(store_unavailable())

        if expired:
            return Return.err(
                make_error(
                    ErrorCode.TOKEN_EXPIRED,
                    "This invitation has expired",
                    {"invitation_id": invitation_id},
                )
            )

        logger.info(f"Invitation {invitation_id} consumed")

        return Return.ok(
            ConsumeInvitationResponse(
                invitation_id=invitation_id,
                token_state=TokenState.consumed.value,
                consumed_at=now.isoformat(),
            )
        )
