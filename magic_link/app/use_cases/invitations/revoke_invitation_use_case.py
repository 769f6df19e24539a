"""
Revoke Invitation Use Case

Administrative revocation of a supplier magic link.
"""

import logging
from typing import Optional

from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.base import utcnow
from magic_link.domain.entities import TokenState
from magic_link.domain.errors import (
    ErrorCode,
    StoreUnavailableError,
    make_error,
    store_unavailable,
)
from magic_link.domain.state_machine import is_terminal
from magic_link.libs.result import Result, Return

from .dtos import RevokeInvitationResponse

logger = logging.getLogger(__name__)


class RevokeInvitationUseCase:
    """
    Use case for revoking supplier invitations.

    Business Rules:
    - Any non-terminal invitation can be revoked
    - Takes effect immediately, whatever the token's signature and expiry
    - Consumed invitations cannot be revoked (ALREADY_CONSUMED)
    - Revoking twice fails with ALREADY_REVOKED
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, invitation_id: str, revoked_by: str, reason: Optional[str] = None
    ) -> Result[RevokeInvitationResponse]:
        """
        Execute revoke invitation use case.

        Args:
            invitation_id: Invitation to revoke
            revoked_by: Identifier of the administrator
            reason: Optional free-text reason

        Returns:
            Result with RevokeInvitationResponse DTO, or Error
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
                        "Cannot revoke an invitation that has already been used",
                    )
                )

            if invitation.token_state == TokenState.revoked:
                return Return.err(
                    make_error(
                        ErrorCode.ALREADY_REVOKED,
                        "This invitation has already been revoked",
                    )
                )

            if is_terminal(invitation.token_state):
                return Return.err(
                    make_error(
                        ErrorCode.INVALID_STATE_TRANSITION,
                        f"Cannot revoke an invitation in state {invitation.token_state.value}",
                        {"token_state": invitation.token_state.value},
                    )
                )

            now = utcnow()
            try:
                updated = await self.uow.invitations.conditional_update(
                    invitation.id,
                    invitation.token_state,
                    invitation.validation_attempts,
                    {
                        "token_state": TokenState.revoked,
                        "revoked_at": now,
                        "revoked_by": revoked_by,
                        "revocation_reason": reason,
                        "updated_at": now,
                    },
                )
                if not updated:
                    return Return.err(
                        make_error(
                            ErrorCode.CONCURRENT_UPDATE,
                            "Invitation changed while revoking, please retry",
                        )
                    )
                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(f"Failed to revoke invitation {invitation_id}: {exc}")
                return Return.err(store_unavailable())

        logger.info(f"Invitation {invitation_id} revoked by {revoked_by}")

        return Return.ok(
            RevokeInvitationResponse(
                invitation_id=invitation_id,
                status=TokenState.revoked.value,
                revoked_at=now.isoformat(),
            )
        )
