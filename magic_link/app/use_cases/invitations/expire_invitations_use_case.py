"""
Expire Invitations Use Case

Background sweep: marks non-terminal invitations past their expiry as
expired. Invoked by an external scheduler.
"""

import logging

from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.base import utcnow
from magic_link.domain.entities import TokenState
from magic_link.domain.errors import StoreUnavailableError, store_unavailable
from magic_link.libs.result import Result, Return

from .dtos import ExpireInvitationsResponse

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


class ExpireInvitationsUseCase:
    """Use case for the expiry sweep"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, batch_size: int = DEFAULT_BATCH_SIZE
    ) -> Result[ExpireInvitationsResponse]:
        now = utcnow()
        expired_ids = []

        async with self.uow:
            try:
                candidates = await self.uow.invitations.list_expired(now, batch_size)

                for invitation in candidates:
                    # Records changed by a concurrent writer are picked up next run
                    updated = await self.uow.invitations.conditional_update(
                        invitation.id,
                        invitation.token_state,
                        invitation.validation_attempts,
                        {"token_state": TokenState.expired, "updated_at": now},
                    )
                    if updated:
                        expired_ids.append(invitation.id)

                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(f"Expiry sweep failed: {exc}")
                return Return.err(store_unavailable())

        logger.info(f"Expiry sweep marked {len(expired_ids)} invitation(s) as expired")

        return Return.ok(
            ExpireInvitationsResponse(
                expired_count=len(expired_ids), invitation_ids=expired_ids
            )
        )
