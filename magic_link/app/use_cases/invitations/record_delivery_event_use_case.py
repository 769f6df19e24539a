"""
Record Delivery Event Use Case

Moves an invitation through sent / delivered / opened / failed as the
mailing side reports progress.
"""

import logging
from typing import Optional

from magic_link.app.services.unit_of_work import UnitOfWork
from magic_link.domain.base import utcnow
from magic_link.domain.entities import DeliveryEvent
from magic_link.domain.errors import (
    ErrorCode,
    StoreUnavailableError,
    make_error,
    store_unavailable,
)
from magic_link.domain.state_machine import state_after_delivery_event
from magic_link.libs.result import Result, Return

from .dtos import DeliveryEventResponse

logger = logging.getLogger(__name__)


class RecordDeliveryEventUseCase:
    """
    Use case for applying delivery events.

    Business Rules:
    - created -> sent -> delivered -> opened, forward only
    - failed only from created or sent
    - Anything else is INVALID_STATE_TRANSITION
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, invitation_id: str, event: str, reason: Optional[str] = None
    ) -> Result[DeliveryEventResponse]:
        try:
            delivery_event = DeliveryEvent(event)
        except ValueError:
            return Return.err(
                make_error(
                    ErrorCode.INVALID_INPUT,
                    f"Invalid delivery event: {event}. Must be one of: sent, delivered, opened, failed",
                    {"field": "event"},
                )
            )

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

            target = state_after_delivery_event(invitation.token_state, delivery_event)
            if target is None:
                return Return.err(
                    make_error(
                        ErrorCode.INVALID_STATE_TRANSITION,
                        f"Cannot apply {delivery_event.value} to an invitation in state "
                        f"{invitation.token_state.value}",
                        {"token_state": invitation.token_state.value},
                    )
                )

            now = utcnow()
            changes = {
                "token_state": target,
                f"{delivery_event.value}_at": now,
                "updated_at": now,
            }
            if delivery_event == DeliveryEvent.failed:
                changes["failure_reason"] = reason

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
                            "Invitation changed while recording the event, please retry",
                        )
                    )
                await self.uow.commit()
            except StoreUnavailableError as exc:
                logger.error(
                    f"Failed to record {delivery_event.value} for invitation {invitation_id}: {exc}"
                )
                return Return.err(store_unavailable())

        logger.info(f"Invitation {invitation_id} is now {target.value}")

        return Return.ok(
            DeliveryEventResponse(invitation_id=invitation_id, token_state=target.value)
        )
