"""
Invitation token state machine.

    created -> sent -> delivered -> opened -> validated
    created/sent -> failed
    any non-terminal -> consumed | revoked | expired

Terminal states never change again, except through an explicit reissue,
which starts a fresh lifecycle for the same invitation id.
"""

from typing import Optional

from .entities.enums import DeliveryEvent, TokenState

TERMINAL_STATES = frozenset(
    {TokenState.consumed, TokenState.expired, TokenState.revoked, TokenState.failed}
)

# States from which a successful validation moves the record to validated
PRE_VALIDATION_STATES = frozenset(
    {TokenState.created, TokenState.sent, TokenState.delivered, TokenState.opened}
)

_DELIVERY_RANK = {
    TokenState.created: 0,
    TokenState.sent: 1,
    TokenState.delivered: 2,
    TokenState.opened: 3,
}

_FAILABLE_STATES = frozenset({TokenState.created, TokenState.sent})


def is_terminal(state: TokenState) -> bool:
    return state in TERMINAL_STATES


def state_after_validation(state: TokenState) -> TokenState:
    if state in PRE_VALIDATION_STATES:
        return TokenState.validated
    return state


def state_after_delivery_event(
    state: TokenState, event: DeliveryEvent
) -> Optional[TokenState]:
    """Target state for a delivery event, or None if the transition is illegal"""
    if event == DeliveryEvent.failed:
        return TokenState.failed if state in _FAILABLE_STATES else None

    target = TokenState(event.value)
    current_rank = _DELIVERY_RANK.get(state)
    if current_rank is None or current_rank >= _DELIVERY_RANK[target]:
        return None
    return target
