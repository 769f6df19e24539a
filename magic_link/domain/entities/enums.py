"""
Magic Link Domain Enums

Enumeration types used by the invitation record and its state machine.
"""

from enum import Enum


class TokenState(str, Enum):
    """Lifecycle state of a supplier invitation token"""

    created = "created"
    sent = "sent"
    delivered = "delivered"
    opened = "opened"
    validated = "validated"
    consumed = "consumed"
    expired = "expired"
    revoked = "revoked"
    failed = "failed"


class DeliveryEvent(str, Enum):
    """External delivery events reported by the mailing side"""

    sent = "sent"
    delivered = "delivered"
    opened = "opened"
    failed = "failed"
