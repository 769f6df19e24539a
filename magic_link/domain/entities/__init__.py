"""
Magic Link Domain Entities
"""

from .enums import DeliveryEvent, TokenState
from .invitation import SupplierInvitation

__all__ = [
    "DeliveryEvent",
    "TokenState",
    "SupplierInvitation",
]
