"""
Invitation Use Cases

Supplier magic-link lifecycle.
"""

from .consume_invitation_use_case import ConsumeInvitationUseCase
from .create_invitation_use_case import CreateInvitationUseCase
from .dtos import (
    ConsumeInvitationResponse,
    CreateInvitationResponse,
    DeliveryEventResponse,
    ExpireInvitationsResponse,
    ResendInvitationResponse,
    RevokeInvitationResponse,
    ValidateTokenResponse,
)
from .expire_invitations_use_case import ExpireInvitationsUseCase
from .record_delivery_event_use_case import RecordDeliveryEventUseCase
from .resend_invitation_use_case import ResendInvitationUseCase
from .revoke_invitation_use_case import RevokeInvitationUseCase
from .validate_token_use_case import ValidateInvitationTokenUseCase

__all__ = [
    "CreateInvitationUseCase",
    "ValidateInvitationTokenUseCase",
    "RevokeInvitationUseCase",
    "ResendInvitationUseCase",
    "RecordDeliveryEventUseCase",
    "ConsumeInvitationUseCase",
    "ExpireInvitationsUseCase",
    "CreateInvitationResponse",
    "ValidateTokenResponse",
    "RevokeInvitationResponse",
    "ResendInvitationResponse",
    "DeliveryEventResponse",
    "ConsumeInvitationResponse",
    "ExpireInvitationsResponse",
]
