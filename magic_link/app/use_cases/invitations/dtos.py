"""
Invitation Use Case DTOs (Data Transfer Objects)

Response classes for the invitation lifecycle.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


# ============================================================================
# Response DTOs
# ============================================================================


class CreateInvitationResponse(BaseModel):
    """Response for create invitation use case"""

    invitation_id: str
    token: str
    invitation_link: str
    token_state: str
    issued_at: str
    expires_at: str


class ValidateTokenResponse(BaseModel):
    """Response for validate invitation token use case"""

    valid: bool
    invitation_id: str
    supplier_email: str
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    token_state: str
    validation_attempts: int
    expires_at: str
    claims: Dict[str, Any]


class RevokeInvitationResponse(BaseModel):
    """Response for revoke invitation use case"""

    invitation_id: str
    status: str
    revoked_at: str


class ResendInvitationResponse(BaseModel):
    """Response for resend invitation use case"""

    invitation_id: str
    status: str
    token: str
    invitation_link: str
    expires_at: str
    reissue_count: int


class DeliveryEventResponse(BaseModel):
    """Response for record delivery event use case"""

    invitation_id: str
    token_state: str


class ConsumeInvitationResponse(BaseModel):
    """Response for consume invitation use case"""

    invitation_id: str
    token_state: str
    consumed_at: str


class ExpireInvitationsResponse(BaseModel):
    """Response for expire invitations sweep"""

    expired_count: int
    invitation_ids: List[str]
