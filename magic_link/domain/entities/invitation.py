"""
SupplierInvitation Entity

Durable record behind a supplier magic link.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import generate_uuid, utcnow
from .enums import TokenState


class SupplierInvitation(SQLModel, table=True):
    """
    SupplierInvitation entity - single source of truth for token authorization.

    Business Rules:
    - Only the SHA-256 hash of the token is stored, never the token
    - Expires after 7 days by default (1-30 configurable)
    - Single-use: consumed once the supplier submits
    - Validation attempts are capped per token
    - Reissue keeps the id, replaces the hash and resets the counters
    """

    __tablename__ = "supplier_invitations"

    id: str = Field(default_factory=generate_uuid, primary_key=True, max_length=36)

    token_hash: str = Field(unique=True, index=True, max_length=64)  # SHA-256 hex
    token_id: str = Field(max_length=36)  # jti of the current token

    token_state: TokenState = Field(default=TokenState.created)

    # Display metadata mirrored from the claims
    email: str = Field(max_length=255, nullable=False, index=True)
    company_name: Optional[str] = Field(default=None, max_length=255)
    contact_name: Optional[str] = Field(default=None, max_length=255)
    requester_id: Optional[str] = Field(default=None, max_length=255)
    requester_name: Optional[str] = Field(default=None, max_length=255)
    department_code: Optional[str] = Field(default=None, max_length=64)
    cost_center: Optional[str] = Field(default=None, max_length=64)

    # Lifecycle
    issued_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    sent_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    delivered_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    opened_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    failed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    failure_reason: Optional[str] = Field(default=None, max_length=500)
    validated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    consumed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    revoked_by: Optional[str] = Field(default=None, max_length=255)
    revocation_reason: Optional[str] = Field(default=None, max_length=500)

    # Rate limiting / attribution
    validation_attempts: int = Field(default=0, nullable=False)
    last_validation_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )
    last_validation_ip: Optional[str] = Field(default=None, max_length=64)

    reissue_count: int = Field(default=0, nullable=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_supplier_invitation_expires_at", "expires_at"),
        Index("idx_supplier_invitation_state", "token_state"),
    )
