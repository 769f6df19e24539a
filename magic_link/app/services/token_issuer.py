"""
Token Issuer

Builds and signs supplier invitation tokens (RS256) and the fields of the
invitation record to persist. Persistence is the caller's job.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from email_validator import EmailNotValidError, validate_email
from jose import jwt
from jose.exceptions import JWTError
from pydantic import BaseModel

from magic_link.domain.base import from_timestamp, to_timestamp, utcnow
from magic_link.domain.claims import (
    ALLOWED_USES,
    DEFAULT_SCOPE,
    TOKEN_PURPOSE,
    InvitationClaims,
)
from magic_link.domain.entities import TokenState
from magic_link.domain.errors import ErrorCode, make_error
from magic_link.libs.result import Result, Return

from .crypto import hash_token, new_random_id
from .token_settings import TOKEN_ALGORITHM, TokenSettings, ensure_signing_key

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
MIN_EXPIRY_DAYS = 1
MAX_EXPIRY_DAYS = 30


class IssuedToken(BaseModel):
    """Signed token plus the values the invitation record is created from"""

    token: str
    invitation_id: str
    token_id: str
    token_hash: str
    issued_at: int
    expires_at: int
    claims: InvitationClaims

    @property
    def issued_at_datetime(self) -> datetime:
        return from_timestamp(self.issued_at)

    @property
    def expires_at_datetime(self) -> datetime:
        return from_timestamp(self.expires_at)


class TokenIssuer:
    """
    Issues single-use supplier invitation tokens.

    Business Rules:
    - Supplier email must be syntactically valid
    - Expiry between 1 and 30 days (default 7)
    - One use per token (allowed_uses = 1)
    - Only the SHA-256 hash of the token is meant to be stored

    Raises ConfigurationError from the constructor when the signing key is
    missing or malformed; the process cannot issue anything without it.
    """

    def __init__(
        self,
        settings: TokenSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self._private_key = ensure_signing_key(settings)
        self._clock = clock

    def _validate_expiry_days(self, expiry_days: Any) -> Result[int]:
        if expiry_days is None:
            return Return.ok(self.settings.default_expiry_days)
        if isinstance(expiry_days, bool) or not isinstance(expiry_days, int):
            return Return.err(
                make_error(
                    ErrorCode.INVALID_INPUT,
                    "Expiry days must be an integer",
                    {"field": "expiry_days"},
                )
            )
        if not MIN_EXPIRY_DAYS <= expiry_days <= MAX_EXPIRY_DAYS:
            return Return.err(
                make_error(
                    ErrorCode.INVALID_INPUT,
                    f"Expiry days must be between {MIN_EXPIRY_DAYS} and {MAX_EXPIRY_DAYS}",
                    {"field": "expiry_days", "value": expiry_days},
                )
            )
        return Return.ok(expiry_days)

    @staticmethod
    def _validate_email(email: Any) -> Result[str]:
        if not isinstance(email, str) or not email.strip():
            return Return.err(
                make_error(
                    ErrorCode.INVALID_INPUT,
                    "Supplier email is required",
                    {"field": "email"},
                )
            )
        email = email.strip()
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            return Return.err(
                make_error(
                    ErrorCode.INVALID_INPUT,
                    "Invalid email format",
                    {"field": "email"},
                )
            )
        return Return.ok(email)

    def issue(
        self,
        email: str,
        company_name: Optional[str] = None,
        contact_name: Optional[str] = None,
        requester_id: Optional[str] = None,
        requester_name: Optional[str] = None,
        department_code: Optional[str] = None,
        cost_center: Optional[str] = None,
        expiry_days: Optional[int] = None,
        invitation_id: Optional[str] = None,
    ) -> Result[IssuedToken]:
        """
        Issue a signed invitation token.

        Args:
            email: Supplier email address
            company_name, contact_name: Display metadata
            requester_id, requester_name: Internal user creating the invitation
            department_code, cost_center: Organizational attributes
            expiry_days: Token lifetime in days (1-30, default from settings)
            invitation_id: Existing invitation id when reissuing a link

        Returns:
            Result with IssuedToken, or INVALID_INPUT Error
        """
        email_result = self._validate_email(email)
        if email_result.is_err():
            return Return.err(email_result.error)

        expiry_result = self._validate_expiry_days(expiry_days)
        if expiry_result.is_err():
            return Return.err(expiry_result.error)

        invitation_id = invitation_id or new_random_id()
        token_id = new_random_id()

        issued_at = to_timestamp(self._clock())
        expires_at = issued_at + expiry_result.value * SECONDS_PER_DAY

        payload: Dict[str, Any] = {
            # Registered claims
            "iss": self.settings.issuer,
            "sub": self.settings.subject,
            "aud": self.settings.audience,
            "iat": issued_at,
            "exp": expires_at,
            "jti": token_id,
            "scope": list(DEFAULT_SCOPE),
            # Invitation context
            "invitation_id": invitation_id,
            "supplier_email": email_result.value,
            "company_name": company_name,
            "contact_name": contact_name,
            "requester_id": requester_id or "system",
            "requester_name": requester_name or "System",
            "department_code": department_code,
            "cost_center": cost_center,
            "created_at": from_timestamp(issued_at).isoformat() + "Z",
            "purpose": TOKEN_PURPOSE,
            "allowed_uses": ALLOWED_USES,
            "initial_state": TokenState.created.value,
        }

        token = jwt.encode(
            payload,
            self._private_key,
            algorithm=TOKEN_ALGORITHM,
            headers={"kid": self.settings.key_id},
        )

        logger.info(
            f"Issued invitation token {token_id} for invitation {invitation_id}"
        )

        return Return.ok(
            IssuedToken(
                token=token,
                invitation_id=invitation_id,
                token_id=token_id,
                token_hash=hash_token(token),
                issued_at=issued_at,
                expires_at=expires_at,
                claims=InvitationClaims(**payload),
            )
        )


def build_invitation_link(token: str, base_url: str) -> str:
    """Magic link URL carrying the token in the ``token`` query parameter"""
    if not token:
        raise ValueError("Token is required")
    return f"{base_url.rstrip('/')}/?token={quote(token, safe='')}"


def decode_unverified(token: str) -> Dict[str, Any]:
    """
    Claims without signature verification.

    For inspection and logging only. Never base an authorization decision
    on the result.
    """
    if not token or not isinstance(token, str):
        raise ValueError("Token must be a non-empty string")
    try:
        return jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise ValueError(f"Failed to decode token: {exc}") from exc


def get_token_expiry(token: str) -> datetime:
    claims = decode_unverified(token)
    exp = claims.get("exp")
    if not isinstance(exp, int):
        raise ValueError("Token does not contain expiry claim")
    return from_timestamp(exp)
