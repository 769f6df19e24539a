"""
Token Validator

Validates supplier magic-link tokens:
1. Shape check (compact JWS, three segments)
2. RS256 signature, issuer, subject and audience; expiry with clock leeway
3. Required invitation claims
4. Record lookup by SHA-256 hash of the token
5. Terminal-state short-circuit (consumed, revoked, failed, expired)
6. Rate limit on validation attempts
7. Compare-and-swap commit of counters and state
8. Validated claims plus record metadata

Every failure is returned as a structured Error; nothing expected is raised.
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from jose import jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel, ValidationError

from magic_link.app.repositories.invitation_repository import IInvitationRepository
from magic_link.domain.base import from_timestamp, to_timestamp, utcnow
from magic_link.domain.claims import InvitationClaims
from magic_link.domain.entities import SupplierInvitation, TokenState
from magic_link.domain.errors import (
    ErrorCode,
    StoreUnavailableError,
    make_error,
    store_unavailable,
)
from magic_link.domain.state_machine import state_after_validation
from magic_link.libs.result import Error, Result, Return

from .crypto import hash_token
from .token_settings import TOKEN_ALGORITHM, TokenSettings, ensure_verification_key

logger = logging.getLogger(__name__)

JWS_SEGMENTS = 3
MAX_SOURCE_ADDRESS_LENGTH = 64


def _is_canonical_segment(segment: str) -> bool:
    """Unpadded base64url that re-encodes to itself (no stray padding bits)"""
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment


class ValidationResult(BaseModel):
    """Successful validation outcome"""

    valid: bool = True
    claims: InvitationClaims
    invitation_id: str
    supplier_email: str
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    token_state: TokenState
    validation_attempts: int
    issued_at: datetime
    expires_at: datetime
    requester_id: Optional[str] = None
    department_code: Optional[str] = None
    cost_center: Optional[str] = None


class TokenValidator:
    """
    Validates invitation tokens against the signing key and the record store.

    The record store is the source of truth: a token with a perfect
    signature is still denied once its record is consumed, revoked or
    expired.
    """

    def __init__(
        self,
        settings: TokenSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self._public_key = ensure_verification_key(settings)
        self._clock = clock

    # ------------------------------------------------------------------
    # Stateless checks
    # ------------------------------------------------------------------

    @staticmethod
    def check_shape(token: Any) -> Optional[Error]:
        if not isinstance(token, str) or not token.strip():
            return make_error(
                ErrorCode.INVALID_FORMAT, "Token must be a non-empty string"
            )
        parts = token.split(".")
        if len(parts) != JWS_SEGMENTS or not all(parts):
            return make_error(
                ErrorCode.INVALID_FORMAT,
                "Invalid token format (expected 3 parts separated by dots)",
                {"parts": len(parts)},
            )
        return None

    def _verify_signature(self, token: str) -> Result[Dict[str, Any]]:
        if not all(_is_canonical_segment(part) for part in token.split(".")):
            return Return.err(
                make_error(
                    ErrorCode.SIGNATURE_INVALID, "Invalid token signature or claims"
                )
            )

        try:
            payload = jwt.decode(
                token,
                self._public_key,
                algorithms=[TOKEN_ALGORITHM],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                subject=self.settings.subject,
                # exp is checked below against the injected clock; any
                # require_exp option would turn jose's own wall-clock check back on
                options={"verify_exp": False, "require_aud": True},
            )
            header = jwt.get_unverified_header(token)
        except JOSEError:
            return Return.err(
                make_error(
                    ErrorCode.SIGNATURE_INVALID, "Invalid token signature or claims"
                )
            )

        if header.get("kid") != self.settings.key_id:
            return Return.err(
                make_error(
                    ErrorCode.SIGNATURE_INVALID, "Invalid token signature or claims"
                )
            )

        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int):
            return Return.err(
                make_error(
                    ErrorCode.SIGNATURE_INVALID, "Invalid token signature or claims"
                )
            )

        now = to_timestamp(self._clock())
        if now > exp + self.settings.clock_tolerance_seconds:
            return Return.err(
                make_error(
                    ErrorCode.TOKEN_EXPIRED,
                    "Token has expired",
                    {"expired_at": from_timestamp(exp).isoformat()},
                )
            )

        return Return.ok(payload)

    @staticmethod
    def _parse_claims(payload: Dict[str, Any]) -> Result[InvitationClaims]:
        try:
            return Return.ok(InvitationClaims.model_validate(payload))
        except ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            return Return.err(
                make_error(
                    ErrorCode.INVALID_CLAIMS,
                    "Token is missing required claims or has malformed claims",
                    {"claims": fields},
                )
            )

    def verify_signature_only(self, token: Any) -> Result[InvitationClaims]:
        """
        Steps 1-3 without touching the record store.

        Useful for lightweight checks; it does NOT tell whether the token is
        still usable (revocation, consumption and rate limit live in the store).
        """
        shape_error = self.check_shape(token)
        if shape_error:
            return Return.err(shape_error)

        signature_result = self._verify_signature(token)
        if signature_result.is_err():
            return Return.err(signature_result.error)

        return self._parse_claims(signature_result.value)

    # ------------------------------------------------------------------
    # Full validation
    # ------------------------------------------------------------------

    async def _expire(
        self, invitations: IInvitationRepository, invitation: SupplierInvitation, now: datetime
    ) -> None:
        """Best-effort write-back of the expired state; the expiry check itself is authoritative"""
        try:
            await invitations.conditional_update(
                invitation.id,
                invitation.token_state,
                invitation.validation_attempts,
                {"token_state": TokenState.expired, "updated_at": now},
            )
        except StoreUnavailableError as exc:
            logger.warning(
                f"Could not mark invitation {invitation.id} as expired: {exc}"
            )

    async def _check_state(
        self,
        invitations: IInvitationRepository,
        invitation: SupplierInvitation,
        now: datetime,
    ) -> Optional[Error]:
        state = invitation.token_state

        if state == TokenState.consumed:
            return make_error(
                ErrorCode.ALREADY_CONSUMED,
                "This invitation has already been used",
                {"invitation_id": invitation.id},
            )

        if state == TokenState.revoked:
            return make_error(
                ErrorCode.REVOKED,
                "This invitation has been revoked by an administrator",
                {"invitation_id": invitation.id},
            )

        if state == TokenState.failed:
            return make_error(
                ErrorCode.DELIVERY_FAILED,
                "This invitation could not be delivered",
                {"invitation_id": invitation.id},
            )

        if state == TokenState.expired:
            return make_error(
                ErrorCode.TOKEN_EXPIRED,
                "This invitation has expired",
                {"invitation_id": invitation.id},
            )

        if now > invitation.expires_at:
            await self._expire(invitations, invitation, now)
            return make_error(
                ErrorCode.TOKEN_EXPIRED,
                "This invitation has expired",
                {
                    "invitation_id": invitation.id,
                    "expires_at": invitation.expires_at.isoformat(),
                },
            )

        return None

    def _check_rate_limit(self, invitation: SupplierInvitation) -> Optional[Error]:
        # The attempt being made counts: with a limit of N, the N-th call is refused
        max_attempts = self.settings.max_validation_attempts
        if invitation.validation_attempts + 1 >= max_attempts:
            return make_error(
                ErrorCode.RATE_LIMIT_EXCEEDED,
                f"Maximum validation attempts exceeded ({max_attempts})",
                {
                    "invitation_id": invitation.id,
                    "attempts": invitation.validation_attempts,
                    "max_attempts": max_attempts,
                },
            )
        return None

    @staticmethod
    def _store_unavailable(exc: Exception) -> Error:
        logger.error(f"Invitation store unavailable during validation: {exc}")
        return store_unavailable()

    async def validate(
        self,
        invitations: IInvitationRepository,
        token: Any,
        source_address: Optional[str] = None,
    ) -> Result[ValidationResult]:
        """
        Validate a token and record the attempt.

        Args:
            invitations: Record store to read and conditionally update
            token: Raw token string from the magic link
            source_address: Client address, kept for attribution

        Returns:
            Result with ValidationResult, or Error with a specific code
        """
        claims_result = self.verify_signature_only(token)
        if claims_result.is_err():
            return Return.err(claims_result.error)
        claims = claims_result.value

        token_hash = hash_token(token)
        address = source_address[:MAX_SOURCE_ADDRESS_LENGTH] if source_address else None

        # Each conflict means another writer changed the record; re-read and
        # re-evaluate. The loop is bounded because every successful competing
        # validation brings the record closer to the rate limit.
        for _ in range(self.settings.max_validation_attempts + 1):
            now = self._clock()

            try:
                invitation = await invitations.get_by_token_hash(token_hash)
            except StoreUnavailableError as exc:
                return Return.err(self._store_unavailable(exc))

            if invitation is None:
                return Return.err(
                    make_error(
                        ErrorCode.NOT_FOUND,
                        "Invitation not found or link has been regenerated",
                    )
                )

            denial = await self._check_state(invitations, invitation, now)
            if denial is None:
                denial = self._check_rate_limit(invitation)
            if denial is not None:
                return Return.err(denial)

            changes: Dict[str, Any] = {
                "validation_attempts": invitation.validation_attempts + 1,
                "last_validation_at": now,
                "updated_at": now,
            }
            if address:
                changes["last_validation_ip"] = address
            new_state = state_after_validation(invitation.token_state)
            if new_state != invitation.token_state:
                changes["token_state"] = new_state
                changes["validated_at"] = now

            try:
                updated = await invitations.conditional_update(
                    invitation.id,
                    invitation.token_state,
                    invitation.validation_attempts,
                    changes,
                )
            except StoreUnavailableError as exc:
                return Return.err(self._store_unavailable(exc))

            if updated:
                return Return.ok(
                    ValidationResult(
                        claims=claims,
                        invitation_id=invitation.id,
                        supplier_email=invitation.email,
                        company_name=invitation.company_name,
                        contact_name=invitation.contact_name,
                        token_state=new_state,
                        validation_attempts=changes["validation_attempts"],
                        issued_at=invitation.issued_at,
                        expires_at=invitation.expires_at,
                        requester_id=invitation.requester_id,
                        department_code=invitation.department_code,
                        cost_center=invitation.cost_center,
                    )
                )

            logger.info(
                f"Concurrent update on invitation {invitation.id}, re-evaluating"
            )

        return Return.err(
            make_error(
                ErrorCode.CONCURRENT_UPDATE,
                "Invitation is being updated concurrently, please retry",
            )
        )


def is_token_expired(token: str, now: Optional[datetime] = None) -> bool:
    """Expiry from unverified claims; undecodable tokens count as expired"""
    try:
        exp = jwt.get_unverified_claims(token).get("exp")
    except JOSEError:
        return True
    if isinstance(exp, bool) or not isinstance(exp, int):
        return True
    return to_timestamp(now or utcnow()) > exp


def get_invitation_id_from_token(token: str) -> Optional[str]:
    """Invitation id from unverified claims. For log correlation only."""
    try:
        invitation_id = jwt.get_unverified_claims(token).get("invitation_id")
    except JOSEError:
        return None
    return invitation_id if isinstance(invitation_id, str) else None


def format_validation_error(error: Error) -> Dict[str, Any]:
    """Response envelope for a failed validation"""
    return {
        "valid": False,
        "error": error.to_dict(),
    }
