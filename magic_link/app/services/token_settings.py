"""
Token Settings

Explicit configuration for the issuer and validator. Built once at
startup and passed to constructors; the engine never reads global state.
"""

from pathlib import Path
from typing import Optional

from jose import jwk
from jose.exceptions import JWKError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from magic_link.domain.errors import ConfigurationError

TOKEN_ALGORITHM = "RS256"


class TokenSettings(BaseModel):
    """Deployment-wide token configuration"""

    model_config = ConfigDict(frozen=True)

    private_key: Optional[str] = Field(None, description="RS256 private key (PEM)")
    public_key: Optional[str] = Field(None, description="RS256 public key (PEM)")
    key_id: str = Field("supplier-onboarding-key-1", min_length=1)

    issuer: str = Field("supplier-onboarding-service", min_length=1)
    subject: str = Field("invitation-service", min_length=1)
    audience: str = Field("supplier-portal", min_length=1)

    default_expiry_days: int = Field(7, ge=1, le=30)
    max_validation_attempts: int = Field(5, ge=2)
    clock_tolerance_seconds: int = Field(60, ge=0)

    link_base_url: str = "http://localhost:5000"


def _read_key(inline: Optional[str], path: Optional[str]) -> Optional[str]:
    if inline:
        return inline
    if path:
        try:
            return Path(path).read_text()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read key file {path}: {exc}") from exc
    return None


def load_token_settings(config) -> TokenSettings:
    """
    Build TokenSettings from an ApplicationConfig-like object.

    Keys may be given inline (JWT_PRIVATE_KEY / JWT_PUBLIC_KEY) or as file
    paths (JWT_PRIVATE_KEY_PATH / JWT_PUBLIC_KEY_PATH).

    Raises:
        ConfigurationError: if a value is out of range or a key file is unreadable
    """
    values = {
        "private_key": _read_key(
            getattr(config, "JWT_PRIVATE_KEY", None),
            getattr(config, "JWT_PRIVATE_KEY_PATH", None),
        ),
        "public_key": _read_key(
            getattr(config, "JWT_PUBLIC_KEY", None),
            getattr(config, "JWT_PUBLIC_KEY_PATH", None),
        ),
        "key_id": getattr(config, "JWT_KEY_ID", None),
        "issuer": getattr(config, "TOKEN_ISSUER", None),
        "subject": getattr(config, "TOKEN_SUBJECT", None),
        "audience": getattr(config, "TOKEN_AUDIENCE", None),
        "default_expiry_days": getattr(config, "TOKEN_DEFAULT_EXPIRY_DAYS", None),
        "max_validation_attempts": getattr(
            config, "TOKEN_MAX_VALIDATION_ATTEMPTS", None
        ),
        "clock_tolerance_seconds": getattr(
            config, "TOKEN_CLOCK_TOLERANCE_SECONDS", None
        ),
        "link_base_url": getattr(config, "INVITATION_LINK_BASE_URL", None),
    }
    try:
        return TokenSettings(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid token settings: {exc}") from exc


def ensure_signing_key(settings: TokenSettings) -> str:
    """Return the private key PEM or raise ConfigurationError"""
    if not settings.private_key:
        raise ConfigurationError("Token signing key (JWT_PRIVATE_KEY) is not configured")
    try:
        key = jwk.construct(settings.private_key, algorithm=TOKEN_ALGORITHM)
    except JWKError as exc:
        raise ConfigurationError(f"Token signing key is malformed: {exc}") from exc
    if key.is_public():
        raise ConfigurationError("Token signing key must be a private key")
    return settings.private_key


def ensure_verification_key(settings: TokenSettings) -> str:
    """Return the public key PEM or raise ConfigurationError"""
    if not settings.public_key:
        raise ConfigurationError(
            "Token verification key (JWT_PUBLIC_KEY) is not configured"
        )
    try:
        jwk.construct(settings.public_key, algorithm=TOKEN_ALGORITHM)
    except JWKError as exc:
        raise ConfigurationError(f"Token verification key is malformed: {exc}") from exc
    return settings.public_key
