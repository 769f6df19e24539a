"""
Error taxonomy for the token lifecycle engine.

Codes are grouped into three categories so callers can tell a denied
token apart from an unavailable dependency without string matching.
"""

from enum import Enum
from typing import Any, Dict, Optional

from magic_link.libs.result import Error


class ErrorCategory(str, Enum):
    """Error category"""

    input = "input"
    authorization = "authorization"
    infrastructure = "infrastructure"


class ErrorCode(str, Enum):
    """Stable error codes returned by issuer, validator and use cases"""

    # Input errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_CLAIMS = "INVALID_CLAIMS"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Authorization denials
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_CONSUMED = "ALREADY_CONSUMED"
    REVOKED = "REVOKED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    ALREADY_REVOKED = "ALREADY_REVOKED"

    # Infrastructure errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


_INPUT_CODES = {
    ErrorCode.INVALID_INPUT,
    ErrorCode.INVALID_FORMAT,
    ErrorCode.INVALID_CLAIMS,
    ErrorCode.INVALID_STATE_TRANSITION,
}

_INFRASTRUCTURE_CODES = {
    ErrorCode.STORE_UNAVAILABLE,
    ErrorCode.CONCURRENT_UPDATE,
    ErrorCode.CONFIGURATION_ERROR,
}


def category_of(code: str) -> ErrorCategory:
    """Return the category for an error code. Unknown codes are infrastructure."""
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return ErrorCategory.infrastructure

    if error_code in _INPUT_CODES:
        return ErrorCategory.input
    if error_code in _INFRASTRUCTURE_CODES:
        return ErrorCategory.infrastructure
    return ErrorCategory.authorization


def is_retryable(code: str) -> bool:
    return category_of(code) == ErrorCategory.infrastructure


def make_error(
    code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None
) -> Error:
    return Error(code.value, message, details or {})


def store_unavailable() -> Error:
    return make_error(
        ErrorCode.STORE_UNAVAILABLE, "Invitation store is temporarily unavailable"
    )


class ConfigurationError(Exception):
    """Missing or malformed key material / settings. Fatal at startup."""


class StoreUnavailableError(Exception):
    """The record store could not complete an operation."""
