from fastapi import status

from magic_link.domain.errors import ErrorCategory, ErrorCode, category_of
from magic_link.libs.result import Error

_STATUS_BY_CODE = {
    ErrorCode.INVALID_INPUT.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_FORMAT.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CLAIMS.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATE_TRANSITION.value: status.HTTP_409_CONFLICT,
    ErrorCode.SIGNATURE_INVALID.value: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVITATION_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_CONSUMED.value: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_REVOKED.value: status.HTTP_409_CONFLICT,
    ErrorCode.REVOKED.value: status.HTTP_403_FORBIDDEN,
    ErrorCode.DELIVERY_FAILED.value: status.HTTP_403_FORBIDDEN,
    ErrorCode.TOKEN_EXPIRED.value: status.HTTP_410_GONE,
    ErrorCode.RATE_LIMIT_EXCEEDED.value: status.HTTP_429_TOO_MANY_REQUESTS,
}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(
        self, base_error: Error, status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE
    ):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


def error_to_exception(error: Error) -> Exception:
    """Map a use case Error to the exception the app's handlers render"""
    if category_of(error.code) == ErrorCategory.infrastructure:
        return ServerError(error)
    return ClientError(
        error, status_code=_STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST)
    )
