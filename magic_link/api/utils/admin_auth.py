"""
Admin API Key Authentication

Guards the invitation management endpoints used by the procurement back
office. Suppliers never hold this key; they only call validate / verify.
"""

from fastapi import Header, status

from config import ApplicationConfig
from magic_link.api.error import ClientError
from magic_link.app.services.crypto import constant_time_equals
from magic_link.libs.result import Error


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    valid_admin_key = getattr(ApplicationConfig, "ADMIN_API_KEY", None)

    if not valid_admin_key or not constant_time_equals(x_admin_api_key, valid_admin_key):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
