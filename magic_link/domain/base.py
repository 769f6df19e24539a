import secrets
import uuid
from datetime import UTC, datetime


def generate_uuid() -> str:
    """UUID-formatted id carrying 128 random bits from the OS CSPRNG"""
    return str(uuid.UUID(bytes=secrets.token_bytes(16)))


def utcnow() -> datetime:
    """Naive UTC now; matches the naive DateTime columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_timestamp(value: datetime) -> int:
    """Unix seconds for a naive UTC datetime"""
    return int(value.replace(tzinfo=UTC).timestamp())


def from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)
