"""
Result type for use cases and services.

Expected failures travel as values (Result with an Error) instead of
exceptions, so callers can branch on stable error codes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    """Structured error: stable code, human-readable message, safe context"""

    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {"code": str(self.code), "message": self.message}
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Error] = None

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None


class Return:
    """Result constructors"""

    @staticmethod
    def ok(value: T) -> Result[T]:
        return Result(value=value, error=None)

    @staticmethod
    def err(error: Error) -> Result[Any]:
        return Result(value=None, error=error)
