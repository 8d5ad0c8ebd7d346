from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar


@dataclass(eq=False)
class BookingError(Exception):
    status_code: int
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retryable: Optional[bool] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
        }
        if self.retryable is not None:
            payload["retryable"] = self.retryable
        return {"error": payload}


class InvalidRange(BookingError):
    def __init__(self, message: str = "end_date must be after start_date", details: Optional[Dict[str, Any]] = None):
        super().__init__(400, "INVALID_RANGE", message, details, retryable=False)


class NotFound(BookingError):
    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(404, "NOT_FOUND", message, details, retryable=False)


class Conflict(BookingError):
    """The requested dates overlap an active reservation or lock. The guest has to pick new dates."""

    def __init__(self, message: str = "Selected dates are no longer available", details: Optional[Dict[str, Any]] = None):
        super().__init__(409, "CONFLICT", message, details, retryable=False)


class InvalidTransition(BookingError):
    def __init__(self, message: str = "Transition not allowed", details: Optional[Dict[str, Any]] = None):
        super().__init__(409, "INVALID_TRANSITION", message, details, retryable=False)


class StorageFailure(BookingError):
    """The unit of work could not commit. Nothing was written, so the whole call may be retried."""

    def __init__(self, message: str = "Storage unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(503, "STORAGE_FAILURE", message, details, retryable=True)


T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of a core operation: either a value or a BookingError."""

    value: Optional[T] = None
    error: Optional[BookingError] = None
    events: list = field(default_factory=list)

    @classmethod
    def success(cls, value: T, events: Optional[list] = None) -> "Result[T]":
        return cls(value=value, events=list(events or []))

    @classmethod
    def failure(cls, error: BookingError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
