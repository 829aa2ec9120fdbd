"""Typed error taxonomy shared by the engine, the stores and the routes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-usable failure codes."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    WRITE_ERROR = "WRITE_ERROR"
    READ_ERROR = "READ_ERROR"


class TriplineError(Exception):
    """Base class for all typed failures.

    The engine never retries; callers decide status codes and messaging
    from ``code`` and ``details``.
    """

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class NotFoundError(TriplineError):
    """Itinerary or segment id absent."""

    code = ErrorCode.NOT_FOUND


class ValidationFailure(TriplineError):
    """Malformed input: missing fields, end before start, non-permutation reorder."""

    code = ErrorCode.VALIDATION_ERROR


class ConflictError(TriplineError):
    """Base class for CONFLICT failures."""

    code = ErrorCode.CONFLICT


class CascadeConflictError(ConflictError):
    """A cascade move would overlap an unshifted upstream segment."""


class StaleVersionError(ConflictError):
    """Save attempted with a version older than the stored one."""


class StorageWriteError(TriplineError):
    """Persistence failed while writing."""

    code = ErrorCode.WRITE_ERROR


class StorageReadError(TriplineError):
    """Persistence failed while reading."""

    code = ErrorCode.READ_ERROR
