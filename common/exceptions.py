"""Domain-specific exceptions for the expense tracker core services."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    CANCELLED = "cancelled"


class ExpenseTrackerError(Exception):
    """Base class for every error raised by the core services.

    Each subclass carries an explicit ``kind`` so interface layers can map
    failures to responses without inspecting message text.
    """

    kind: ErrorKind = ErrorKind.STORAGE

    @property
    def cause(self) -> Optional[BaseException]:
        """The underlying exception this error was raised from, if any."""
        return self.__cause__


class ValidationError(ExpenseTrackerError, ValueError):
    """Raised when provided data does not meet validation requirements."""

    kind = ErrorKind.VALIDATION


class RecordNotFoundError(ExpenseTrackerError, LookupError):
    """Raised when an expense record cannot be located."""

    kind = ErrorKind.NOT_FOUND


class PersistenceError(ExpenseTrackerError, IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""

    kind = ErrorKind.STORAGE


class OperationCancelledError(PersistenceError):
    """Raised when a cancellation token fires before an operation completes."""

    kind = ErrorKind.CANCELLED
