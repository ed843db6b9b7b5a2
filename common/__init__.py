"""Core business logic package for the expense tracker."""

from .cancellation import CancellationToken
from .database import SQLExpenseRepository
from .exceptions import (
    ErrorKind,
    ExpenseTrackerError,
    OperationCancelledError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from .models import Expense
from .repository import ExpenseRepository
from .services import ExpenseService
from .storage import JSONExpenseRepository, JSONFileStorage

__all__ = [
    "CancellationToken",
    "Expense",
    "ExpenseRepository",
    "ExpenseService",
    "JSONExpenseRepository",
    "JSONFileStorage",
    "SQLExpenseRepository",
    "ErrorKind",
    "ExpenseTrackerError",
    "OperationCancelledError",
    "PersistenceError",
    "RecordNotFoundError",
    "ValidationError",
]
