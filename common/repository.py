"""Storage contract shared by every expense record store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .cancellation import CancellationToken
from .models import Expense


class ExpenseRepository(ABC):
    """Persistence capability for expense records.

    Services depend only on this interface. Implementations must honour the
    cancellation token by checking it before touching storage, and must raise
    :class:`~common.exceptions.RecordNotFoundError` (never a bare
    ``PersistenceError``) when an id does not exist.
    """

    @abstractmethod
    def create(self, expense: Expense, token: Optional[CancellationToken] = None) -> Expense:
        """Persist ``expense`` and return it with its generated id."""

    @abstractmethod
    def get_all(self, token: Optional[CancellationToken] = None) -> List[Expense]:
        """Return every stored expense in natural storage order."""

    @abstractmethod
    def get_by_id(self, expense_id: int, token: Optional[CancellationToken] = None) -> Expense:
        """Return a single expense or raise RecordNotFoundError."""

    @abstractmethod
    def delete(self, expense_id: int, token: Optional[CancellationToken] = None) -> None:
        """Remove a single expense or raise RecordNotFoundError."""
