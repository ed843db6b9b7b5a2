"""Framework-agnostic business services for the expense tracker."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .cancellation import CancellationToken
from .models import Expense
from .repository import ExpenseRepository
from .validators import parse_amount, validate_optional_str, validate_required_str

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseService:
    """Validates expense input and mediates access to a repository.

    The service never sees a concrete store; whichever
    :class:`ExpenseRepository` is wired in receives every call. When callers
    pass no token and ``default_timeout`` is set, each call gets its own
    deadline.
    """

    def __init__(
        self,
        repository: ExpenseRepository,
        *,
        default_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._default_timeout = default_timeout
        self._clock = clock

    # Public API -----------------------------------------------------------
    def register_expense(
        self,
        description: object,
        amount: object,
        category: object,
        token: Optional[CancellationToken] = None,
    ) -> Expense:
        expense = Expense(
            amount=parse_amount(amount, "amount"),
            description=validate_required_str(description, "description"),
            category=validate_optional_str(category, "category"),
            date=self._clock(),
        )
        created = self._repository.create(expense, self._token(token))
        logger.info("Registered expense %s (%.2f %s)", created.id, created.amount, created.category)
        return created

    def list_expenses(self, token: Optional[CancellationToken] = None) -> List[Expense]:
        return self._repository.get_all(self._token(token))

    def get_expense_details(
        self, expense_id: int, token: Optional[CancellationToken] = None
    ) -> Expense:
        """Return an expense or raise if it does not exist."""
        return self._repository.get_by_id(expense_id, self._token(token))

    def remove_expense(self, expense_id: int, token: Optional[CancellationToken] = None) -> None:
        self._repository.delete(expense_id, self._token(token))
        logger.info("Removed expense %s", expense_id)

    # Internal helpers -----------------------------------------------------
    def _token(self, token: Optional[CancellationToken]) -> Optional[CancellationToken]:
        if token is None and self._default_timeout:
            return CancellationToken.with_timeout(self._default_timeout)
        return token
