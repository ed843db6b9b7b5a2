"""File-backed persistence for the console variant of the expense tracker."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .cancellation import CancellationToken, ensure_token
from .exceptions import PersistenceError, RecordNotFoundError
from .models import Expense
from .repository import ExpenseRepository

logger = logging.getLogger(__name__)


class JSONFileStorage:
    """Simple single-file JSON storage with crash-safe writes.

    There is no file locking; concurrent processes writing the same file
    will overwrite each other's changes.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        path = self._path
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        # An empty array written by other tools may be serialised as null.
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, records: Iterable[Dict[str, Any]]) -> None:
        path = self._path
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            if path.parent and not path.parent.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2)
                handle.flush()
            # Use replace for atomic move on POSIX; the file is always rewritten in full.
            temp_path.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc

    @property
    def path(self) -> Path:
        return self._path


class JSONExpenseRepository(ExpenseRepository):
    """Expense store holding an ordered list mirrored to a JSON file.

    New ids are the id of the *last* element plus one (or 1 when empty), not
    the maximum over all ids, so deleting the newest record frees its id for
    reuse. When a save fails the in-memory change is kept and the error is
    raised, leaving memory and disk out of sync until the next successful
    save.
    """

    def __init__(self, storage: JSONFileStorage) -> None:
        self._storage = storage
        self._expenses: List[Expense] = []
        self.load()  # Hydrate in-memory list from persistence on construction.

    def load(self) -> None:
        raw_records = self._storage.load()
        try:
            self._expenses = [Expense.from_dict(payload) for payload in raw_records]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Malformed expense record in {self._storage.path}") from exc

    def create(self, expense: Expense, token: Optional[CancellationToken] = None) -> Expense:
        ensure_token(token).raise_if_cancelled()
        new_id = self._expenses[-1].id + 1 if self._expenses else 1
        stored = expense.with_id(new_id)
        self._expenses.append(stored)
        self._persist()
        return stored

    def get_all(self, token: Optional[CancellationToken] = None) -> List[Expense]:
        ensure_token(token).raise_if_cancelled()
        return list(self._expenses)

    def get_by_id(self, expense_id: int, token: Optional[CancellationToken] = None) -> Expense:
        ensure_token(token).raise_if_cancelled()
        return self._expenses[self._index_or_raise(expense_id)]

    def delete(self, expense_id: int, token: Optional[CancellationToken] = None) -> None:
        ensure_token(token).raise_if_cancelled()
        index = self._index_or_raise(expense_id)
        del self._expenses[index]
        self._persist()

    def _index_or_raise(self, expense_id: int) -> int:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        raise RecordNotFoundError(f"Expense with ID {expense_id} not found")

    def _persist(self) -> None:
        try:
            self._storage.save(expense.to_dict() for expense in self._expenses)
        except PersistenceError:
            logger.warning(
                "Saving %s failed; in-memory state now differs from disk", self._storage.path
            )
            raise
