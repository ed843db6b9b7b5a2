"""Data models for the expense tracker domain."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

__all__ = ["Expense", "isoformat_utc", "parse_datetime", "as_utc"]

# Fractional seconds beyond microsecond precision, e.g. ".123456789".
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    iso = as_utc(dt).isoformat()
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _EXCESS_FRACTION.sub(r"\1", value)
    return as_utc(datetime.fromisoformat(value))


@dataclass(frozen=True)
class Expense:
    description: str
    amount: float
    category: str
    date: datetime
    id: Optional[int] = None

    def with_id(self, expense_id: int) -> "Expense":
        return replace(self, id=expense_id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "category": self.category,
            "date": isoformat_utc(self.date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data."""
        raw_date = data["date"]
        return cls(
            id=int(data["id"]),
            description=data.get("description", ""),
            amount=float(data["amount"]),
            category=data.get("category", ""),
            date=raw_date if isinstance(raw_date, datetime) else parse_datetime(raw_date),
        )
