"""Validation helpers shared across expense tracker services."""

from __future__ import annotations

import math

from .exceptions import ValidationError


def parse_amount(raw: object, field: str) -> float:
    """Convert raw input to a strictly positive, finite float."""
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a finite number")
    if amount <= 0:
        raise ValidationError(f"{field} must be positive")
    return amount


def validate_required_str(value: object, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    if value == "":
        raise ValidationError(f"{field} cannot be empty")
    return value


def validate_optional_str(value: object, field: str) -> str:
    """Accept any string, including the empty one; None becomes ``""``."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value
