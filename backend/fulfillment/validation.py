from __future__ import annotations
from datetime import date, datetime
from typing import Iterable

from fulfillment.time_utils import to_naive_utc


class ValidationError(ValueError):
    """Malformed input (bad id shape, unknown enum value, unparseable date)."""


def require_id(value, field: str = "id") -> int:
    """
    Coerce a record id to int.

    Ids are integers. Plain digit strings are accepted (CLI arguments);
    bools, floats and anything else are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        if value <= 0:
            raise ValidationError(f"{field} must be a positive integer")
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdecimal():
            raise ValidationError(f"{field} must be an integer")
        return require_id(int(stripped), field)
    raise ValidationError(f"{field} must be an integer, got {type(value).__name__}")


def require_ids(values: Iterable, field: str = "ids") -> list[int]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ValidationError(f"{field} must be a list of integers")
    return [require_id(v, field) for v in values]


def require_choice(value, choices: Iterable[str], field: str) -> str:
    """Validate that value is one of the allowed codes."""
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {', '.join(sorted(allowed))}"
        )
    return value


def coerce_datetime(value, field: str) -> datetime | None:
    """Accept None, datetime, date or ISO-8601 string; normalize to UTC-naive."""
    if value is None:
        return None
    if not isinstance(value, (str, date, datetime)):
        raise ValidationError(f"{field} must be a date, datetime or ISO-8601 string")
    try:
        return to_naive_utc(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime")
