"""Helpers for ``YYYY-MM`` month identifiers."""

import re
from datetime import date

from .errors import ValidationError

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def current_month(today: date | None = None) -> str:
    """Month identifier for ``today`` (server-local date)."""
    return month_key(today or date.today())


def shift_month(month_year: str, delta: int) -> str:
    """Move ``month_year`` by ``delta`` months (negative for the past)."""
    year, month = (int(part) for part in month_year.split("-"))
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def validate_month_year(value, field: str = "month_year") -> str:
    """Return ``value`` if it is a well-formed ``YYYY-MM`` string."""
    if not value:
        raise ValidationError(f"{field} is required")
    if not isinstance(value, str) or not MONTH_PATTERN.match(value):
        raise ValidationError(f"{field} must be in YYYY-MM format")
    return value
