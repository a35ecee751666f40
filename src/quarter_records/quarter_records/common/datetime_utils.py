from __future__ import annotations

from datetime import date, datetime

from ..core.exceptions import ValidationError

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string; anything else is a ValidationError."""
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def format_date(value: date) -> str:
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return value.strftime(DATE_FORMAT)


def now_local() -> datetime:
    """Current local time.

    Note: services take it as a `clock` argument so tests can pin "today".
    """
    return datetime.now()
