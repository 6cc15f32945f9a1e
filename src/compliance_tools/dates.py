"""Date helpers shared by records and risk assessments."""

from __future__ import annotations

import calendar
from datetime import UTC, date, datetime


def parse_iso(value: str | datetime | date | None) -> datetime | None:
    """Parse an ISO-8601 string (or date) into an aware UTC datetime.

    Empty values return None. Naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def format_display(value: datetime | None) -> str:
    """Format as e.g. "Mar 5, 2025"."""
    if value is None:
        return ""
    return f"{value.strftime('%b')} {value.day}, {value.year}"
