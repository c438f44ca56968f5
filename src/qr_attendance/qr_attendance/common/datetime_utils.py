from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_iso_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, returning None when unparsable.

    Accepts the trailing 'Z' that JavaScript's toISOString() emits.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def today_local() -> date:
    """Current local date.

    Wrapped so tests can patch it.
    """
    return date.today()
