from __future__ import annotations

from typing import Any, Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for missing/blank/non-string values."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Invalid status {value!r} (expected one of: {allowed})")
