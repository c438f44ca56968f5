from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, Optional

from ..sections.model import RosterEntry


def project(previous: Optional[float], returned: Optional[float] = None) -> float:
    """Displayed attendance percentage.

    Only the backend computes percentages: adopt the value it returned,
    otherwise keep what is already shown. Nothing known yet displays 0.
    """

    if returned is not None:
        return returned
    if previous is not None:
        return previous
    return 0


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def roster_percentage(raw_student: dict) -> float:
    """Backend-reported percentage from a roster item, whichever shape it came in."""

    enrollment = raw_student.get("enrollment")
    if isinstance(enrollment, dict) and isinstance(enrollment.get("attendance"), dict):
        value = _as_number(enrollment["attendance"].get("percentage"))
        if value is not None:
            return value

    attendance = raw_student.get("attendance")
    if isinstance(attendance, dict):
        value = _as_number(attendance.get("percentage"))
        if value is not None:
            return value

    value = _as_number(attendance)
    return value if value is not None else 0


class PercentageBoard:
    """Percentages currently displayed per student."""

    def __init__(self):
        self._lock = threading.Lock()
        self._values: Dict[str, float] = {}

    def load(self, roster: Iterable[RosterEntry]) -> None:
        with self._lock:
            self._values = {e.student_key: e.attendance_percentage for e in roster}

    def get(self, student_id: str) -> float:
        with self._lock:
            return project(self._values.get(student_id))

    def apply(self, student_id: str, returned: Optional[float]) -> float:
        with self._lock:
            value = project(self._values.get(student_id), returned)
            self._values[student_id] = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._values = {}
