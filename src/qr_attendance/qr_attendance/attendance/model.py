from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class SessionKey:
    """The (section, day) a ledger belongs to."""

    section_id: str
    on_date: date


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance in one section on one day.

    The backend keeps at most one per (student, section, date); a later write
    for the same key replaces it.
    """

    student_id: str
    section_id: str
    on_date: date
    status: AttendanceStatus
    enrollment_id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SubmitResult:
    """What the backend answers to a record/status call."""

    attendance_percentage: Optional[float] = None
    message: Optional[str] = None
