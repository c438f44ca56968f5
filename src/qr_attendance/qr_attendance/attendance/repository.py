from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, SubmitResult


class AttendanceRepository(Protocol):
    def get_section_records(self, section_id: str, on_date: date, *, timeout: float) -> Sequence[AttendanceRecord]:
        """Server-confirmed records for one section and day."""

        raise NotImplementedError

    def record_attendance(
        self,
        *,
        student_id: str,
        section_id: str,
        on_date: date,
        enrollment_id: Optional[str] = None,
        timeout: float,
    ) -> SubmitResult:
        raise NotImplementedError

    def update_status(
        self,
        *,
        student_id: str,
        section_id: str,
        on_date: date,
        status: AttendanceStatus,
        timeout: float,
    ) -> SubmitResult:
        raise NotImplementedError
