from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional, Sequence

from ..api.connection import ApiConnection
from ..api.http_base import request_json
from ..common.datetime_utils import parse_iso_timestamp
from ..common.validators import optional_text
from ..core.enums import AttendanceStatus
from ..core.exceptions import ServerRejected, StudentNotFound
from .model import AttendanceRecord, SubmitResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _student_ref(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return optional_text(value.get("_id")) or optional_text(value.get("id"))
    return optional_text(value)


def _post_for_student(conn: ApiConnection, path: str, payload: dict, *, timeout: float) -> dict:
    """POST a write for one student; a 404 means the backend does not know them in this section."""

    try:
        return request_json(conn, "POST", path, payload=payload, timeout=timeout)
    except ServerRejected as e:
        if e.status_code == 404:
            raise StudentNotFound(payload["studentId"]) from e
        raise


def _submit_result(data: dict) -> SubmitResult:
    body = data.get("data")
    percentage = body.get("attendancePercentage") if isinstance(body, dict) else None
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        percentage = None
    return SubmitResult(attendance_percentage=percentage, message=optional_text(data.get("message")))


class HttpAttendanceRepository(AttendanceRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    def get_section_records(self, section_id: str, on_date: date, *, timeout: float) -> Sequence[AttendanceRecord]:
        data = request_json(
            self._conn,
            "GET",
            f"attendance/section/{section_id}",
            params={"date": on_date.isoformat()},
            timeout=timeout,
        )
        records: List[AttendanceRecord] = []
        for raw in data.get("data") or []:
            if not isinstance(raw, dict):
                continue
            student_id = _student_ref(raw.get("student"))
            try:
                status = AttendanceStatus(str(raw.get("status", "")).lower())
            except ValueError:
                logger.warning("Skip record for %s with unsupported status %r", student_id, raw.get("status"))
                continue
            if not student_id:
                continue
            records.append(
                AttendanceRecord(
                    student_id=student_id,
                    section_id=section_id,
                    on_date=on_date,
                    status=status,
                    enrollment_id=_student_ref(raw.get("enrollment")),
                    created_at=parse_iso_timestamp(raw.get("createdAt") or ""),
                )
            )
        return records

    def record_attendance(
        self,
        *,
        student_id: str,
        section_id: str,
        on_date: date,
        enrollment_id: Optional[str] = None,
        timeout: float,
    ) -> SubmitResult:
        payload = {"studentId": student_id, "sectionId": section_id, "date": on_date.isoformat()}
        if enrollment_id:
            payload["enrollmentId"] = enrollment_id
        data = _post_for_student(self._conn, "attendance/record", payload, timeout=timeout)
        return _submit_result(data)

    def update_status(
        self,
        *,
        student_id: str,
        section_id: str,
        on_date: date,
        status: AttendanceStatus,
        timeout: float,
    ) -> SubmitResult:
        payload = {
            "studentId": student_id,
            "sectionId": section_id,
            "date": on_date.isoformat(),
            "status": AttendanceStatus(status).value,
        }
        data = _post_for_student(self._conn, "attendance/status", payload, timeout=timeout)
        return _submit_result(data)
