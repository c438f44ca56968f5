from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..api.connection import ApiConnection
from ..api.http_base import request_json
from ..attendance.percentage import roster_percentage
from ..common.validators import optional_text
from .model import Enrollment, RosterEntry, Student
from .repository import RosterRepository

logger = logging.getLogger(__name__)


def _photo_url(raw: dict) -> Optional[str]:
    photo = raw.get("idPhoto")
    if isinstance(photo, dict):
        return optional_text(photo.get("url"))
    return optional_text(raw.get("photoUrl"))


def parse_roster_item(raw: dict, section_id: str) -> Optional[RosterEntry]:
    student_key = optional_text(raw.get("_id")) or optional_text(raw.get("id"))
    if not student_key:
        return None

    percentage = roster_percentage(raw)
    enrollment = None
    enrollment_raw = raw.get("enrollment")
    if isinstance(enrollment_raw, dict) and optional_text(enrollment_raw.get("_id")):
        enrollment = Enrollment(
            id=str(enrollment_raw["_id"]),
            student_id=student_key,
            section_id=section_id,
            attendance_percentage=percentage,
        )

    return RosterEntry(
        student=Student(
            id=student_key,
            full_name=optional_text(raw.get("fullName")) or optional_text(raw.get("name")) or "",
            student_id=optional_text(raw.get("studentId")),
            photo_url=_photo_url(raw),
        ),
        enrollment=enrollment,
        attendance_percentage=percentage,
    )


class HttpRosterRepository(RosterRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    def get_roster(self, section_id: str, *, timeout: float) -> Sequence[RosterEntry]:
        data = request_json(self._conn, "GET", f"sections/{section_id}/students", timeout=timeout)
        roster: List[RosterEntry] = []
        for raw in data.get("students") or []:
            entry = parse_roster_item(raw, section_id) if isinstance(raw, dict) else None
            if entry is None:
                logger.warning("Skip roster item without id in section %s", section_id)
                continue
            roster.append(entry)
        return roster
