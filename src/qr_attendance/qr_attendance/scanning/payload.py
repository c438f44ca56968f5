from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..common.datetime_utils import parse_iso_timestamp
from ..common.validators import optional_text
from ..core.exceptions import EmptyPayload

# Older student apps encoded the backend document id instead of studentId.
STUDENT_ID_KEYS = ("studentId", "student_id", "_id", "id")


@dataclass(frozen=True)
class QRPayload:
    """What a student's code carries once decoded."""

    student_id: str
    section_id: Optional[str] = None
    enrollment_id: Optional[str] = None
    name: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Bare:
    """Legacy code holding nothing but a student id."""

    student_id: str

    @property
    def section_id(self) -> Optional[str]:
        return None

    @property
    def enrollment_id(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Structured:
    payload: QRPayload

    @property
    def student_id(self) -> str:
        return self.payload.student_id

    @property
    def section_id(self) -> Optional[str]:
        return self.payload.section_id

    @property
    def enrollment_id(self) -> Optional[str]:
        return self.payload.enrollment_id


NormalizedPayload = Union[Bare, Structured]


def _id_text(value) -> Optional[str]:
    """Ids may arrive as strings or as JSON numbers."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return optional_text(value)


def _student_id_from(data: dict) -> Optional[str]:
    for key in STUDENT_ID_KEYS:
        value = _id_text(data.get(key))
        if value:
            return value
    return None


def normalize_payload(raw: Optional[str]) -> NormalizedPayload:
    """Turn a raw scan string into a tagged payload.

    Malformed or id-less JSON degrades to a bare student id instead of
    failing, so a damaged code can still be scanned.
    """

    text = (raw or "").strip()
    if not text:
        raise EmptyPayload()

    try:
        data = json.loads(text)
    except ValueError:
        return Bare(student_id=text)

    if not isinstance(data, dict):
        return Bare(student_id=text)

    student_id = _student_id_from(data)
    if not student_id:
        return Bare(student_id=text)

    timestamp = data.get("timestamp")
    return Structured(
        QRPayload(
            student_id=student_id,
            section_id=_id_text(data.get("sectionId")),
            enrollment_id=_id_text(data.get("enrollmentId")),
            name=optional_text(data.get("name")),
            timestamp=parse_iso_timestamp(timestamp) if isinstance(timestamp, str) else None,
        )
    )


def build_payload(
    student_id: str,
    *,
    name: Optional[str] = None,
    enrollment_id: Optional[str] = None,
    section_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> str:
    """Wire JSON for the student-facing code (the inverse of normalize_payload)."""

    body = {"studentId": student_id}
    if name:
        body["name"] = name
    if enrollment_id:
        body["enrollmentId"] = enrollment_id
    if section_id:
        body["sectionId"] = section_id
    body["timestamp"] = (timestamp or datetime.now().astimezone()).isoformat()
    return json.dumps(body, ensure_ascii=False)
