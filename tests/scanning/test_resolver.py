from __future__ import annotations

import pytest

from src.qr_attendance.qr_attendance.core.exceptions import MissingSectionContext, SectionMismatch
from src.qr_attendance.qr_attendance.scanning.payload import normalize_payload
from src.qr_attendance.qr_attendance.scanning.resolver import resolve_section
from src.qr_attendance.qr_attendance.sections.model import Enrollment, RosterEntry, Section, Student

SECTION = Section(id="SEC1", code="CS101-A", course_id="CRS1")


def _roster():
    return [
        RosterEntry(
            student=Student(id="db-1", full_name="Jane Doe", student_id="S1"),
            enrollment=Enrollment(id="E1", student_id="db-1", section_id="SEC1"),
            attendance_percentage=80,
        ),
        RosterEntry(student=Student(id="db-2", full_name="John Roe", student_id="S2")),
    ]


def test_no_section_selected():
    with pytest.raises(MissingSectionContext):
        resolve_section(normalize_payload("S1"), None)


def test_section_mismatch_reports_both_ids():
    with pytest.raises(SectionMismatch) as e:
        resolve_section(normalize_payload('{"studentId": "S1", "sectionId": "OTHER"}'), SECTION)

    assert e.value.expected == "SEC1"
    assert e.value.got == "OTHER"


def test_course_id_is_accepted_as_section_reference():
    resolved = resolve_section(normalize_payload('{"studentId": "S1", "sectionId": "CRS1"}'), SECTION)

    assert resolved.section_id == "SEC1"
    assert resolved.student_id == "S1"


def test_bare_payload_assumes_selected_section():
    resolved = resolve_section(normalize_payload("S9"), SECTION)

    assert resolved.section_id == "SEC1"
    assert resolved.enrollment_id is None
    assert resolved.roster_entry is None


def test_roster_match_uses_backend_id_and_enrollment():
    resolved = resolve_section(normalize_payload("S1"), SECTION, _roster())

    assert resolved.student_id == "db-1"
    assert resolved.enrollment_id == "E1"
    assert resolved.roster_entry.student.full_name == "Jane Doe"


def test_payload_enrollment_wins_over_roster():
    resolved = resolve_section(normalize_payload('{"studentId": "db-1", "enrollmentId": "E9"}'), SECTION, _roster())

    assert resolved.enrollment_id == "E9"


def test_student_missing_from_roster_keeps_scanned_id():
    resolved = resolve_section(normalize_payload('{"studentId": "S3", "sectionId": "SEC1"}'), SECTION, _roster())

    assert resolved.student_id == "S3"
    assert resolved.section_id == "SEC1"
    assert resolved.roster_entry is None


def test_numeric_section_id_for_other_section_is_rejected():
    with pytest.raises(SectionMismatch) as e:
        resolve_section(normalize_payload('{"studentId": "S1", "sectionId": 999}'), SECTION)

    assert e.value.got == "999"


def test_empty_roster_defers_to_backend():
    resolved = resolve_section(normalize_payload("S3"), SECTION, [])

    assert resolved.student_id == "S3"
