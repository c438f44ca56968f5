from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Section:
    """A scheduled offering of a course; fixed for the whole scan session."""

    id: str
    code: str
    course_id: Optional[str] = None
    schedule: Optional[str] = None
    instructor_id: Optional[str] = None

    def accepts(self, section_id: str) -> bool:
        """Upstream data refers to a section either by its own id or by the course-offering id."""
        return section_id == self.id or (self.course_id is not None and section_id == self.course_id)


@dataclass(frozen=True)
class Student:
    id: str
    full_name: str
    student_id: Optional[str] = None
    photo_url: Optional[str] = None

    def matches(self, scanned_id: str) -> bool:
        return scanned_id == self.id or (self.student_id is not None and scanned_id == self.student_id)


@dataclass(frozen=True)
class Enrollment:
    id: str
    student_id: str
    section_id: str
    attendance_percentage: float = 0


@dataclass(frozen=True)
class RosterEntry:
    """Read-model: one enrolled student as returned by the roster endpoint."""

    student: Student
    enrollment: Optional[Enrollment] = None
    attendance_percentage: float = 0

    @property
    def student_key(self) -> str:
        return self.student.id

    @property
    def enrollment_id(self) -> Optional[str]:
        return self.enrollment.id if self.enrollment else None


def find_in_roster(roster, scanned_id: str) -> Optional[RosterEntry]:
    for entry in roster or ():
        if entry.student.matches(scanned_id):
            return entry
    return None
