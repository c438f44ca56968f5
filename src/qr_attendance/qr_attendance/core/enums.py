from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status for one student in one section on one day."""

    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"
