from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.exceptions import MissingSectionContext, SectionMismatch
from ..sections.model import RosterEntry, Section, find_in_roster
from .payload import NormalizedPayload


@dataclass(frozen=True)
class ResolvedScan:
    """A payload validated against the open section, ready to be recorded."""

    student_id: str
    section_id: str
    enrollment_id: Optional[str] = None
    roster_entry: Optional[RosterEntry] = None


def resolve_section(
    payload: NormalizedPayload,
    section: Optional[Section],
    roster: Optional[Sequence[RosterEntry]] = None,
) -> ResolvedScan:
    """Validate a normalized payload against the selected section.

    Pure function: raises a ScanError subclass, never touches the ledger.

    - No section selected -> MissingSectionContext.
    - A carried section id must be the section's id or its course-offering id.
    - A payload without a section id is taken to be for the selected section.
    - A student found on the roster is keyed by the roster's backend id. A
      student missing from it keeps the scanned id; the backend decides
      whether they are enrolled.
    """

    if section is None:
        raise MissingSectionContext()

    if payload.section_id is not None and not section.accepts(payload.section_id):
        raise SectionMismatch(expected=section.id, got=payload.section_id)

    entry = find_in_roster(roster, payload.student_id)
    student_id = entry.student_key if entry is not None else payload.student_id

    return ResolvedScan(
        student_id=student_id,
        section_id=section.id,
        enrollment_id=payload.enrollment_id or (entry.enrollment_id if entry else None),
        roster_entry=entry,
    )
