from __future__ import annotations

import functools
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from ..api.retry import RetryPolicy, with_retry
from ..common.datetime_utils import today_local
from ..common.validators import parse_status, require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError, MissingSectionContext, NetworkError, ScanInProgress
from ..scanning.payload import Structured, normalize_payload
from ..scanning.resolver import resolve_section
from ..sections.model import RosterEntry, Section, find_in_roster
from ..sections.repository import RosterRepository
from .ledger import Ledger
from .model import SessionKey
from .percentage import PercentageBoard
from .reconciliation import Reconciler, ReconcileScheduler, TimerFactory
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    """A resolved scan, already applied optimistically to the ledger."""

    student_id: str
    status: AttendanceStatus
    section_id: str
    session_key: SessionKey
    enrollment_id: Optional[str] = None
    previous: Optional[AttendanceStatus] = None
    name: Optional[str] = None
    on_roster: bool = False


@dataclass(frozen=True)
class SubmitOutcome:
    student_id: str
    status: AttendanceStatus
    attendance_percentage: float
    name: Optional[str] = None


class AttendanceService:
    """Use case: take attendance for one section on one day.

    Owns the scan session (selected section, roster, displayed percentages)
    and drives the ledger it is given. Every backend write is optimistic:
    the ledger is updated first and rolled back if the write fails.
    """

    def __init__(
        self,
        ledger: Ledger,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        *,
        policy: Optional[RetryPolicy] = None,
        reconcile_delay: Optional[float] = None,
        percentages: Optional[PercentageBoard] = None,
        timer_factory: Optional[TimerFactory] = None,
        today: Callable[[], date] = today_local,
    ):
        self._ledger = ledger
        self._attendance = attendance
        self._rosters = roster
        self._policy = policy or RetryPolicy()
        self._reconciler = Reconciler(ledger, attendance, policy=self._policy)
        kwargs = {} if reconcile_delay is None else {"delay": reconcile_delay}
        self._scheduler = ReconcileScheduler(ledger, self._reconciler, timer_factory=timer_factory, **kwargs)
        self._percentages = percentages or PercentageBoard()
        self._today = today

        self._section: Optional[Section] = None
        self._roster: List[RosterEntry] = []
        self._roster_loaded = False
        self._roster_cache: Dict[str, List[RosterEntry]] = {}
        self._scan_guard = threading.Lock()

    @property
    def section(self) -> Optional[Section]:
        return self._section

    @property
    def roster(self) -> List[RosterEntry]:
        return list(self._roster)

    @property
    def reconciler(self) -> Reconciler:
        return self._reconciler

    def _require_section(self) -> Section:
        if self._section is None or self._ledger.session_key is None:
            raise MissingSectionContext()
        return self._section

    # ----- session -----

    def open_section(self, section: Section, on_date: Optional[date] = None) -> SessionKey:
        self._scheduler.cancel()
        key = self._ledger.open(section.id, on_date or self._today())
        self._section = section
        self._roster = []
        self._roster_loaded = False
        self._percentages.clear()
        logger.info("Opened section %s (%s) for %s", section.code, section.id, key.on_date)
        return key

    def close_section(self) -> None:
        self._scheduler.cancel()
        self._ledger.close()
        self._section = None
        self._roster = []
        self._roster_loaded = False
        self._percentages.clear()

    def load_roster(self) -> List[RosterEntry]:
        """(Re)load the enrolled students of the open section.

        The first load reconciles right away; later loads go through the
        debounced scheduler. An unreachable backend falls back to the last
        roster seen for this section.
        """

        section = self._require_section()
        fetch = functools.partial(self._rosters.get_roster, section.id)
        try:
            roster = list(with_retry(fetch, self._policy, label=f"roster for section {section.id}"))
        except NetworkError:
            cached = self._roster_cache.get(section.id)
            if cached is None:
                raise
            logger.warning("Roster for section %s unavailable; using %d cached students", section.id, len(cached))
            roster = cached
        else:
            self._roster_cache[section.id] = roster

        first_load = not self._roster_loaded
        self._roster = roster
        self._roster_loaded = True
        self._percentages.load(roster)
        self._rekey_ledger(roster)

        if first_load:
            self._reconciler.reconcile(section, self._ledger.session_key.on_date)
        else:
            self._scheduler.roster_changed(section, roster)
        return self.roster

    def _rekey_ledger(self, roster: Sequence[RosterEntry]) -> None:
        # Entries marked before the roster arrived are keyed by the scanned student number.
        key = self._ledger.session_key
        for entry in roster:
            external_id = entry.student.student_id
            if external_id and self._ledger.rekey(external_id, entry.student_key, session_key=key):
                logger.info("Ledger entry %s moved to roster id %s", external_id, entry.student_key)

    def _refresh_roster_for(self, student_id: str) -> None:
        """Reload the roster after the backend accepted a student it did not list."""

        if not self._roster_loaded:
            return
        logger.info("Student %s is not on the loaded roster; reloading it", student_id)
        try:
            self.load_roster()
        except DomainError as e:
            logger.warning("Roster reload after recording %s failed: %s", student_id, e)

    # ----- scanning -----

    def resolve_scan(self, raw: str) -> ScanResult:
        """Normalize and resolve a scanned code, then mark the student present.

        Parse and resolution errors are raised before the ledger is touched.
        """

        section = self._section
        key = self._ledger.session_key
        payload = normalize_payload(raw)
        resolved = resolve_section(payload, section if key is not None else None, self._roster)

        previous = self._ledger.set(resolved.student_id, AttendanceStatus.PRESENT, session_key=key)

        name = None
        if resolved.roster_entry is not None:
            name = resolved.roster_entry.student.full_name
        elif isinstance(payload, Structured):
            name = payload.payload.name

        return ScanResult(
            student_id=resolved.student_id,
            status=AttendanceStatus.PRESENT,
            section_id=resolved.section_id,
            session_key=key,
            enrollment_id=resolved.enrollment_id,
            previous=previous,
            name=name,
            on_roster=resolved.roster_entry is not None,
        )

    def submit_scan(self, result: ScanResult) -> SubmitOutcome:
        record = functools.partial(
            self._attendance.record_attendance,
            student_id=result.student_id,
            section_id=result.section_id,
            on_date=result.session_key.on_date,
            enrollment_id=result.enrollment_id,
        )
        try:
            response = with_retry(record, self._policy, label=f"record attendance for {result.student_id}")
        except DomainError as e:
            self._ledger.restore(result.student_id, result.previous, session_key=result.session_key)
            logger.warning("Attendance for %s not recorded, ledger rolled back: %s", result.student_id, e)
            raise

        percentage = self._percentages.apply(result.student_id, response.attendance_percentage)
        logger.info("Recorded %s present in section %s", result.student_id, result.section_id)
        if not result.on_roster:
            self._refresh_roster_for(result.student_id)
        return SubmitOutcome(
            student_id=result.student_id,
            status=result.status,
            attendance_percentage=percentage,
            name=result.name,
        )

    def scan(self, raw: str) -> SubmitOutcome:
        """Resolve and submit one scan; a second scan is refused while one is pending."""

        if not self._scan_guard.acquire(blocking=False):
            raise ScanInProgress()
        try:
            return self.submit_scan(self.resolve_scan(raw))
        finally:
            self._scan_guard.release()

    # ----- manual marking -----

    def mark_status(self, student_id: str, status) -> SubmitOutcome:
        section = self._require_section()
        key = self._ledger.session_key
        student_id = require_non_empty(student_id, "studentId")
        status = parse_status(status)

        entry = find_in_roster(self._roster, student_id)
        if entry is not None:
            student_id = entry.student_key

        previous = self._ledger.set(student_id, status, session_key=key)
        update = functools.partial(
            self._attendance.update_status,
            student_id=student_id,
            section_id=section.id,
            on_date=key.on_date,
            status=status,
        )
        try:
            response = with_retry(update, self._policy, label=f"mark {student_id} {status.value}")
        except DomainError as e:
            self._ledger.restore(student_id, previous, session_key=key)
            logger.warning("Status %s for %s not saved, ledger rolled back: %s", status.value, student_id, e)
            raise

        percentage = self._percentages.apply(student_id, response.attendance_percentage)
        if entry is None:
            self._refresh_roster_for(student_id)
        return SubmitOutcome(
            student_id=student_id,
            status=status,
            attendance_percentage=percentage,
            name=entry.student.full_name if entry else None,
        )

    # ----- read side -----

    def ledger_snapshot(self) -> Dict[str, AttendanceStatus]:
        return self._ledger.snapshot()

    def reconcile(self, section: Optional[Section] = None, on_date: Optional[date] = None) -> List[str]:
        section = section or self._require_section()
        key = self._ledger.session_key
        on_date = on_date or (key.on_date if key else self._today())
        return self._reconciler.reconcile(section, on_date)

    def displayed_percentage(self, student_id: str) -> float:
        return self._percentages.get(student_id)

    def roster_view(self) -> Sequence[dict]:
        snapshot = self._ledger.snapshot()
        rows = []
        for entry in self._roster:
            status = snapshot.get(entry.student_key)
            rows.append(
                {
                    "id": entry.student.id,
                    "studentId": entry.student.student_id,
                    "fullName": entry.student.full_name,
                    "photoUrl": entry.student.photo_url,
                    "enrollmentId": entry.enrollment_id,
                    "attendance": self._percentages.get(entry.student_key),
                    "status": status.value if status else None,
                }
            )
        return rows
