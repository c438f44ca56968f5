from __future__ import annotations

import functools
import logging
import threading
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from ..api.retry import RetryPolicy, with_retry
from ..core.constants import DEFAULT_RECONCILE_DEBOUNCE_SECONDS
from ..core.exceptions import NetworkError, ServerError, StaleSessionError, ValidationError
from ..sections.model import RosterEntry, Section
from .ledger import Ledger
from .model import AttendanceRecord, SessionKey
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def merge_server_records(ledger: Ledger, records: Iterable[AttendanceRecord], *, session_key: SessionKey) -> List[str]:
    """Adopt server statuses for students the ledger has no entry for.

    Entries set during this session are never overwritten: a snapshot
    fetched from the server may already be older than them.
    """

    adopted: List[str] = []
    for record in records:
        if ledger.adopt(record.student_id, record.status, session_key=session_key):
            adopted.append(record.student_id)
    return adopted


class Reconciler:
    def __init__(self, ledger: Ledger, attendance: AttendanceRepository, *, policy: RetryPolicy):
        self._ledger = ledger
        self._attendance = attendance
        self._policy = policy

    def reconcile(self, section: Section, on_date: date) -> List[str]:
        """Pull the day's server records for ``section`` and merge them.

        Fire-and-forget: failures are logged and leave the ledger as it was.
        Returns the student ids whose status was adopted.
        """

        session_key = self._ledger.session_key
        if session_key != SessionKey(section_id=section.id, on_date=on_date):
            logger.info("Skip reconcile for %s@%s: not the open session", section.id, on_date)
            return []

        fetch = functools.partial(self._attendance.get_section_records, section.id, on_date)
        try:
            records = with_retry(fetch, self._policy, label=f"attendance for section {section.id}")
        except (NetworkError, ServerError, ValidationError) as e:
            logger.warning("Reconcile for section %s@%s skipped: %s", section.id, on_date, e)
            return []

        try:
            adopted = merge_server_records(self._ledger, records, session_key=session_key)
        except StaleSessionError:
            logger.info("Section %s closed while reconciling; server records dropped", section.id)
            return []

        logger.info(
            "Reconciled section %s@%s: %d server records, %d adopted",
            section.id, on_date, len(records), len(adopted),
        )
        return adopted


TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _daemon_timer(interval: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, fn)
    timer.daemon = True
    return timer


class ReconcileScheduler:
    """Debounced reconciliation on roster changes.

    Each roster change cancels the pending check and starts a new one, so a
    burst of updates costs one fetch. When the timer fires, reconciliation
    runs only if a roster student still has no ledger entry.
    """

    def __init__(
        self,
        ledger: Ledger,
        reconciler: Reconciler,
        *,
        delay: float = DEFAULT_RECONCILE_DEBOUNCE_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self._ledger = ledger
        self._reconciler = reconciler
        self._delay = float(delay)
        self._timer_factory = timer_factory or _daemon_timer
        self._lock = threading.Lock()
        self._pending: Optional[threading.Timer] = None

    def roster_changed(self, section: Section, roster: Sequence[RosterEntry]) -> None:
        if not roster:
            return
        student_ids = [e.student_key for e in roster]
        with self._lock:
            self._cancel_locked()
            self._pending = self._timer_factory(self._delay, lambda: self._fire(section, student_ids))
            self._pending.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, section: Section, student_ids: List[str]) -> None:
        key = self._ledger.session_key
        if key is None or key.section_id != section.id:
            return

        missing = self._ledger.missing(student_ids)
        if not missing:
            logger.debug("All %d students in section %s have a status", len(student_ids), section.id)
            return

        logger.info("%d students in section %s have no status; reconciling", len(missing), section.id)
        self._reconciler.reconcile(section, key.on_date)
