from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import StaleSessionError
from .model import SessionKey

logger = logging.getLogger(__name__)


class Ledger:
    """Per-session map of student id -> attendance status.

    One ledger serves one (section, date) at a time. Entries are transient:
    opening another section or closing the session discards them. Writes are
    last-write-wins; the only history kept is the previous value handed back
    by set() for rollback.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._key: Optional[SessionKey] = None
        self._entries: Dict[str, AttendanceStatus] = {}

    @property
    def session_key(self) -> Optional[SessionKey]:
        return self._key

    def open(self, section_id: str, on_date: date) -> SessionKey:
        with self._lock:
            self._key = SessionKey(section_id=section_id, on_date=on_date)
            self._entries = {}
            return self._key

    def close(self) -> None:
        with self._lock:
            self._key = None
            self._entries = {}

    def _check_key(self, session_key: Optional[SessionKey]) -> None:
        if self._key is None:
            raise StaleSessionError("No attendance session is open")
        if session_key is not None and session_key != self._key:
            raise StaleSessionError(
                f"Session {session_key.section_id}@{session_key.on_date} is no longer open"
            )

    def get(self, student_id: str) -> Optional[AttendanceStatus]:
        with self._lock:
            return self._entries.get(student_id)

    def set(
        self,
        student_id: str,
        status: AttendanceStatus,
        *,
        session_key: Optional[SessionKey] = None,
    ) -> Optional[AttendanceStatus]:
        """Compare-and-assign against the open session; returns the previous status."""

        with self._lock:
            self._check_key(session_key)
            previous = self._entries.get(student_id)
            self._entries[student_id] = AttendanceStatus(status)
            return previous

    def restore(
        self,
        student_id: str,
        previous: Optional[AttendanceStatus],
        *,
        session_key: SessionKey,
    ) -> bool:
        """Undo an optimistic set(). No-op once the session has changed."""

        with self._lock:
            if self._key is None or session_key != self._key:
                logger.info("Skip rollback for %s: session %s is closed", student_id, session_key)
                return False
            if previous is None:
                self._entries.pop(student_id, None)
            else:
                self._entries[student_id] = previous
            return True

    def adopt(self, student_id: str, status: AttendanceStatus, *, session_key: SessionKey) -> bool:
        """Write only if the student has no entry yet (local entries win)."""

        with self._lock:
            self._check_key(session_key)
            if student_id in self._entries:
                return False
            self._entries[student_id] = AttendanceStatus(status)
            return True

    def rekey(self, old_id: str, new_id: str, *, session_key: SessionKey) -> bool:
        """Move an entry recorded under ``old_id`` to ``new_id``.

        An entry already held under ``new_id`` is kept; the old one is dropped.
        """

        with self._lock:
            self._check_key(session_key)
            if old_id == new_id or old_id not in self._entries:
                return False
            status = self._entries.pop(old_id)
            self._entries.setdefault(new_id, status)
            return True

    def snapshot(self) -> Dict[str, AttendanceStatus]:
        with self._lock:
            return dict(self._entries)

    def missing(self, student_ids: Iterable[str]) -> List[str]:
        with self._lock:
            return [sid for sid in student_ids if sid not in self._entries]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
