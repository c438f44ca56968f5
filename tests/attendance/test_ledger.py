from __future__ import annotations

from datetime import date

import pytest

from src.qr_attendance.qr_attendance.attendance.ledger import Ledger
from src.qr_attendance.qr_attendance.attendance.model import SessionKey
from src.qr_attendance.qr_attendance.core.enums import AttendanceStatus
from src.qr_attendance.qr_attendance.core.exceptions import StaleSessionError

DAY = date(2025, 3, 1)


def test_set_returns_previous_and_last_write_wins():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)

    assert ledger.set("S1", AttendanceStatus.PRESENT, session_key=key) is None
    assert ledger.set("S1", AttendanceStatus.ABSENT, session_key=key) == AttendanceStatus.PRESENT
    assert ledger.get("S1") == AttendanceStatus.ABSENT
    assert len(ledger) == 1


def test_write_without_open_session_is_stale():
    ledger = Ledger()

    with pytest.raises(StaleSessionError):
        ledger.set("S1", AttendanceStatus.PRESENT)


def test_write_for_previous_section_is_stale():
    ledger = Ledger()
    old_key = ledger.open("SEC1", DAY)
    ledger.open("SEC2", DAY)

    with pytest.raises(StaleSessionError):
        ledger.set("S1", AttendanceStatus.PRESENT, session_key=old_key)
    assert ledger.snapshot() == {}


def test_opening_a_section_discards_entries():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("S1", AttendanceStatus.PRESENT, session_key=key)

    new_key = ledger.open("SEC2", DAY)

    assert new_key == SessionKey("SEC2", DAY)
    assert ledger.snapshot() == {}


def test_restore_previous_value_or_remove_entry():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("S1", AttendanceStatus.ABSENT, session_key=key)
    previous = ledger.set("S1", AttendanceStatus.PRESENT, session_key=key)

    assert ledger.restore("S1", previous, session_key=key) is True
    assert ledger.get("S1") == AttendanceStatus.ABSENT

    previous = ledger.set("S2", AttendanceStatus.PRESENT, session_key=key)
    ledger.restore("S2", previous, session_key=key)
    assert ledger.get("S2") is None


def test_restore_after_session_change_is_noop():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("S1", AttendanceStatus.PRESENT, session_key=key)
    new_key = ledger.open("SEC2", DAY)
    ledger.set("S1", AttendanceStatus.EXCUSED, session_key=new_key)

    assert ledger.restore("S1", None, session_key=key) is False
    assert ledger.get("S1") == AttendanceStatus.EXCUSED


def test_adopt_never_overwrites_local_entry():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("S1", AttendanceStatus.PRESENT, session_key=key)

    assert ledger.adopt("S1", AttendanceStatus.ABSENT, session_key=key) is False
    assert ledger.adopt("S2", AttendanceStatus.ABSENT, session_key=key) is True
    assert ledger.snapshot() == {"S1": AttendanceStatus.PRESENT, "S2": AttendanceStatus.ABSENT}


def test_missing_lists_students_without_status():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("S1", AttendanceStatus.PRESENT, session_key=key)

    assert ledger.missing(["S1", "S2", "S3"]) == ["S2", "S3"]


def test_close_clears_session():
    ledger = Ledger()
    ledger.open("SEC1", DAY)

    ledger.close()

    assert ledger.session_key is None
    assert len(ledger) == 0


def test_rekey_moves_entry_to_new_id():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("2023-1234", AttendanceStatus.EXCUSED, session_key=key)

    assert ledger.rekey("2023-1234", "db-1", session_key=key) is True
    assert ledger.snapshot() == {"db-1": AttendanceStatus.EXCUSED}
    assert ledger.rekey("2023-1234", "db-1", session_key=key) is False


def test_rekey_keeps_entry_already_under_new_id():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.set("2023-1234", AttendanceStatus.ABSENT, session_key=key)
    ledger.set("db-1", AttendanceStatus.PRESENT, session_key=key)

    ledger.rekey("2023-1234", "db-1", session_key=key)

    assert ledger.snapshot() == {"db-1": AttendanceStatus.PRESENT}


def test_rekey_for_closed_session_is_stale():
    ledger = Ledger()
    key = ledger.open("SEC1", DAY)
    ledger.close()

    with pytest.raises(StaleSessionError):
        ledger.rekey("a", "b", session_key=key)
