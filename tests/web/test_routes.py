from __future__ import annotations

import io
import json

import pytest
import requests

from src.qr_attendance.qr_attendance.container import build_container
from src.qr_attendance.qr_attendance.main import create_app
from tests.http_fakes import FakeResponse, FakeSession

ROSTER = {
    "success": True,
    "count": 1,
    "students": [
        {
            "_id": "db-1",
            "studentId": "2023-1234",
            "fullName": "Jane Doe",
            "enrollment": {"_id": "enr1", "attendance": {"percentage": 50}},
        }
    ],
}
NO_RECORDS = {"success": True, "count": 0, "data": []}


class ManualTimers:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, fn):
        timers = self

        class _Timer:
            def start(self):
                timers.timers.append(fn)

            def cancel(self):
                pass

        return _Timer()


@pytest.fixture()
def env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    session = FakeSession()
    container = build_container(
        api_config={"base_url": "http://backend.test/api", "token": "t"},
        session=session,
        timer_factory=ManualTimers(),
    )
    app = create_app(container)
    return app.test_client(), session, container


def _open(client, session):
    session.queue(FakeResponse(200, ROSTER), FakeResponse(200, NO_RECORDS))
    return client.post(
        "/api/sections/open",
        json={"section": {"_id": "sec1", "sectionCode": "CS101-A", "course": {"_id": "crs1"}}, "date": "2025-03-01"},
    )


def test_healthz(env):
    client, _, _ = env

    assert client.get("/healthz").get_json() == {"status": "ok"}


def test_open_section_loads_roster(env):
    client, session, _ = env

    res = _open(client, session)

    assert res.status_code == 200
    body = res.get_json()
    assert body["section"] == {"id": "sec1", "code": "CS101-A", "courseId": "crs1"}
    assert body["date"] == "2025-03-01"
    assert body["students"][0]["fullName"] == "Jane Doe"
    assert session.calls[1]["params"] == {"date": "2025-03-01"}


def test_open_section_requires_id(env):
    client, _, _ = env

    res = client.post("/api/sections/open", json={"section": {"code": "X"}})

    assert res.status_code == 400
    assert res.get_json()["code"] == "ValidationError"


def test_scan_records_attendance(env):
    client, session, container = env
    _open(client, session)
    session.queue(FakeResponse(201, {"success": True, "data": {"attendancePercentage": 75}}))

    res = client.post("/api/scan", json={"code": json.dumps({"studentId": "2023-1234", "sectionId": "sec1"})})

    assert res.status_code == 200
    assert res.get_json() == {
        "success": True,
        "studentId": "db-1",
        "status": "present",
        "attendance": 75,
        "name": "Jane Doe",
    }
    assert session.calls[-1]["json"]["enrollmentId"] == "enr1"
    assert client.get("/api/ledger").get_json()["statuses"] == {"db-1": "present"}


def test_scan_without_section(env):
    client, _, _ = env

    res = client.post("/api/scan", json={"code": "2023-1234"})

    assert res.status_code == 400
    assert res.get_json()["code"] == "MissingSectionContext"


def test_scan_section_mismatch(env):
    client, session, _ = env
    _open(client, session)

    res = client.post("/api/scan", json={"code": '{"studentId": "2023-1234", "sectionId": "sec9"}'})

    body = res.get_json()
    assert res.status_code == 400
    assert body["expected"] == "sec1"
    assert body["got"] == "sec9"
    assert body["retryable"] is False


def test_scan_numeric_section_id_mismatch(env):
    client, session, _ = env
    _open(client, session)

    res = client.post("/api/scan", json={"code": '{"studentId": "2023-1234", "sectionId": 999}'})

    assert res.status_code == 400
    assert res.get_json()["got"] == "999"
    assert client.get("/api/ledger").get_json()["statuses"] == {}


def test_scan_network_failure_is_retryable_and_rolled_back(env):
    client, session, _ = env
    _open(client, session)
    session.queue(requests.Timeout("t1"), requests.Timeout("t2"))

    res = client.post("/api/scan", json={"code": "2023-1234"})

    assert res.status_code == 503
    assert res.get_json()["retryable"] is True
    assert client.get("/api/ledger").get_json()["statuses"] == {}


def test_scan_duplicate_rejected_by_backend(env):
    client, session, _ = env
    _open(client, session)
    session.queue(FakeResponse(409, {"success": False, "message": "Attendance already recorded"}))

    res = client.post("/api/scan", json={"code": "2023-1234"})

    assert res.status_code == 502
    assert res.get_json()["message"] == "Attendance already recorded"


def test_mark_status(env):
    client, session, _ = env
    _open(client, session)
    session.queue(FakeResponse(200, {"success": True, "data": {"attendancePercentage": 40}}))

    res = client.post("/api/attendance/status", json={"studentId": "db-1", "status": "absent"})

    assert res.get_json()["status"] == "absent"
    assert session.calls[-1]["url"] == "http://backend.test/api/attendance/status"


def test_mark_status_invalid(env):
    client, session, _ = env
    _open(client, session)

    res = client.post("/api/attendance/status", json={"studentId": "db-1", "status": "late"})

    assert res.status_code == 400


def test_reconcile_adopts_server_state(env):
    client, session, _ = env
    _open(client, session)
    session.queue(FakeResponse(200, {"success": True, "data": [{"student": {"_id": "db-1"}, "status": "excused"}]}))

    res = client.post("/api/reconcile")

    assert res.get_json() == {"success": True, "adopted": ["db-1"]}


def test_roster_requires_open_section(env):
    client, session, _ = env

    assert client.get("/api/roster").status_code == 400

    _open(client, session)
    client.post("/api/sections/close")
    assert client.get("/api/roster").status_code == 400


def test_student_qr_png_scans_back(env):
    client, session, _ = env
    _open(client, session)
    png = client.get("/api/students/2023-1234/qr.png?sectionId=sec1&name=Jane")
    assert png.mimetype == "image/png"
    session.queue(FakeResponse(201, {"success": True}))

    res = client.post(
        "/api/scan/image",
        data={"image": (io.BytesIO(png.data), "code.png")},
        content_type="multipart/form-data",
    )

    assert res.status_code == 200
    assert res.get_json()["studentId"] == "db-1"


def test_scan_image_requires_file(env):
    client, session, _ = env
    _open(client, session)

    assert client.post("/api/scan/image", data={}, content_type="multipart/form-data").status_code == 400


def test_dashboard_degrades(env):
    client, session, _ = env
    session.queue(
        FakeResponse(200, {"success": True, "count": 10}),
        FakeResponse(500, {"success": False, "message": "db down"}),
        FakeResponse(200, {"success": True, "count": 4}),
        FakeResponse(200, {"success": True, "data": [{}, {}]}),
        FakeResponse(200, {"success": True, "count": 30}),
    )

    body = client.get("/api/dashboard").get_json()

    assert body["counts"] == {
        "students": 10,
        "instructors": 0,
        "courses": 4,
        "assigned-courses": 2,
        "enrollments": 30,
    }
    assert body["degraded"] == ["instructors"]


def test_dashboard_unreachable(env):
    client, session, _ = env
    session.queue(*[requests.ConnectionError("down") for _ in range(10)])

    res = client.get("/api/dashboard")

    assert res.status_code == 503
    assert res.get_json()["code"] == "NetworkUnreachable"
