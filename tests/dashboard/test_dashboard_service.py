from __future__ import annotations

import pytest

from src.qr_attendance.qr_attendance.core.exceptions import NetworkTimeout, NetworkUnreachable, ServerRejected
from src.qr_attendance.qr_attendance.dashboard.service import DashboardService

RESOURCES = ("students", "courses")


class FakeCountRepo:
    def __init__(self, counts):
        self.counts = dict(counts)
        self.calls = []

    def get_count(self, resource, *, timeout):
        self.calls.append((resource, timeout))
        value = self.counts[resource]
        if isinstance(value, Exception):
            raise value
        return value


def test_all_counts_available():
    repo = FakeCountRepo({"students": 10, "courses": 4})

    data = DashboardService(repo, resources=RESOURCES).counts()

    assert data.counts == {"students": 10, "courses": 4}
    assert data.degraded == []


def test_one_failing_resource_degrades_to_zero():
    repo = FakeCountRepo({"students": 10, "courses": ServerRejected("boom", status_code=500)})

    data = DashboardService(repo, resources=RESOURCES).counts()

    assert data.counts == {"students": 10, "courses": 0}
    assert data.degraded == ["courses"]


def test_failing_resource_keeps_last_known_count():
    repo = FakeCountRepo({"students": 10, "courses": 4})
    service = DashboardService(repo, resources=RESOURCES)
    service.counts()

    repo.counts["courses"] = NetworkTimeout("slow")
    data = service.counts()

    assert data.counts["courses"] == 4
    assert data.degraded == ["courses"]


def test_everything_down_with_nothing_cached():
    repo = FakeCountRepo({"students": NetworkTimeout("a"), "courses": NetworkTimeout("b")})

    with pytest.raises(NetworkUnreachable):
        DashboardService(repo, resources=RESOURCES).counts()

    # two attempts per resource
    assert [r for r, _ in repo.calls] == ["students", "students", "courses", "courses"]


def test_everything_down_after_success_serves_cache():
    repo = FakeCountRepo({"students": 10, "courses": 4})
    service = DashboardService(repo, resources=RESOURCES)
    service.counts()
    repo.counts = {"students": NetworkTimeout("a"), "courses": NetworkTimeout("b")}

    data = service.counts()

    assert data.counts == {"students": 10, "courses": 4}
    assert data.degraded == ["students", "courses"]
