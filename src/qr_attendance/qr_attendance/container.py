from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from .api.connection import ApiConfig, ApiConnection
from .attendance.http_attendance_repository import HttpAttendanceRepository
from .attendance.ledger import Ledger
from .attendance.reconciliation import TimerFactory
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_RECONCILE_DEBOUNCE_SECONDS
from .dashboard.http_count_repository import HttpCountRepository
from .dashboard.service import DashboardService
from .sections.http_roster_repository import HttpRosterRepository


@dataclass(frozen=True)
class Container:
    conn: ApiConnection

    roster_repo: HttpRosterRepository
    attendance_repo: HttpAttendanceRepository
    count_repo: HttpCountRepository

    ledger: Ledger
    attendance_service: AttendanceService
    dashboard_service: DashboardService


def build_container(
    *,
    api_config: dict,
    reconcile_delay: float = DEFAULT_RECONCILE_DEBOUNCE_SECONDS,
    session: Optional[requests.Session] = None,
    timer_factory: Optional[TimerFactory] = None,
) -> Container:
    config = ApiConfig.from_dict(api_config)
    conn = ApiConnection(config, session=session)
    policy = config.retry_policy()

    roster_repo = HttpRosterRepository(conn)
    attendance_repo = HttpAttendanceRepository(conn)
    count_repo = HttpCountRepository(conn)

    ledger = Ledger()
    attendance_service = AttendanceService(
        ledger,
        attendance_repo,
        roster_repo,
        policy=policy,
        reconcile_delay=reconcile_delay,
        timer_factory=timer_factory,
    )
    dashboard_service = DashboardService(count_repo, policy=policy)

    return Container(
        conn=conn,
        roster_repo=roster_repo,
        attendance_repo=attendance_repo,
        count_repo=count_repo,
        ledger=ledger,
        attendance_service=attendance_service,
        dashboard_service=dashboard_service,
    )
