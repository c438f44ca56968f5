"""Example: drive the attendance service directly (no Flask).

Controllers are thin; everything below is what a POST /api/scan does.

    python -m examples.example_usage <section_id> <scanned code>
"""

import importlib
import sys

from config import get_settings_module

from src.qr_attendance.qr_attendance.container import build_container
from src.qr_attendance.qr_attendance.core.exceptions import DomainError
from src.qr_attendance.qr_attendance.core.logging import setup_logging
from src.qr_attendance.qr_attendance.sections.model import Section


def main():
    section_id, code = sys.argv[1], sys.argv[2]
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(api_config=settings.API_CONFIG)

    service = container.attendance_service
    service.open_section(Section(id=section_id, code=section_id))
    service.load_roster()
    try:
        outcome = service.scan(code)
    except DomainError as e:
        print(f"{type(e).__name__}: {e}")
        sys.exit(1)
    print(f"{outcome.name or outcome.student_id}: {outcome.status.value} ({outcome.attendance_percentage}%)")


if __name__ == "__main__":
    main()
