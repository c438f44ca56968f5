"""Write a student's attendance QR code to a PNG file.

Usage:
    python -m scripts.make_student_qr <studentId> [sectionId] [out.png]
"""

from __future__ import annotations

import sys
from pathlib import Path

from src.qr_attendance.qr_attendance.scanning.payload import build_payload
from src.qr_attendance.qr_attendance.scanning.qr_image import render_payload_png


def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    student_id = sys.argv[1]
    section_id = sys.argv[2] if len(sys.argv) > 2 else None
    out_file = Path(sys.argv[3] if len(sys.argv) > 3 else f"qr_{student_id}.png")

    payload = build_payload(student_id, section_id=section_id)
    out_file.write_bytes(render_payload_png(payload))
    print(f"[qr-attendance] wrote {out_file}")


if __name__ == "__main__":
    main()
