from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_text, require_non_empty
from ..container import Container
from ..core.exceptions import MissingSectionContext, ValidationError
from ..scanning.payload import build_payload
from ..scanning.qr_image import decode_qr_image, render_payload_png
from ..sections.model import Section
from .service import SubmitOutcome


def _parse_section(data) -> Section:
    if not isinstance(data, dict):
        raise ValidationError("section is required")

    def _text(*keys):
        for key in keys:
            value = data.get(key)
            if isinstance(value, dict):
                value = value.get("_id")
            value = optional_text(value)
            if value:
                return value
        return None

    section_id = _text("id", "_id")
    if not section_id:
        raise ValidationError("section.id is required")
    return Section(
        id=section_id,
        code=_text("code", "sectionCode") or section_id,
        course_id=_text("courseId", "course"),
        schedule=_text("schedule"),
        instructor_id=_text("instructorId", "instructor"),
    )


def _outcome_json(outcome: SubmitOutcome) -> dict:
    return {
        "success": True,
        "studentId": outcome.student_id,
        "status": outcome.status.value,
        "attendance": outcome.attendance_percentage,
        "name": outcome.name,
    }


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _session_json() -> dict:
        section = service.section
        key = container.ledger.session_key
        if section is None or key is None:
            return {"section": None, "date": None}
        return {
            "section": {"id": section.id, "code": section.code, "courseId": section.course_id},
            "date": key.on_date.isoformat(),
        }

    @app.route("/api/sections/open", methods=["POST"], endpoint="open_section")
    def open_section():
        data = request.get_json(silent=True) or {}
        section = _parse_section(data.get("section"))
        on_date = parse_iso_date(data["date"]) if data.get("date") else None

        service.open_section(section, on_date)
        service.load_roster()
        return jsonify({"success": True, **_session_json(), "students": service.roster_view()})

    @app.route("/api/sections/close", methods=["POST"], endpoint="close_section")
    def close_section():
        service.close_section()
        return jsonify({"success": True})

    @app.route("/api/roster", methods=["GET"], endpoint="roster")
    def roster():
        if service.section is None:
            raise MissingSectionContext()
        return jsonify({"success": True, **_session_json(), "students": service.roster_view()})

    @app.route("/api/roster/refresh", methods=["POST"], endpoint="refresh_roster")
    def refresh_roster():
        service.load_roster()
        return jsonify({"success": True, **_session_json(), "students": service.roster_view()})

    @app.route("/api/scan", methods=["POST"], endpoint="scan")
    def scan():
        data = request.get_json(silent=True) or {}
        outcome = service.scan(data.get("code") or "")
        return jsonify(_outcome_json(outcome))

    @app.route("/api/scan/image", methods=["POST"], endpoint="scan_image")
    def scan_image():
        if "image" not in request.files:
            raise ValidationError("image file is required")
        raw = decode_qr_image(request.files["image"].stream)
        outcome = service.scan(raw)
        return jsonify(_outcome_json(outcome))

    @app.route("/api/attendance/status", methods=["POST"], endpoint="mark_status")
    def mark_status():
        data = request.get_json(silent=True) or {}
        outcome = service.mark_status(data.get("studentId") or "", data.get("status"))
        return jsonify(_outcome_json(outcome))

    @app.route("/api/ledger", methods=["GET"], endpoint="ledger")
    def ledger():
        snapshot = service.ledger_snapshot()
        return jsonify(
            {
                "success": True,
                **_session_json(),
                "statuses": {sid: status.value for sid, status in snapshot.items()},
            }
        )

    @app.route("/api/reconcile", methods=["POST"], endpoint="reconcile")
    def reconcile():
        adopted = service.reconcile()
        return jsonify({"success": True, "adopted": adopted})

    @app.route("/api/students/<student_id>/qr.png", methods=["GET"], endpoint="student_qr")
    def student_qr(student_id: str):
        payload = build_payload(
            require_non_empty(student_id, "studentId"),
            name=optional_text(request.args.get("name")),
            enrollment_id=optional_text(request.args.get("enrollmentId")),
            section_id=optional_text(request.args.get("sectionId")),
        )
        png = render_payload_png(payload)
        return send_file(io.BytesIO(png), mimetype="image/png")
