from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_actor_id, login_required, payload, required_int, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_day")
    @login_required
    def attendance_day():
        rows = service.get_day(
            section_id=required_int(request.args.get("section_id"), "section_id"),
            attendance_date=parse_iso_date(request.args.get("date") or ""),
        )
        return jsonify(to_json(rows))

    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance_day")
    @login_required
    def record_attendance_day():
        data = payload()
        count = service.record_day(
            actor_id=current_actor_id(),
            section_id=required_int(data.get("section_id"), "section_id"),
            attendance_date=parse_iso_date(data.get("date") or ""),
            entries=data.get("entries") or [],
            period=data.get("period"),
        )
        return jsonify({"ok": True, "saved": count})
