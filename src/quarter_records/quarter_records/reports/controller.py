from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.http import login_required, required_int, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="attendance_report")
    @login_required
    def attendance_report():
        rows = service.attendance_summary(
            section_id=required_int(request.args.get("section_id"), "section_id"),
            period=request.args.get("period"),
        )
        return jsonify(to_json(rows))

    @app.route("/api/reports/grades", methods=["GET"], endpoint="grade_report")
    @login_required
    def grade_report():
        summary = service.grade_summary(
            section_id=required_int(request.args.get("section_id"), "section_id"),
            subject_id=required_int(request.args.get("subject_id"), "subject_id"),
            period=request.args.get("period"),
        )
        return jsonify(to_json(summary))

    @app.route("/api/reports/grades.xlsx", methods=["GET"], endpoint="export_grade_sheet")
    @login_required
    def export_grade_sheet():
        section_id = required_int(request.args.get("section_id"), "section_id")
        subject_id = required_int(request.args.get("subject_id"), "subject_id")
        period = request.args.get("period")
        content = service.export_grade_sheet(section_id=section_id, subject_id=subject_id, period=period)
        return send_file(
            io.BytesIO(content),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            as_attachment=True,
            download_name=f"grades_{section_id}_{subject_id}_{period}.xlsx",
        )
