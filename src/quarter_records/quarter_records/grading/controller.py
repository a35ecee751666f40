from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor_id, login_required, optional_int, payload, required_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.gradebook_service

    @app.route("/api/grades", methods=["GET"], endpoint="list_grades")
    @login_required
    def list_grades():
        rows = service.list_section_grades(
            section_id=required_int(request.args.get("section_id"), "section_id"),
            subject_id=required_int(request.args.get("subject_id"), "subject_id"),
            period=request.args.get("period"),
        )
        return jsonify(rows)

    @app.route("/api/grades", methods=["POST"], endpoint="record_grade")
    @login_required
    def record_grade():
        data = payload()
        service.record_grade_component(
            actor_id=current_actor_id(),
            student_id=required_int(data.get("student_id"), "student_id"),
            section_id=required_int(data.get("section_id"), "section_id"),
            subject_id=required_int(data.get("subject_id"), "subject_id"),
            period=data.get("period"),
            component_type=data.get("component_type"),
            score=data.get("score"),
        )
        return jsonify({"ok": True})

    @app.route("/api/grades/final", methods=["POST"], endpoint="recompute_final")
    @login_required
    def recompute_final():
        data = payload()
        final = service.recompute_final(
            actor_id=current_actor_id(),
            student_id=required_int(data.get("student_id"), "student_id"),
            section_id=required_int(data.get("section_id"), "section_id"),
            subject_id=required_int(data.get("subject_id"), "subject_id"),
            period=data.get("period"),
        )
        return jsonify({"final": final})

    @app.route("/api/feedback", methods=["POST"], endpoint="record_feedback")
    @login_required
    def record_feedback():
        data = payload()
        service.record_feedback(
            actor_id=current_actor_id(),
            student_id=required_int(data.get("student_id"), "student_id"),
            section_id=required_int(data.get("section_id"), "section_id"),
            subject_id=optional_int(data.get("subject_id"), "subject_id"),
            period=data.get("period"),
            text=data.get("feedback", ""),
        )
        return jsonify({"ok": True})
