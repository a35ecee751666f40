from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor_id, login_required, optional_int, payload, required_int, to_json
from ..container import Container
from . import workflow
from .model import QuarterPackage


def package_json(p: QuarterPackage) -> dict:
    data = to_json(p)
    data["status_label"] = workflow.label_for(p.status)
    data["editable"] = workflow.is_editable(p.status)
    return data


def register(app: Flask, container: Container) -> None:
    service = container.package_service

    @app.route("/api/packages", methods=["GET"], endpoint="list_packages")
    @login_required
    def list_packages():
        status = request.args.get("status")
        if status:
            return jsonify([package_json(p) for p in service.list_packages(status=status)])

        section_id = required_int(request.args.get("section_id"), "section_id")
        period = request.args.get("period")
        if not period:
            return jsonify([package_json(p) for p in service.list_section_packages(section_id=section_id)])

        p = service.get_package(
            section_id=section_id,
            subject_id=optional_int(request.args.get("subject_id"), "subject_id"),
            period=period,
        )
        return jsonify(package_json(p) if p else None)

    @app.route("/api/advisers/<int:adviser_id>/packages", methods=["GET"], endpoint="adviser_packages")
    @login_required
    def adviser_packages(adviser_id: int):
        packages = service.list_adviser_packages(adviser_id=adviser_id, status=request.args.get("status"))
        return jsonify([package_json(p) for p in packages])

    @app.route("/api/packages/<int:package_id>", methods=["GET"], endpoint="get_package")
    @login_required
    def get_package(package_id: int):
        return jsonify(package_json(service.get_package_by_id(package_id)))

    @app.route("/api/packages/<int:package_id>/history", methods=["GET"], endpoint="package_history")
    @login_required
    def package_history(package_id: int):
        return jsonify(to_json(service.get_history(package_id)))

    @app.route("/api/packages/submit", methods=["POST"], endpoint="submit_package")
    @login_required
    def submit_package():
        data = payload()
        p = service.submit_package(
            section_id=required_int(data.get("section_id"), "section_id"),
            subject_id=optional_int(data.get("subject_id"), "subject_id"),
            period=data.get("period"),
            actor_id=current_actor_id(),
        )
        return jsonify(package_json(p))

    @app.route("/api/packages/<int:package_id>/approve", methods=["POST"], endpoint="approve_package")
    @login_required
    def approve_package(package_id: int):
        p = service.approve_package(package_id=package_id, actor_id=current_actor_id())
        return jsonify(package_json(p))

    @app.route("/api/packages/<int:package_id>/return", methods=["POST"], endpoint="return_package")
    @login_required
    def return_package(package_id: int):
        p = service.return_package(
            package_id=package_id,
            actor_id=current_actor_id(),
            remarks=payload().get("remarks", ""),
        )
        return jsonify(package_json(p))

    @app.route("/api/packages/<int:package_id>/publish", methods=["POST"], endpoint="publish_package")
    @login_required
    def publish_package(package_id: int):
        p = service.publish_package(package_id=package_id, actor_id=current_actor_id())
        return jsonify(package_json(p))
