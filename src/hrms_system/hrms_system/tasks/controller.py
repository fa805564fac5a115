from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_actor, roles_required
from ..common.pagination import PageRequest
from ..common.validators import parse_limit, parse_page
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role
from ..container import Container

BASE = "/api/work-progress-reports"


def register(app: Flask, container: Container) -> None:
    tasks = container.task_service
    staff = (Role.ADMIN, Role.SUPERVISOR)

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    @app.route(BASE, methods=["GET"], endpoint="list_work_progress_reports")
    @roles_required(*staff)
    def list_reports():
        page = PageRequest(
            page=parse_page(request.args.get("page"), 1),
            limit=parse_limit(request.args.get("limit"), DEFAULT_PAGE_SIZE),
        )
        return jsonify(tasks.list_reports(page=page, search=request.args.get("search", "")))

    @app.route(BASE, methods=["POST"], endpoint="assign_work_progress_report")
    @roles_required(Role.ADMIN)
    def assign():
        return jsonify(tasks.assign(current_actor(), _body())), 201

    @app.route(f"{BASE}/employee-progress", methods=["GET"], endpoint="employee_progress_reports")
    @roles_required(*staff)
    def employee_progress():
        return jsonify(container.progress_service.build_report(request.args))

    @app.route(f"{BASE}/search-employees", methods=["GET"], endpoint="search_task_employees")
    @roles_required(*staff)
    def search_employees():
        return jsonify(tasks.search_employees(request.args.get("q", "")))

    @app.route(f"{BASE}/<int:report_id>", methods=["GET"], endpoint="get_work_progress_report")
    @roles_required(*staff)
    def get_report(report_id: int):
        return jsonify(tasks.get(report_id))

    @app.route(f"{BASE}/<int:report_id>", methods=["PUT"], endpoint="edit_work_progress_report")
    @roles_required(Role.ADMIN)
    def edit(report_id: int):
        return jsonify(tasks.edit(current_actor(), report_id, _body()))

    @app.route(f"{BASE}/<int:report_id>", methods=["DELETE"], endpoint="delete_work_progress_report")
    @roles_required(Role.ADMIN)
    def delete(report_id: int):
        return jsonify(tasks.delete(current_actor(), report_id))

    @app.route(f"{BASE}/<int:report_id>/start", methods=["PUT"], endpoint="start_task")
    @roles_required(*staff)
    def start(report_id: int):
        return jsonify(tasks.start(current_actor(), report_id))

    @app.route(f"{BASE}/<int:report_id>/complete", methods=["PUT"], endpoint="complete_task")
    @roles_required(*staff)
    def complete(report_id: int):
        return jsonify(tasks.complete(current_actor(), report_id))

    @app.route(f"{BASE}/<int:report_id>/remarks", methods=["POST"], endpoint="add_task_remarks")
    @roles_required(*staff)
    def add_remarks(report_id: int):
        return jsonify(tasks.add_remarks(current_actor(), report_id, _body()))

    @app.route(f"{BASE}/<int:report_id>/close", methods=["PUT"], endpoint="close_task")
    @roles_required(Role.ADMIN)
    def close(report_id: int):
        return jsonify(tasks.close(current_actor(), report_id, _body()))
