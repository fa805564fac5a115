from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_actor, roles_required
from ..common.pagination import PageRequest
from ..common.validators import parse_limit, parse_page
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role
from ..container import Container

BASE = "/api/leave-policies"
APPLICATIONS = "/api/leave-applications"


def register(app: Flask, container: Container) -> None:
    policies = container.leave_policy_service
    applications = container.leave_application_service
    staff = (Role.ADMIN, Role.SUPERVISOR)

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    @app.route(BASE, methods=["POST"], endpoint="create_leave_policy")
    @roles_required(*staff)
    def create():
        return jsonify(policies.create(current_actor(), _body())), 201

    @app.route(f"{BASE}/<int:policy_id>", methods=["GET"], endpoint="get_leave_policy")
    @roles_required(*staff)
    def get_policy(policy_id: int):
        return jsonify(policies.get(policy_id))

    @app.route(f"{BASE}/<int:policy_id>", methods=["PUT"], endpoint="update_leave_policy")
    @roles_required(Role.ADMIN)
    def update(policy_id: int):
        return jsonify(policies.update(policy_id, _body()))

    @app.route(f"{BASE}/<int:policy_id>/status", methods=["PATCH"], endpoint="change_leave_policy_status")
    @roles_required(Role.ADMIN)
    def change_status(policy_id: int):
        return jsonify(policies.change_status(policy_id, _body().get("status")))

    @app.route(f"{BASE}/<int:policy_id>", methods=["DELETE"], endpoint="delete_leave_policy")
    @roles_required(Role.ADMIN)
    def delete(policy_id: int):
        return jsonify(policies.delete(policy_id))

    @app.route(APPLICATIONS, methods=["GET"], endpoint="list_leave_applications")
    @roles_required(*staff)
    def list_applications():
        page = PageRequest(
            page=parse_page(request.args.get("page"), 1),
            limit=parse_limit(request.args.get("limit"), DEFAULT_PAGE_SIZE),
        )
        return jsonify(applications.list_applications(page=page, search=request.args.get("search", "")))

    @app.route(f"{APPLICATIONS}/balance/<int:employee_id>", methods=["GET"], endpoint="employee_leave_balance")
    @roles_required(*staff)
    def employee_balance(employee_id: int):
        return jsonify(applications.employee_balance(employee_id))

    @app.route(APPLICATIONS, methods=["POST"], endpoint="create_leave_application")
    @roles_required(*staff)
    def create_application():
        return jsonify(applications.create(current_actor(), _body())), 201

    @app.route(f"{APPLICATIONS}/<int:application_id>", methods=["GET"], endpoint="get_leave_application")
    @roles_required(*staff)
    def get_application(application_id: int):
        return jsonify(applications.get(application_id))

    @app.route(f"{APPLICATIONS}/<int:application_id>", methods=["PUT"], endpoint="update_leave_application")
    @roles_required(*staff)
    def update_application(application_id: int):
        return jsonify(applications.update(current_actor(), application_id, _body()))

    @app.route(f"{APPLICATIONS}/<int:application_id>/approve", methods=["PATCH"], endpoint="approve_leave_application")
    @roles_required(Role.ADMIN)
    def approve_application(application_id: int):
        return jsonify(applications.approve(current_actor(), application_id))

    @app.route(f"{APPLICATIONS}/<int:application_id>/reject", methods=["PATCH"], endpoint="reject_leave_application")
    @roles_required(Role.ADMIN)
    def reject_application(application_id: int):
        return jsonify(applications.reject(current_actor(), application_id))

    @app.route(f"{APPLICATIONS}/<int:application_id>", methods=["DELETE"], endpoint="delete_leave_application")
    @roles_required(*staff)
    def delete_application(application_id: int):
        return jsonify(applications.delete(current_actor(), application_id))
