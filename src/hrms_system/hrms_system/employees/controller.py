from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_actor, roles_required
from ..core.enums import Role
from ..container import Container

BASE = "/api/employees"


def register(app: Flask, container: Container) -> None:
    employees = container.employee_service
    balances = container.leave_balance_service

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    @app.route(BASE, methods=["POST"], endpoint="create_employee")
    @roles_required(Role.ADMIN)
    def create():
        return jsonify(employees.create(current_actor(), _body())), 201

    @app.route(f"{BASE}/renew-all-leave-balances", methods=["POST"], endpoint="renew_all_leave_balances")
    @roles_required(Role.ADMIN)
    def renew_all():
        return jsonify(balances.renew_all(year=_body().get("year")))

    @app.route(f"{BASE}/<int:employee_id>", methods=["PUT"], endpoint="update_employee")
    @roles_required(Role.ADMIN)
    def update(employee_id: int):
        return jsonify(employees.update(current_actor(), employee_id, _body()))

    @app.route(f"{BASE}/<int:employee_id>/status", methods=["PATCH"], endpoint="change_employee_status")
    @roles_required(Role.ADMIN)
    def change_status(employee_id: int):
        return jsonify(employees.change_status(employee_id, _body().get("status")))

    @app.route(f"{BASE}/<int:employee_id>/position", methods=["PATCH"], endpoint="change_employee_position")
    @roles_required(Role.ADMIN)
    def change_position(employee_id: int):
        return jsonify(employees.change_position(current_actor(), employee_id, _body()))

    @app.route(f"{BASE}/<int:employee_id>/position-history", methods=["GET"], endpoint="employee_position_history")
    @roles_required(Role.ADMIN)
    def position_history(employee_id: int):
        return jsonify(employees.position_history(employee_id))

    @app.route(f"{BASE}/<int:employee_id>/leave-balances", methods=["GET"], endpoint="employee_leave_balances")
    @roles_required(Role.ADMIN)
    def leave_balances(employee_id: int):
        return jsonify(balances.balances_by_year(employee_id, year=request.args.get("year")))

    @app.route(f"{BASE}/<int:employee_id>/renew-leave-balances", methods=["POST"], endpoint="renew_leave_balances")
    @roles_required(Role.ADMIN)
    def renew(employee_id: int):
        return jsonify(balances.renew_for_employee(employee_id, year=_body().get("year"))), 201
