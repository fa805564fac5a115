from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_actor, roles_required
from ..common.pagination import PageRequest
from ..common.validators import parse_limit, parse_page
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role
from ..container import Container

BASE = "/api/disciplinary-actions"


def register(app: Flask, container: Container) -> None:
    actions = container.disciplinary_service
    staff = (Role.ADMIN, Role.SUPERVISOR)

    @app.route(BASE, methods=["GET"], endpoint="list_disciplinary_actions")
    @roles_required(*staff)
    def list_actions():
        page = PageRequest(
            page=parse_page(request.args.get("page"), 1),
            limit=parse_limit(request.args.get("limit"), DEFAULT_PAGE_SIZE),
        )
        return jsonify(actions.list_actions(page=page, search=request.args.get("search", "")))

    @app.route(BASE, methods=["POST"], endpoint="create_disciplinary_action")
    @roles_required(*staff)
    def create():
        return jsonify(actions.create(current_actor(), request.get_json(silent=True) or {})), 201

    @app.route(f"{BASE}/<int:action_id>", methods=["GET"], endpoint="get_disciplinary_action")
    @roles_required(*staff)
    def get_action(action_id: int):
        return jsonify(actions.get(action_id))

    @app.route(f"{BASE}/<int:action_id>", methods=["PUT"], endpoint="update_disciplinary_action")
    @roles_required(Role.ADMIN)
    def update(action_id: int):
        return jsonify(actions.update(action_id, request.get_json(silent=True) or {}))

    @app.route(f"{BASE}/<int:action_id>/status", methods=["PATCH"], endpoint="toggle_disciplinary_action_status")
    @roles_required(Role.ADMIN)
    def toggle_status(action_id: int):
        return jsonify(actions.toggle_status(action_id))

    @app.route(f"{BASE}/<int:action_id>", methods=["DELETE"], endpoint="delete_disciplinary_action")
    @roles_required(Role.ADMIN)
    def delete(action_id: int):
        return jsonify(actions.delete(action_id))
