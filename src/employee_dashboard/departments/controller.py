from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.context import feature_guard
from ..api.responses import format_api_response
from ..auth.permissions import Feature
from ..common.validators import parse_payload
from ..container import Container
from .schemas import CreateDepartmentRequest, UpdateDepartmentRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    @feature_guard(Feature.SYSTEM_SETTINGS, "department management")
    def list_departments(ctx):
        include_inactive = request.args.get("includeInactive", "false").lower() == "true"
        data = container.department_service.list_departments(include_inactive=include_inactive)
        return jsonify(format_api_response(data))

    @app.route("/api/departments", methods=["POST"], endpoint="departments_create")
    @feature_guard(Feature.SYSTEM_SETTINGS, "department management")
    def create_department(ctx):
        body = parse_payload(CreateDepartmentRequest, request.get_json(silent=True))
        data = container.department_service.create(body)
        return jsonify(format_api_response(data, message="Department created")), 201

    @app.route("/api/departments/<int:department_id>", methods=["GET"], endpoint="departments_get")
    @feature_guard(Feature.SYSTEM_SETTINGS, "department management")
    def get_department(ctx, department_id: int):
        return jsonify(format_api_response(container.department_service.get(department_id)))

    @app.route("/api/departments/<int:department_id>", methods=["PUT"], endpoint="departments_update")
    @feature_guard(Feature.SYSTEM_SETTINGS, "department management")
    def update_department(ctx, department_id: int):
        body = parse_payload(UpdateDepartmentRequest, request.get_json(silent=True))
        data = container.department_service.update(department_id, body)
        return jsonify(format_api_response(data, message="Department updated"))

    @app.route("/api/departments/<int:department_id>", methods=["DELETE"], endpoint="departments_delete")
    @feature_guard(Feature.SYSTEM_SETTINGS, "department management")
    def delete_department(ctx, department_id: int):
        container.department_service.delete(department_id)
        return jsonify(format_api_response(None, message="Department deleted"))
