from __future__ import annotations

from flask import Flask, jsonify, request, send_from_directory

from ..api.context import feature_guard, login_guard
from ..api.responses import format_api_response
from ..auth.permissions import Feature
from ..common.validators import parse_payload
from ..container import Container
from .schemas import ChangePasswordRequest, CreateEmployeeRequest, UpdateEmployeeRequest, UpdateProfileRequest


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    @login_guard()
    def list_employees(ctx):
        items, total = service.list_employees(
            ctx,
            department=request.args.get("department") or None,
            status=request.args.get("status") or None,
            include_inactive=request.args.get("includeInactive", "false").lower() == "true",
        )
        return jsonify(format_api_response(items, pagination=ctx.pagination, total=total))

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    @feature_guard(Feature.MANAGE_EMPLOYEES, "employee management")
    def create_employee(ctx):
        body = parse_payload(CreateEmployeeRequest, request.get_json(silent=True))
        data = service.create(ctx.user, body)
        return jsonify(format_api_response(data, message="Employee created successfully")), 201

    @app.route("/api/employees/<int:employee_pk>", methods=["GET"], endpoint="employees_get")
    @login_guard()
    def get_employee(ctx, employee_pk: int):
        return jsonify(format_api_response(service.get(ctx.user, employee_pk)))

    @app.route("/api/employees/<int:employee_pk>", methods=["PUT"], endpoint="employees_update")
    @login_guard()
    def update_employee(ctx, employee_pk: int):
        body = parse_payload(UpdateEmployeeRequest, request.get_json(silent=True))
        data = service.update(ctx.user, employee_pk, body)
        return jsonify(format_api_response(data, message="Employee updated successfully"))

    @app.route("/api/employees/<int:employee_pk>", methods=["DELETE"], endpoint="employees_delete")
    @feature_guard(Feature.DELETE_EMPLOYEES, "delete employees")
    def delete_employee(ctx, employee_pk: int):
        service.delete(ctx.user, employee_pk)
        return jsonify(format_api_response(None, message="Employee deactivated successfully"))

    @app.route("/api/employees/me", methods=["GET"], endpoint="employees_me")
    @login_guard()
    def me(ctx):
        return jsonify(format_api_response(service.me(ctx.user)))

    @app.route("/api/employees/hierarchy", methods=["GET"], endpoint="employees_hierarchy")
    @login_guard()
    def hierarchy(ctx):
        return jsonify(format_api_response(service.hierarchy()))

    @app.route("/api/employees/organization", methods=["GET"], endpoint="employees_organization")
    @login_guard()
    def organization(ctx):
        return jsonify(format_api_response(service.organization()))

    @app.route("/api/employees/stats", methods=["GET"], endpoint="employees_stats")
    @login_guard()
    def stats(ctx):
        return jsonify(format_api_response(service.stats()))

    @app.route("/api/employees/profile", methods=["GET"], endpoint="profile_get")
    @login_guard()
    def get_profile(ctx):
        return jsonify(format_api_response(service.get_profile(ctx.user)))

    @app.route("/api/employees/profile", methods=["PUT"], endpoint="profile_update")
    @login_guard()
    def update_profile(ctx):
        body = parse_payload(UpdateProfileRequest, request.get_json(silent=True))
        return jsonify(format_api_response(service.update_profile(ctx.user, body), message="Profile updated"))

    @app.route("/api/employees/profile/password", methods=["PUT"], endpoint="profile_password")
    @login_guard()
    def change_password(ctx):
        body = parse_payload(ChangePasswordRequest, request.get_json(silent=True))
        service.change_password(ctx.user, body)
        return jsonify(format_api_response(None, message="Password changed successfully"))

    @app.route("/api/employees/profile/image", methods=["POST"], endpoint="profile_image_upload")
    @login_guard()
    def upload_image(ctx):
        data = service.set_image(ctx.user, request.files.get("image"))
        return jsonify(format_api_response(data, message="Profile image updated"))

    @app.route("/api/employees/profile/image", methods=["DELETE"], endpoint="profile_image_delete")
    @login_guard()
    def delete_image(ctx):
        service.remove_image(ctx.user)
        return jsonify(format_api_response(None, message="Profile image removed"))

    @app.route("/api/uploads/<path:filename>", methods=["GET"], endpoint="uploads")
    @login_guard()
    def uploaded_file(ctx, filename: str):
        return send_from_directory(container.image_store.folder, filename)
