from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.context import feature_guard, login_guard
from ..api.responses import format_api_response
from ..auth.permissions import Feature
from ..common.validators import parse_payload
from ..container import Container
from .schemas import UpdateCompanySettingsRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/settings/company", methods=["GET"], endpoint="settings_company")
    @login_guard()
    def company_settings(ctx):
        return jsonify(format_api_response(container.settings_service.get_company()))

    @app.route("/api/settings/company", methods=["PUT"], endpoint="settings_company_update")
    @feature_guard(Feature.SYSTEM_SETTINGS, "company settings")
    def update_company_settings(ctx):
        body = parse_payload(UpdateCompanySettingsRequest, request.get_json(silent=True))
        data = container.settings_service.update_company(body)
        return jsonify(format_api_response(data, message="Settings updated"))

    @app.route("/api/settings/managers", methods=["GET"], endpoint="settings_managers")
    @feature_guard(Feature.MANAGE_EMPLOYEES, "manager list")
    def managers(ctx):
        return jsonify(format_api_response(container.settings_service.list_managers()))
