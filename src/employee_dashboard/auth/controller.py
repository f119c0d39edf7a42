from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..api.context import login_guard
from ..api.responses import format_api_response
from ..container import Container
from .permissions import user_features


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        payload = request.get_json(silent=True) or {}
        user = container.auth_service.authenticate(payload.get("email", ""), payload.get("password", ""))

        session.clear()
        session.update(user.to_session())
        session.permanent = True
        return jsonify(format_api_response(_session_payload(user), message="Logged in"))

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return jsonify(format_api_response(None, message="Logged out"))

    @app.route("/api/auth/session", methods=["GET"], endpoint="auth_session")
    @login_guard()
    def current_session(ctx):
        return jsonify(format_api_response(_session_payload(ctx.user)))


def _session_payload(user) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "features": [f.value for f in user_features(user.role)],
    }
