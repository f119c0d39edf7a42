from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.context import login_guard
from ..api.responses import format_api_response
from ..container import Container
from ..core.constants import DEFAULT_LIMIT, MAX_LIMIT


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @login_guard()
    def checkin(ctx):
        data = service.check_in(ctx.user)
        return jsonify(format_api_response(data, message="Checked in successfully"))

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="attendance_checkout")
    @login_guard()
    def checkout(ctx):
        data = service.check_out(ctx.user)
        return jsonify(format_api_response(data, message="Checked out successfully"))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_guard()
    def today(ctx):
        return jsonify(format_api_response(service.today(ctx.user)))

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_guard()
    def history(ctx):
        limit = max(1, min(MAX_LIMIT, request.args.get("limit", type=int) or DEFAULT_LIMIT))
        return jsonify(format_api_response(service.history(ctx.user, limit=limit)))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_guard()
    def list_attendance(ctx):
        data, total = service.list_attendance(ctx, request.args)
        return jsonify(format_api_response(data, pagination=ctx.pagination, total=total))
