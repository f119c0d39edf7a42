from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.context import login_guard
from ..api.responses import format_api_response
from ..common.validators import parse_payload
from ..container import Container
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT, MAX_LIMIT
from .schemas import MarkNotificationsRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_guard()
    def list_notifications(ctx):
        limit = request.args.get("limit", type=int) or DEFAULT_NOTIFICATION_LIMIT
        limit = max(1, min(MAX_LIMIT, limit))
        unread_only = request.args.get("unreadOnly", "false").lower() == "true"
        data = container.notification_service.list_for_user(ctx.user_id, limit=limit, unread_only=unread_only)
        return jsonify(format_api_response(data))

    @app.route("/api/notifications", methods=["PUT"], endpoint="notifications_mark")
    @login_guard()
    def mark_notifications(ctx):
        body = parse_payload(MarkNotificationsRequest, request.get_json(silent=True) or {})
        updated = container.notification_service.mark(
            ctx.user_id,
            ids=body.notification_ids,
            mark_as_read=body.mark_as_read,
        )
        return jsonify(format_api_response({"updated": updated}, message="Notifications updated"))
