from __future__ import annotations

from flask import Flask, jsonify, request

from ..api.context import feature_guard, login_guard
from ..api.responses import format_api_response
from ..auth.permissions import Feature
from ..common.validators import parse_payload
from ..container import Container
from .schemas import CreateTaskNoteRequest, CreateTaskRequest, UpdateTaskRequest
from .service import parse_task_filters


def register(app: Flask, container: Container) -> None:
    service = container.task_service

    @app.route("/api/tasks", methods=["GET"], endpoint="tasks_list")
    @login_guard()
    def list_tasks(ctx):
        items, total = service.list_tasks(ctx, parse_task_filters(request.args))
        return jsonify(format_api_response(items, pagination=ctx.pagination, total=total))

    @app.route("/api/tasks", methods=["POST"], endpoint="tasks_create")
    @feature_guard(Feature.CREATE_TASKS, "task creation")
    def create_task(ctx):
        body = parse_payload(CreateTaskRequest, request.get_json(silent=True))
        data = service.create(ctx.user, body)
        return jsonify(format_api_response(data, message="Task created successfully")), 201

    @app.route("/api/tasks/stats", methods=["GET"], endpoint="tasks_stats")
    @login_guard()
    def task_stats(ctx):
        return jsonify(format_api_response(service.stats(ctx)))

    @app.route("/api/tasks/<int:task_id>", methods=["GET"], endpoint="tasks_get")
    @login_guard()
    def get_task(ctx, task_id: int):
        return jsonify(format_api_response(service.get(ctx.user, task_id)))

    @app.route("/api/tasks/<int:task_id>", methods=["PUT"], endpoint="tasks_update")
    @login_guard()
    def update_task(ctx, task_id: int):
        body = parse_payload(UpdateTaskRequest, request.get_json(silent=True))
        data = service.update(ctx.user, task_id, body)
        return jsonify(format_api_response(data, message="Task updated successfully"))

    @app.route("/api/tasks/<int:task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @feature_guard(Feature.CREATE_TASKS, "task deletion")
    def delete_task(ctx, task_id: int):
        service.delete(ctx.user, task_id)
        return jsonify(format_api_response(None, message="Task deleted successfully"))

    @app.route("/api/tasks/<int:task_id>/notes", methods=["GET"], endpoint="task_notes_list")
    @login_guard()
    def list_notes(ctx, task_id: int):
        return jsonify(format_api_response(service.list_notes(ctx.user, task_id)))

    @app.route("/api/tasks/<int:task_id>/notes", methods=["POST"], endpoint="task_notes_create")
    @login_guard()
    def add_note(ctx, task_id: int):
        body = parse_payload(CreateTaskNoteRequest, request.get_json(silent=True))
        data = service.add_note(ctx.user, task_id, body)
        return jsonify(format_api_response(data, message="Note added")), 201
