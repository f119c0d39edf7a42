from __future__ import annotations

from flask import Flask, jsonify, request
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from ..common.logger import get_logger, log_error
from ..core.exceptions import ConflictError, DomainError
from .responses import format_error_response

logger = get_logger(__name__)


def register(app: Flask) -> None:
    """Funnel every failure leaving a handler through the error envelope."""

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = exc.status_code
        if status >= 500:
            log_error(logger, exc, "domain failure", path=request.path)
        body = format_error_response(exc.message or "Request failed", status, exc.details, code=exc.code)
        return jsonify(body), status

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        logger.warning("integrity error path=%s: %s", request.path, exc.orig)
        return jsonify(format_error_response("Duplicate or conflicting record", 400, code=ConflictError.default_code)), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        status = exc.code or 500
        return jsonify(format_error_response(exc.description or exc.name, status)), status

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        log_error(logger, exc, "unhandled error", path=request.path, method=request.method)
        return jsonify(format_error_response("Internal server error", 500)), 500
