from __future__ import annotations

import math
from typing import Any, Optional

from .context import Pagination

ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "DUPLICATE_ENTRY",
}


def error_code_for(status: int) -> Optional[str]:
    if status >= 500:
        return "INTERNAL_SERVER_ERROR"
    return ERROR_CODES.get(status)


def format_api_response(
    data: Any,
    *,
    pagination: Optional[Pagination] = None,
    total: Optional[int] = None,
    message: Optional[str] = None,
) -> dict:
    body: dict = {"success": True, "data": data}
    if pagination is not None and total is not None:
        body["meta"] = {
            "total": total,
            "page": pagination.page,
            "limit": pagination.limit,
            "totalPages": math.ceil(total / pagination.limit),
        }
    if message:
        body["message"] = message
    return body


def format_error_response(
    error: str,
    status: int = 500,
    details: Optional[Any] = None,
    *,
    code: Optional[str] = None,
) -> dict:
    body: dict = {"success": False, "error": error, "statusCode": status}
    code = code or error_code_for(status)
    if code:
        body["code"] = code
    if details is not None:
        body["details"] = details
    return body
