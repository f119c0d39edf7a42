from __future__ import annotations

from employee_dashboard.api.context import Pagination
from employee_dashboard.api.responses import error_code_for, format_api_response, format_error_response
from employee_dashboard.core.exceptions import ConflictError, ValidationError


def test_success_envelope_without_pagination():
    body = format_api_response({"id": 1}, message="ok")
    assert body == {"success": True, "data": {"id": 1}, "message": "ok"}


def test_success_envelope_meta_rounds_pages_up():
    body = format_api_response([], pagination=Pagination(page=2, limit=10), total=21)
    assert body["meta"] == {"total": 21, "page": 2, "limit": 10, "totalPages": 3}


def test_empty_result_has_zero_pages():
    body = format_api_response([], pagination=Pagination(page=1, limit=10), total=0)
    assert body["meta"]["totalPages"] == 0


def test_error_codes_by_status():
    assert error_code_for(400) == "VALIDATION_ERROR"
    assert error_code_for(401) == "UNAUTHORIZED"
    assert error_code_for(403) == "FORBIDDEN"
    assert error_code_for(404) == "NOT_FOUND"
    assert error_code_for(409) == "DUPLICATE_ENTRY"
    assert error_code_for(503) == "INTERNAL_SERVER_ERROR"
    assert error_code_for(418) is None


def test_error_envelope_with_details_and_override():
    body = format_error_response("Already in", 400, details=[{"field": "x"}], code="ALREADY_CHECKED_IN")
    assert body == {
        "success": False,
        "error": "Already in",
        "statusCode": 400,
        "code": "ALREADY_CHECKED_IN",
        "details": [{"field": "x"}],
    }


def test_error_envelope_omits_unknown_code():
    body = format_error_response("teapot", 418)
    assert "code" not in body
    assert "details" not in body


def test_conflict_error_carries_duplicate_code():
    assert ConflictError("Email already exists").code == "DUPLICATE_ENTRY"
    assert ConflictError("taken", code="NAME_TAKEN").code == "NAME_TAKEN"
    assert ValidationError("bad").code is None
