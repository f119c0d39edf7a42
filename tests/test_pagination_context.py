from __future__ import annotations

import pytest

from employee_dashboard.api.context import build_api_context, parse_pagination, parse_search, validate_role
from employee_dashboard.auth.model import SessionUser
from employee_dashboard.core.enums import Role, SortOrder
from employee_dashboard.core.exceptions import AuthenticationError, AuthorizationError


def _session(role: str = "EMPLOYEE") -> dict:
    return {"user_id": 7, "email": "a@company.com", "name": "A", "role": role}


def test_pagination_defaults_when_absent():
    p = parse_pagination({})
    assert (p.page, p.limit, p.skip) == (1, 10, 0)


def test_pagination_clamps_limit_and_page():
    assert parse_pagination({"limit": "500"}).limit == 100
    assert parse_pagination({"limit": "0"}).limit == 1
    assert parse_pagination({"page": "-3"}).page == 1


def test_pagination_malformed_values_fall_back_to_defaults():
    p = parse_pagination({"page": "abc", "limit": "x"})
    assert (p.page, p.limit) == (1, 10)


def test_pagination_skip():
    assert parse_pagination({"page": "3", "limit": "20"}).skip == 40


def test_search_defaults_to_desc_and_trims():
    s = parse_search({"search": "  ann  ", "sortBy": "name"})
    assert s.search == "ann"
    assert s.sort_by == "name"
    assert s.sort_order == SortOrder.DESC


def test_search_blank_term_is_none_and_bad_order_is_desc():
    s = parse_search({"search": "   ", "sortOrder": "sideways"})
    assert s.search is None
    assert s.sort_order == SortOrder.DESC
    assert parse_search({"sortOrder": "ASC"}).sort_order == SortOrder.ASC


def test_context_requires_session_user():
    with pytest.raises(AuthenticationError):
        build_api_context({}, {})


def test_context_rejects_unknown_role():
    with pytest.raises(AuthenticationError):
        build_api_context({}, _session(role="ROOT"))


def test_context_exposes_role_helpers():
    ctx = build_api_context({"page": "2"}, _session(role="MANAGER"))
    assert ctx.user_id == 7
    assert ctx.role == Role.MANAGER
    assert ctx.pagination.page == 2


def test_context_keeps_read_only_session_snapshot():
    raw = _session()
    ctx = build_api_context({}, raw)

    raw["role"] = "ADMIN"

    assert ctx.session["role"] == "EMPLOYEE"
    with pytest.raises(TypeError):
        ctx.session["role"] = "ADMIN"


def test_validate_role_message_uses_context():
    user = SessionUser(user_id=1, email="e@company.com", name="E", role=Role.EMPLOYEE)
    with pytest.raises(AuthorizationError) as exc:
        validate_role(user, {Role.ADMIN}, "department management")
    assert str(exc.value) == "Access denied: department management"

    with pytest.raises(AuthorizationError) as exc:
        validate_role(user, {Role.ADMIN})
    assert str(exc.value) == "Insufficient permissions"
