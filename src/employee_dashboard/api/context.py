"""Request-context builder and role guards.

Every protected route composes the same linear gate:
no session -> 401, wrong role -> 403, otherwise the handler runs with the
ApiContext passed explicitly as its first argument.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from flask import request, session

from ..auth.model import SessionUser
from ..auth.permissions import Feature, roles_for
from ..common.logger import get_logger
from ..core.constants import DEFAULT_LIMIT, DEFAULT_PAGE, DEFAULT_SORT_ORDER, MAX_LIMIT, MIN_LIMIT
from ..core.enums import Role, SortOrder
from ..core.exceptions import AuthenticationError, AuthorizationError

logger = get_logger(__name__)


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class SearchParams:
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: SortOrder = SortOrder(DEFAULT_SORT_ORDER)


@dataclass(frozen=True)
class ApiContext:
    session: Mapping[str, Any]
    user: SessionUser
    pagination: Pagination
    search: SearchParams

    @property
    def role(self) -> Role:
        return self.user.role

    @property
    def user_id(self) -> int:
        return self.user.user_id


def _to_int(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.debug("malformed %s=%r, using default %s", name, raw, default)
        return default


def parse_pagination(args: Mapping[str, str]) -> Pagination:
    page = max(DEFAULT_PAGE, _to_int(args.get("page"), DEFAULT_PAGE, "page"))
    limit = _to_int(args.get("limit"), DEFAULT_LIMIT, "limit")
    limit = min(MAX_LIMIT, max(MIN_LIMIT, limit))
    return Pagination(page=page, limit=limit)


def parse_search(args: Mapping[str, str]) -> SearchParams:
    search = (args.get("search") or "").strip() or None
    sort_by = (args.get("sortBy") or "").strip() or None
    raw_order = (args.get("sortOrder") or "").strip().lower()
    try:
        sort_order = SortOrder(raw_order or DEFAULT_SORT_ORDER)
    except ValueError:
        logger.debug("malformed sortOrder=%r, using %s", raw_order, DEFAULT_SORT_ORDER)
        sort_order = SortOrder(DEFAULT_SORT_ORDER)
    return SearchParams(search=search, sort_by=sort_by, sort_order=sort_order)


def build_api_context(args: Mapping[str, str], session_data: Mapping) -> ApiContext:
    user = SessionUser.from_session(session_data)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return ApiContext(
        session=MappingProxyType(dict(session_data)),
        user=user,
        pagination=parse_pagination(args),
        search=parse_search(args),
    )


def validate_role(user: SessionUser, allowed: Iterable[Role], context: Optional[str] = None) -> None:
    if user.role not in set(allowed):
        logger.info("access denied user_id=%s role=%s context=%s", user.user_id, user.role.value, context)
        raise AuthorizationError(f"Access denied: {context}" if context else "Insufficient permissions")


def with_role_guard(allowed: Optional[Iterable[Role]] = None, context: Optional[str] = None):
    """Decorator: build the ApiContext, check the role, then call the view with it."""

    allowed_roles = frozenset(allowed) if allowed is not None else None

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            ctx = build_api_context(request.args, session)
            if allowed_roles is not None:
                validate_role(ctx.user, allowed_roles, context)
            return view(ctx, *args, **kwargs)

        return wrapper

    return decorator


def login_guard():
    return with_role_guard(None)


def admin_guard(context: Optional[str] = None):
    return with_role_guard({Role.ADMIN}, context)


def feature_guard(feature: Feature, context: Optional[str] = None):
    """Role gate taken from the feature decision table."""
    return with_role_guard(roles_for(feature), context)
