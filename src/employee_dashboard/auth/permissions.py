"""Role and feature permissions.

Feature gates are a closed enumeration evaluated against one decision table,
so an unknown feature cannot silently pass.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..core.enums import ROLE_HIERARCHY, Role
from .model import SessionUser


class Feature(str, Enum):
    VIEW_DASHBOARD = "view-dashboard"
    VIEW_OWN_ATTENDANCE = "view-own-attendance"
    CHECK_IN_OUT = "check-in-out"
    VIEW_OWN_TASKS = "view-own-tasks"
    UPDATE_TASK_STATUS = "update-task-status"
    MANAGE_EMPLOYEES = "manage-employees"
    CREATE_TASKS = "create-tasks"
    ASSIGN_TASKS = "assign-tasks"
    VIEW_REPORTS = "view-reports"
    MANAGE_ATTENDANCE = "manage-attendance"
    VIEW_ALL_NOTIFICATIONS = "view-all-notifications"
    DELETE_EMPLOYEES = "delete-employees"
    SYSTEM_SETTINGS = "system-settings"


ALL_ROLES: FrozenSet[Role] = frozenset(Role)
ADMIN_MANAGER: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})
ADMIN_ONLY: FrozenSet[Role] = frozenset({Role.ADMIN})

FEATURE_MATRIX: Dict[Feature, FrozenSet[Role]] = {
    Feature.VIEW_DASHBOARD: ALL_ROLES,
    Feature.VIEW_OWN_ATTENDANCE: ALL_ROLES,
    Feature.CHECK_IN_OUT: ALL_ROLES,
    Feature.VIEW_OWN_TASKS: ALL_ROLES,
    Feature.UPDATE_TASK_STATUS: ALL_ROLES,
    Feature.MANAGE_EMPLOYEES: ADMIN_MANAGER,
    Feature.CREATE_TASKS: ADMIN_MANAGER,
    Feature.ASSIGN_TASKS: ADMIN_MANAGER,
    Feature.VIEW_REPORTS: ADMIN_MANAGER,
    Feature.MANAGE_ATTENDANCE: ADMIN_MANAGER,
    Feature.VIEW_ALL_NOTIFICATIONS: ADMIN_MANAGER,
    Feature.DELETE_EMPLOYEES: ADMIN_ONLY,
    Feature.SYSTEM_SETTINGS: ADMIN_ONLY,
}

# resource -> actions a manager may perform on anyone's records
_MANAGER_ACTIONS: Dict[str, FrozenSet[str]] = {
    "employee": frozenset({"create", "read", "update"}),
    "task": frozenset({"create", "read", "update", "assign"}),
    "attendance": frozenset({"read", "update"}),
}

# resource -> actions anyone may perform on records they own
_OWNER_ACTIONS: Dict[str, FrozenSet[str]] = {
    "employee": frozenset({"read", "update"}),
    "attendance": frozenset({"read", "create", "update"}),
    "task": frozenset({"read", "update"}),
}


def can_access_feature(role: Role, feature: Feature) -> bool:
    return role in FEATURE_MATRIX[feature]


def roles_for(feature: Feature) -> FrozenSet[Role]:
    return FEATURE_MATRIX[feature]


def user_features(role: Role) -> List[Feature]:
    return [feature for feature, roles in FEATURE_MATRIX.items() if role in roles]


def has_role(user_role: Role, required: Role) -> bool:
    """Hierarchy check: ADMIN > MANAGER > EMPLOYEE."""
    return ROLE_HIERARCHY[user_role] >= ROLE_HIERARCHY[required]


def has_any_role(user_role: Role, roles: Iterable[Role]) -> bool:
    return user_role in set(roles)


def can_perform_action(
    user: Optional[SessionUser],
    action: str,
    resource: str,
    owner_id: Optional[int] = None,
) -> bool:
    if user is None:
        return False
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.MANAGER and action in _MANAGER_ACTIONS.get(resource, frozenset()):
        return True
    if owner_id is not None and owner_id == user.user_id:
        return action in _OWNER_ACTIONS.get(resource, frozenset())
    return False
