from __future__ import annotations

from employee_dashboard.auth.model import SessionUser
from employee_dashboard.auth.permissions import (
    FEATURE_MATRIX,
    Feature,
    can_access_feature,
    can_perform_action,
    has_any_role,
    has_role,
    roles_for,
    user_features,
)
from employee_dashboard.core.enums import Role


def _user(role: Role, user_id: int = 5) -> SessionUser:
    return SessionUser(user_id=user_id, email="u@company.com", name="U", role=role)


def test_every_feature_has_a_rule():
    assert set(FEATURE_MATRIX) == set(Feature)


def test_feature_matrix():
    assert can_access_feature(Role.EMPLOYEE, Feature.CHECK_IN_OUT)
    assert not can_access_feature(Role.EMPLOYEE, Feature.VIEW_REPORTS)
    assert can_access_feature(Role.MANAGER, Feature.VIEW_REPORTS)
    assert not can_access_feature(Role.MANAGER, Feature.SYSTEM_SETTINGS)
    assert can_access_feature(Role.ADMIN, Feature.DELETE_EMPLOYEES)


def test_user_features_grow_with_role():
    employee = set(user_features(Role.EMPLOYEE))
    manager = set(user_features(Role.MANAGER))
    admin = set(user_features(Role.ADMIN))
    assert employee < manager < admin
    assert admin == set(Feature)


def test_role_hierarchy():
    assert has_role(Role.ADMIN, Role.MANAGER)
    assert has_role(Role.MANAGER, Role.MANAGER)
    assert not has_role(Role.EMPLOYEE, Role.MANAGER)
    assert has_any_role(Role.MANAGER, [Role.ADMIN, Role.MANAGER])
    assert not has_any_role(Role.EMPLOYEE, [Role.ADMIN, Role.MANAGER])


def test_admin_can_do_anything():
    assert can_perform_action(_user(Role.ADMIN), "delete", "employee")


def test_manager_actions_table():
    manager = _user(Role.MANAGER)
    assert can_perform_action(manager, "assign", "task")
    assert not can_perform_action(manager, "delete", "employee")


def test_owner_actions():
    employee = _user(Role.EMPLOYEE, user_id=9)
    assert can_perform_action(employee, "update", "task", owner_id=9)
    assert not can_perform_action(employee, "update", "task", owner_id=10)
    assert not can_perform_action(employee, "delete", "task", owner_id=9)
    assert not can_perform_action(employee, "read", "employee")


def test_anonymous_is_denied():
    assert not can_perform_action(None, "read", "task")


def test_roles_for_reads_the_matrix():
    assert roles_for(Feature.VIEW_REPORTS) == {Role.ADMIN, Role.MANAGER}
    assert roles_for(Feature.SYSTEM_SETTINGS) == {Role.ADMIN}


def test_employees_read_and_update_only_their_own_record():
    employee = _user(Role.EMPLOYEE, user_id=9)
    assert can_perform_action(employee, "read", "employee", owner_id=9)
    assert can_perform_action(employee, "update", "employee", owner_id=9)
    assert not can_perform_action(employee, "update", "employee", owner_id=3)
    assert not can_perform_action(employee, "delete", "employee", owner_id=9)
