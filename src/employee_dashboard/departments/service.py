from __future__ import annotations

from typing import Callable, ContextManager, Optional

from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.logger import get_logger
from ..core.enums import Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.models import Department
from ..database.session import transaction
from .repository import DepartmentRepository
from .schemas import CreateDepartmentRequest, UpdateDepartmentRequest

logger = get_logger(__name__)


def department_dict(dept: Department, employee_count: Optional[int] = None) -> dict:
    data = {
        "id": dept.id,
        "name": dept.name,
        "description": dept.description,
        "budget": dept.budget,
        "managerId": dept.manager_id,
        "manager": (
            {"id": dept.manager.id, "name": dept.manager.name, "email": dept.manager.email}
            if dept.manager is not None
            else None
        ),
        "isActive": dept.is_active,
        "createdAt": dept.created_at.isoformat() if dept.created_at else None,
    }
    if employee_count is not None:
        data["employeeCount"] = employee_count
    return data


class DepartmentService:
    """Use case: manage departments (admin)."""

    def __init__(
        self,
        departments: DepartmentRepository,
        *,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._departments = departments
        self._cache = cache
        self._tx = transaction_factory

    def list_departments(self, *, include_inactive: bool = False) -> list:
        return [
            department_dict(dept, count)
            for dept, count in self._departments.list_with_counts(include_inactive=include_inactive)
        ]

    def get(self, department_id: int) -> dict:
        dept = self._require(department_id)
        return department_dict(dept, self._departments.count_active_employees(dept.id))

    def create(self, body: CreateDepartmentRequest) -> dict:
        with self._tx():
            if self._departments.find_by_name(body.name):
                raise ConflictError(f"Department '{body.name}' already exists")
            if body.manager_id is not None:
                self._check_manager(body.manager_id)
            dept = self._departments.add(
                Department(
                    name=body.name,
                    description=body.description,
                    budget=body.budget,
                    manager_id=body.manager_id,
                )
            )
            result = department_dict(dept, 0)

        self._invalidate()
        logger.info("department created id=%s name=%s", result["id"], result["name"])
        return result

    def update(self, department_id: int, body: UpdateDepartmentRequest) -> dict:
        changes = body.model_dump(exclude_unset=True)
        with self._tx():
            dept = self._require(department_id)
            if "name" in changes:
                if changes["name"] is None:
                    raise ValidationError(
                        "Validation failed", details=[{"field": "name", "message": "Name cannot be empty"}]
                    )
                if self._departments.find_by_name(changes["name"], exclude_id=dept.id):
                    raise ConflictError(f"Department '{changes['name']}' already exists")
            if changes.get("manager_id") is not None:
                self._check_manager(changes["manager_id"])
            for key, value in changes.items():
                setattr(dept, key, value)
            result = department_dict(dept, self._departments.count_active_employees(dept.id))

        self._invalidate()
        return result

    def delete(self, department_id: int) -> None:
        with self._tx():
            dept = self._require(department_id)
            attached = self._departments.count_active_employees(dept.id)
            if attached:
                raise ValidationError(
                    f"Cannot delete department '{dept.name}': {attached} active employee(s) still assigned"
                )
            dept.is_active = False

        self._invalidate()
        logger.info("department deactivated id=%s", department_id)

    def _require(self, department_id: int) -> Department:
        dept = self._departments.get_by_id(department_id)
        if dept is None or not dept.is_active:
            raise NotFoundError("Department not found")
        return dept

    def _check_manager(self, user_id: int) -> None:
        user = self._departments.get_user(user_id)
        if user is None:
            raise ValidationError(
                "Manager not found", details=[{"field": "managerId", "message": "User does not exist"}]
            )
        if user.role not in {Role.ADMIN.value, Role.MANAGER.value}:
            raise ValidationError(
                "Manager must be an Admin or Manager role",
                details=[{"field": "managerId", "message": "Manager must be an Admin or Manager role"}],
            )

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(CacheTag.EMPLOYEES, CacheTag.DASHBOARD, CacheTag.SETTINGS)
