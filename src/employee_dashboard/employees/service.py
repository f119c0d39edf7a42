from __future__ import annotations

from datetime import date, datetime
from typing import Callable, ContextManager, Dict, List, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.security import check_password_hash, generate_password_hash

from ..api.context import ApiContext
from ..auth.model import SessionUser
from ..auth.permissions import Feature, can_access_feature, can_perform_action, has_role
from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.datetime_utils import now_local
from ..common.logger import get_logger
from ..common.refs import EntityRef, parse_entity_ref
from ..core.constants import CACHE_TTL_MEDIUM, CEO_TITLE
from ..core.enums import EmployeeStatus, NotificationType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..database.models import Department, Employee, User
from ..database.session import transaction
from ..notifications.model import Audience, NotificationOutbox
from ..notifications.service import NotificationDispatcher
from .image_store import LocalImageStore
from .repository import EmployeeRepository
from .schemas import (
    SELF_SERVICE_FIELDS,
    ChangePasswordRequest,
    CreateEmployeeRequest,
    UpdateEmployeeRequest,
    UpdateProfileRequest,
)

logger = get_logger(__name__)


def employee_dict(emp: Employee) -> dict:
    user = emp.user
    return {
        "id": emp.id,
        "employeeId": emp.employee_id,
        "userId": emp.user_id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "image": user.image,
        "position": emp.position,
        "salary": emp.salary,
        "status": emp.status,
        "hireDate": emp.hire_date.isoformat() if emp.hire_date else None,
        "isActive": emp.is_active,
        "department": {"id": emp.department.id, "name": emp.department.name} if emp.department else None,
        "manager": (
            {"id": emp.manager.id, "employeeId": emp.manager.employee_id, "name": emp.manager.user.name}
            if emp.manager
            else None
        ),
        "createdAt": emp.created_at.isoformat() if emp.created_at else None,
    }


def profile_dict(user: User) -> dict:
    emp = user.employee
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "image": user.image,
        "phone": user.phone,
        "address": user.address,
        "bio": user.bio,
        "employee": employee_dict(emp) if emp is not None else None,
    }


def _count_reports(emp_id: int, children: Dict[int, List[int]]) -> int:
    total = 0
    stack = list(children.get(emp_id, []))
    seen = set()
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        total += 1
        stack.extend(children.get(node, []))
    return total


def build_hierarchy(employees: List[Employee]) -> dict:
    """Group active employees by department and pick the CEO node.

    The CEO is the first ADMIN who has no department or manages their own.
    """

    children: Dict[int, List[int]] = {}
    for emp in employees:
        if emp.manager_id is not None:
            children.setdefault(emp.manager_id, []).append(emp.id)

    def node(emp: Employee, *, is_manager: bool = False) -> dict:
        return {
            "id": emp.id,
            "userId": emp.user_id,
            "employeeId": emp.employee_id,
            "name": emp.user.name,
            "email": emp.user.email,
            "position": emp.position,
            "role": emp.user.role,
            "image": emp.user.image,
            "isManager": is_manager,
            "directReports": len(children.get(emp.id, [])),
            "totalReports": _count_reports(emp.id, children),
        }

    ceo = next(
        (
            e
            for e in employees
            if e.user.role == Role.ADMIN
            and (e.department is None or e.department.manager_id == e.user_id)
        ),
        None,
    )

    departments: Dict[object, dict] = {}
    for emp in employees:
        key = emp.department.id if emp.department else "unassigned"
        bucket = departments.get(key)
        if bucket is None:
            manager = emp.department.manager if emp.department else None
            bucket = {
                "id": key,
                "name": emp.department.name if emp.department else "Unassigned",
                "manager": {"id": manager.id, "name": manager.name, "email": manager.email} if manager else None,
                "employees": [],
                "employeeCount": 0,
            }
            departments[key] = bucket
        is_manager = emp.department is not None and emp.department.manager_id == emp.user_id
        bucket["employees"].append(node(emp, is_manager=is_manager))
        bucket["employeeCount"] += 1

    dept_list = sorted(departments.values(), key=lambda d: d["name"])
    ceo_node = None
    if ceo is not None:
        ceo_node = node(ceo)
        ceo_node["position"] = ceo.position or CEO_TITLE
        ceo_node["department"] = ceo.department.name if ceo.department else "Executive"
        ceo_node["directReports"] = sum(1 for d in dept_list if d["manager"])
        ceo_node["totalReports"] = max(0, len(employees) - 1)

    return {"ceo": ceo_node, "departments": dept_list, "totalEmployees": len(employees)}


class EmployeeService:
    """Use case: manage employees and the caller's own profile."""

    def __init__(
        self,
        employees: EmployeeRepository,
        dispatcher: NotificationDispatcher,
        *,
        image_store: Optional[LocalImageStore] = None,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._employees = employees
        self._dispatcher = dispatcher
        self._images = image_store
        self._cache = cache
        self._tx = transaction_factory

    # ----- queries -----

    def list_employees(
        self,
        ctx: ApiContext,
        *,
        department: Optional[str] = None,
        status: Optional[str] = None,
        include_inactive: bool = False,
    ):
        if status is not None and status not in {s.value for s in EmployeeStatus}:
            raise ValidationError(
                "Validation failed", details=[{"field": "status", "message": f"Unknown status '{status}'"}]
            )
        can_manage = can_access_feature(ctx.role, Feature.MANAGE_EMPLOYEES)
        rows, total = self._employees.search(
            search=ctx.search,
            pagination=ctx.pagination,
            department=department,
            status=status,
            include_inactive=include_inactive and can_manage,
            only_user_id=None if can_manage else ctx.user_id,
        )
        return [employee_dict(e) for e in rows], total

    def get(self, actor: SessionUser, employee_pk: int) -> dict:
        emp = self._employees.get(employee_pk)
        if emp is None:
            raise NotFoundError("Employee not found")
        if not can_perform_action(actor, "read", "employee", owner_id=emp.user_id):
            raise AuthorizationError("You can only view your own profile")
        return employee_dict(emp)

    def me(self, actor: SessionUser) -> dict:
        emp = self._employees.get_by_user_id(actor.user_id)
        if emp is None:
            raise NotFoundError("Employee record not found")
        return employee_dict(emp)

    def hierarchy(self) -> dict:
        return build_hierarchy(self._employees.list_active())

    def organization(self) -> dict:
        """Active employees grouped by department, without the CEO node."""
        tree = build_hierarchy(self._employees.list_active())
        return {
            "departments": tree["departments"],
            "totalEmployees": tree["totalEmployees"],
            "totalDepartments": len(tree["departments"]),
        }

    def stats(self, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()

        def load() -> dict:
            names = self._employees.active_department_names()
            month_start = datetime.combine(today.replace(day=1), datetime.min.time())
            return {
                "totalEmployees": self._employees.count_active(),
                "totalDepartments": len(names),
                "departmentNames": names,
                "newThisMonth": self._employees.count_hired_since(month_start),
            }

        if self._cache is None:
            return load()
        key = f"employees:stats:{today.isoformat()}"
        return self._cache.get_or_set(key, load, ttl=CACHE_TTL_MEDIUM, tags=[CacheTag.EMPLOYEES])

    # ----- commands -----

    def create(self, actor: SessionUser, body: CreateEmployeeRequest, *, today: Optional[date] = None) -> dict:
        department_ref = parse_entity_ref(body.department, field="department")
        manager_ref = parse_entity_ref(body.manager, field="manager")
        if body.role == Role.ADMIN and not has_role(actor.role, Role.ADMIN):
            raise AuthorizationError("Only an admin can create admin accounts")

        outbox = NotificationOutbox()
        with self._tx():
            if self._employees.find_user_by_email(body.email):
                raise ConflictError("Email already exists", details=[{"field": "email", "message": "Already in use"}])
            if self._employees.find_by_code(body.employee_id):
                raise ConflictError(
                    "Employee ID already exists", details=[{"field": "employeeId", "message": "Already in use"}]
                )

            user = self._employees.add_user(
                User(
                    name=body.name,
                    email=body.email.lower(),
                    password_hash=generate_password_hash(body.password),
                    role=body.role.value,
                    phone=body.phone,
                    address=body.address,
                )
            )
            department = self._resolve_department(department_ref)
            manager = self._resolve_manager(manager_ref)

            emp = self._employees.add_employee(
                Employee(
                    user=user,
                    employee_id=body.employee_id,
                    department=department,
                    manager=manager,
                    position=body.position,
                    salary=body.salary,
                    status=body.status.value,
                    hire_date=body.hire_date or today or now_local().date(),
                )
            )
            result = employee_dict(emp)

            outbox.add(
                user.id,
                "Welcome to the team!",
                f"Welcome {user.name}! Your account has been created as {body.position}.",
                NotificationType.SUCCESS,
            )
            outbox.add_audience(
                Audience.STAFF,
                "New employee added",
                f"{user.name} has joined as {body.position}"
                + (f" in {department.name}" if department else ""),
                exclude=[actor.user_id],
            )

        self._dispatcher.flush(outbox)
        self._invalidate()
        logger.info("employee created id=%s code=%s by user_id=%s", result["id"], result["employeeId"], actor.user_id)
        return result

    def update(self, actor: SessionUser, employee_pk: int, body: UpdateEmployeeRequest) -> dict:
        changes = body.model_dump(exclude_unset=True)
        if not can_access_feature(actor.role, Feature.MANAGE_EMPLOYEES):
            restricted = sorted(set(changes) - SELF_SERVICE_FIELDS)
            if restricted:
                raise AuthorizationError(f"Employees cannot change: {', '.join(restricted)}")
        if changes.get("role") == Role.ADMIN and not has_role(actor.role, Role.ADMIN):
            raise AuthorizationError("Only an admin can grant the admin role")

        department_ref = parse_entity_ref(changes.get("department"), field="department")
        manager_ref = parse_entity_ref(changes.get("manager"), field="manager")

        with self._tx():
            emp = self._employees.get(employee_pk)
            if emp is None:
                raise NotFoundError("Employee not found")
            if not can_perform_action(actor, "update", "employee", owner_id=emp.user_id):
                raise AuthorizationError("You can only update your own profile")

            user = emp.user
            if changes.get("email") and self._employees.find_user_by_email(changes["email"], exclude_user_id=user.id):
                raise ConflictError("Email already exists", details=[{"field": "email", "message": "Already in use"}])
            code = changes.get("employee_id")
            if code and code != emp.employee_id and self._employees.find_by_code(code):
                raise ConflictError(
                    "Employee ID already exists", details=[{"field": "employeeId", "message": "Already in use"}]
                )

            for field in ("name", "email", "role"):
                if changes.get(field) is not None:
                    value = changes[field]
                    if field == "email":
                        value = value.lower()
                    elif field == "role":
                        value = value.value
                    setattr(user, field, value)

            for field in ("employee_id", "position", "salary", "hire_date"):
                if field in changes and (changes[field] is not None or field == "salary"):
                    setattr(emp, field, changes[field])
            if changes.get("status") is not None:
                emp.status = changes["status"].value

            if "department" in changes:
                emp.department = self._resolve_department(department_ref)
            if "manager" in changes:
                manager = self._resolve_manager(manager_ref)
                self._check_no_cycle(emp, manager)
                emp.manager = manager

            result = employee_dict(emp)

        self._invalidate()
        logger.info("employee updated id=%s fields=%s by user_id=%s", employee_pk, sorted(changes), actor.user_id)
        return result

    def delete(self, actor: SessionUser, employee_pk: int) -> None:
        """Soft delete: history (tasks, attendance) stays queryable."""

        with self._tx():
            emp = self._employees.get(employee_pk)
            if emp is None or not emp.is_active:
                raise NotFoundError("Employee not found")
            if emp.user_id == actor.user_id:
                raise ValidationError("You cannot delete your own account")
            emp.is_active = False
            emp.status = EmployeeStatus.INACTIVE.value

        self._invalidate()
        logger.info("employee deactivated id=%s by user_id=%s", employee_pk, actor.user_id)

    # ----- profile -----

    def get_profile(self, actor: SessionUser) -> dict:
        return profile_dict(self._require_user(actor.user_id))

    def update_profile(self, actor: SessionUser, body: UpdateProfileRequest) -> dict:
        changes = body.model_dump(exclude_unset=True)
        with self._tx():
            user = self._require_user(actor.user_id)
            for field, value in changes.items():
                if field == "name" and not value:
                    continue
                setattr(user, field, value or None)
            result = profile_dict(user)
        self._invalidate()
        return result

    def change_password(self, actor: SessionUser, body: ChangePasswordRequest) -> None:
        with self._tx():
            user = self._require_user(actor.user_id)
            if not check_password_hash(user.password_hash, body.current_password):
                raise ValidationError(
                    "Current password is incorrect",
                    details=[{"field": "currentPassword", "message": "Incorrect password"}],
                )
            if body.current_password == body.new_password:
                raise ValidationError(
                    "New password must be different from the current password",
                    details=[{"field": "newPassword", "message": "Must differ from current password"}],
                )
            user.password_hash = generate_password_hash(body.new_password)
        logger.info("password changed user_id=%s", actor.user_id)

    def set_image(self, actor: SessionUser, upload: Optional[FileStorage]) -> dict:
        if self._images is None:
            raise ValidationError("Image uploads are not configured")
        url = self._images.save(actor.user_id, upload)
        try:
            with self._tx():
                user = self._require_user(actor.user_id)
                previous, user.image = user.image, url
        except Exception:
            self._images.delete(url)
            raise
        self._images.delete(previous)
        self._invalidate()
        return {"image": url}

    def remove_image(self, actor: SessionUser) -> None:
        with self._tx():
            user = self._require_user(actor.user_id)
            previous, user.image = user.image, None
        if self._images is not None:
            self._images.delete(previous)
        self._invalidate()

    # ----- helpers -----

    def _require_user(self, user_id: int) -> User:
        user = self._employees.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _resolve_department(self, ref: Optional[EntityRef]) -> Optional[Department]:
        if ref is None:
            return None
        if ref.kind == "id":
            dept = self._employees.get_department(int(ref.value))
            if dept is None:
                raise ValidationError(f"Department with ID '{ref.value}' not found")
            return dept
        dept = self._employees.find_department_by_name(str(ref.value))
        if dept is None:
            raise ValidationError(f"Department '{ref.value}' not found")
        return dept

    def _resolve_manager(self, ref: Optional[EntityRef]) -> Optional[Employee]:
        if ref is None:
            return None
        if ref.kind == "id":
            manager = self._employees.get(int(ref.value))
        else:
            manager = self._employees.find_by_code(str(ref.value))
        if manager is None or not manager.is_active:
            raise ValidationError(f"Manager with ID '{ref.value}' not found")
        return manager

    @staticmethod
    def _check_no_cycle(emp: Employee, manager: Optional[Employee]) -> None:
        seen = set()
        node = manager
        while node is not None and node.id not in seen:
            if node.id == emp.id:
                raise ValidationError(
                    "An employee cannot report to themselves",
                    details=[{"field": "manager", "message": "Reporting line would form a cycle"}],
                )
            seen.add(node.id)
            node = node.manager

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(CacheTag.EMPLOYEES, CacheTag.DASHBOARD, CacheTag.REPORTS)
