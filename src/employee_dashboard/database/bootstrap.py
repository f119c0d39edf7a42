from __future__ import annotations

from datetime import date, datetime, timedelta

import mysql.connector
from sqlalchemy import select
from sqlalchemy.engine import make_url
from werkzeug.security import generate_password_hash

from ..common.logger import get_logger
from ..core.enums import AttendanceStatus, Role, TaskPriority, TaskStatus
from ..extensions import db
from .models import Attendance, CompanySettings, Department, Employee, Task, User
from .session import transaction

logger = get_logger(__name__)

DEMO_PASSWORD = "password123"

# (email, name, role, employee code, department, position)
DEMO_USERS = [
    ("admin@company.com", "Admin Demo", Role.ADMIN, "EMP001", None, "CEO"),
    ("manager@company.com", "Manager Demo", Role.MANAGER, "EMP002", "Engineering", "Engineering Manager"),
    ("employee@company.com", "Nguyễn Văn A", Role.EMPLOYEE, "EMP003", "Engineering", "Software Engineer"),
]

DEMO_DEPARTMENTS = [
    ("Engineering", "Product engineering"),
    ("Human Resources", "People operations"),
]


def ensure_database_exists(uri: str) -> None:
    """Create the MySQL database named in the URI if the server does not have it yet."""

    url = make_url(uri)
    if not url.drivername.startswith("mysql"):
        return
    conn = mysql.connector.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username or "root",
        password=url.password or "",
        use_pure=True,
    )
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def create_schema(uri: str) -> None:
    ensure_database_exists(uri)
    db.create_all()
    with transaction() as session:
        if session.scalar(select(CompanySettings).where(CompanySettings.is_active.is_(True))) is None:
            session.add(CompanySettings(company_name="Company"))
    logger.info("Schema ready (tables=%d)", len(db.metadata.tables))


def ensure_demo_users() -> None:
    """Idempotent upsert of the demo accounts; passwords are always reset to DEMO_PASSWORD."""

    with transaction() as session:
        departments = {}
        for name, description in DEMO_DEPARTMENTS:
            dept = session.scalar(select(Department).where(Department.name == name))
            if dept is None:
                dept = Department(name=name, description=description)
                session.add(dept)
            departments[name] = dept
        session.flush()

        manager_row = None
        for email, name, role, code, dept_name, position in DEMO_USERS:
            user = session.scalar(select(User).where(User.email == email))
            if user is None:
                user = User(email=email, name=name)
                session.add(user)
            user.role = role.value
            user.password_hash = generate_password_hash(DEMO_PASSWORD)
            session.flush()

            employee = session.scalar(select(Employee).where(Employee.user_id == user.id))
            if employee is None:
                employee = Employee(
                    user_id=user.id,
                    employee_id=code,
                    position=position,
                    hire_date=date.today() - timedelta(days=365),
                )
                session.add(employee)
            employee.department_id = departments[dept_name].id if dept_name else None
            if role == Role.EMPLOYEE and manager_row is not None:
                employee.manager_id = manager_row.id
            session.flush()
            if role == Role.MANAGER:
                manager_row = employee
                departments[dept_name].manager_id = user.id


def seed_demo_data(*, days: int = 5) -> None:
    """A few tasks and attendance rows so reports have something to show."""

    ensure_demo_users()
    with transaction() as session:
        if session.scalar(select(Task).limit(1)) is not None:
            return
        admin = session.scalar(select(User).where(User.email == DEMO_USERS[0][0]))
        staff = session.scalars(select(User).where(User.email.in_([u[0] for u in DEMO_USERS[1:]]))).all()

        statuses = [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED]
        for i, user in enumerate(staff):
            for j, status in enumerate(statuses):
                session.add(
                    Task(
                        title=f"Demo task {i + 1}.{j + 1}",
                        status=status.value,
                        priority=TaskPriority.MEDIUM.value,
                        due_date=datetime.now() + timedelta(days=7),
                        creator_id=admin.id,
                        assignee_id=user.id,
                        employee_id=user.employee.id if user.employee else None,
                    )
                )

        today = date.today()
        for offset in range(1, days + 1):
            work_date = today - timedelta(days=offset)
            if work_date.weekday() >= 5:
                continue
            for k, user in enumerate(staff):
                late = (offset + k) % 4 == 0
                check_in = datetime.combine(work_date, datetime.min.time()).replace(hour=9 if late else 8)
                check_out = check_in.replace(hour=17)
                session.add(
                    Attendance(
                        user_id=user.id,
                        employee_id=user.employee.id if user.employee else None,
                        work_date=work_date,
                        check_in=check_in,
                        check_out=check_out,
                        total_hours=round((check_out - check_in).total_seconds() / 3600, 1),
                        status=(AttendanceStatus.LATE if late else AttendanceStatus.PRESENT).value,
                    )
                )
    logger.info("Demo data seeded")
