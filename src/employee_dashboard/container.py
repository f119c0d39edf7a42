from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.service import AttendanceService
from .attendance.sqlalchemy_attendance_repository import SQLAlchemyAttendanceRepository
from .auth.service import AuthService
from .auth.sqlalchemy_user_repository import SQLAlchemyUserRepository
from .cache.tag_cache import TaggedCache
from .departments.service import DepartmentService
from .departments.sqlalchemy_department_repository import SQLAlchemyDepartmentRepository
from .employees.image_store import LocalImageStore
from .employees.service import EmployeeService
from .employees.sqlalchemy_employee_repository import SQLAlchemyEmployeeRepository
from .notifications.service import NotificationDispatcher, NotificationService
from .notifications.sqlalchemy_notification_repository import SQLAlchemyNotificationRepository
from .reports.service import ReportService
from .reports.sqlalchemy_report_repository import SQLAlchemyReportRepository
from .settings.service import SettingsService
from .settings.sqlalchemy_settings_repository import SQLAlchemySettingsRepository
from .tasks.service import TaskService
from .tasks.sqlalchemy_task_repository import SQLAlchemyTaskRepository


@dataclass(frozen=True)
class Container:
    cache: TaggedCache
    image_store: LocalImageStore

    users_repo: SQLAlchemyUserRepository
    employees_repo: SQLAlchemyEmployeeRepository
    departments_repo: SQLAlchemyDepartmentRepository
    tasks_repo: SQLAlchemyTaskRepository
    attendance_repo: SQLAlchemyAttendanceRepository
    notifications_repo: SQLAlchemyNotificationRepository
    settings_repo: SQLAlchemySettingsRepository
    reports_repo: SQLAlchemyReportRepository

    auth_service: AuthService
    employee_service: EmployeeService
    department_service: DepartmentService
    task_service: TaskService
    attendance_service: AttendanceService
    notification_service: NotificationService
    settings_service: SettingsService
    report_service: ReportService


def build_container(*, upload_folder: str) -> Container:
    cache = TaggedCache()
    image_store = LocalImageStore(upload_folder)

    users_repo = SQLAlchemyUserRepository()
    employees_repo = SQLAlchemyEmployeeRepository()
    departments_repo = SQLAlchemyDepartmentRepository()
    tasks_repo = SQLAlchemyTaskRepository()
    attendance_repo = SQLAlchemyAttendanceRepository()
    notifications_repo = SQLAlchemyNotificationRepository()
    settings_repo = SQLAlchemySettingsRepository()
    reports_repo = SQLAlchemyReportRepository()

    dispatcher = NotificationDispatcher(notifications_repo, cache=cache)
    settings_service = SettingsService(settings_repo, cache=cache)

    return Container(
        cache=cache,
        image_store=image_store,
        users_repo=users_repo,
        employees_repo=employees_repo,
        departments_repo=departments_repo,
        tasks_repo=tasks_repo,
        attendance_repo=attendance_repo,
        notifications_repo=notifications_repo,
        settings_repo=settings_repo,
        reports_repo=reports_repo,
        auth_service=AuthService(users_repo),
        employee_service=EmployeeService(
            employees_repo,
            dispatcher,
            image_store=image_store,
            cache=cache,
        ),
        department_service=DepartmentService(departments_repo, cache=cache),
        task_service=TaskService(tasks_repo, dispatcher, cache=cache),
        attendance_service=AttendanceService(
            attendance_repo,
            dispatcher,
            working_hours=settings_service.working_hours,
            strategy_factory=AttendanceStrategyFactory(),
            cache=cache,
        ),
        notification_service=NotificationService(notifications_repo, cache=cache),
        settings_service=settings_service,
        report_service=ReportService(reports_repo, cache=cache),
    )
