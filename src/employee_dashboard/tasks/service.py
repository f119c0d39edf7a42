from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, ContextManager, Mapping, Optional, Union

from ..api.context import ApiContext
from ..auth.model import SessionUser
from ..auth.permissions import Feature, can_access_feature, can_perform_action
from ..cache.tag_cache import CacheTag, TaggedCache
from ..common.datetime_utils import end_of_day, is_date_only, now_local, parse_iso_datetime
from ..common.logger import get_logger
from ..core.constants import MAX_TASK_DUE_DAYS, UNASSIGNED
from ..core.enums import TASK_TERMINAL_STATUSES, NotificationType, TaskPriority, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..database.models import Task, TaskNote, User
from ..database.session import transaction
from ..notifications.model import Audience, NotificationOutbox
from ..notifications.service import NotificationDispatcher
from .repository import TaskFilters, TaskRepository
from .schemas import CreateTaskNoteRequest, CreateTaskRequest, UpdateTaskRequest

logger = get_logger(__name__)


def _user_ref(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "image": user.image}


def task_dict(task: Task, *, now: Optional[datetime] = None) -> dict:
    now = now or now_local()
    department = task.employee.department if task.employee is not None else None
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "isOverdue": bool(
            task.due_date is not None
            and task.due_date < now
            and task.status not in {s.value for s in TASK_TERMINAL_STATUSES}
        ),
        "creator": _user_ref(task.creator),
        "assignee": _user_ref(task.assignee),
        "department": department.name if department is not None else None,
        "noteCount": len(task.notes),
        "createdAt": task.created_at.isoformat() if task.created_at else None,
        "updatedAt": task.updated_at.isoformat() if task.updated_at else None,
    }


def note_dict(note: TaskNote) -> dict:
    return {
        "id": note.id,
        "content": note.content,
        "user": _user_ref(note.user),
        "createdAt": note.created_at.isoformat() if note.created_at else None,
    }


def _enum_arg(enum_cls, raw: Optional[str], field: str):
    if not raw:
        return None
    try:
        return enum_cls(raw.upper())
    except ValueError:
        raise ValidationError(
            "Validation failed", details=[{"field": field, "message": f"Unknown value '{raw}'"}]
        ) from None


def _int_arg(raw: Optional[str], field: str) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(
            "Validation failed", details=[{"field": field, "message": "Must be an integer"}]
        ) from None


def parse_task_filters(args: Mapping[str, str]) -> TaskFilters:
    """Translate list query-string parameters into TaskFilters."""

    assigned = (args.get("assigned") or "").strip().lower() or None
    if assigned not in {None, "me", "others", "unassigned"}:
        raise ValidationError(
            "Validation failed", details=[{"field": "assigned", "message": "Expected me, others or unassigned"}]
        )

    due_to = None
    if args.get("dueDateTo"):
        due_to = parse_iso_datetime(args["dueDateTo"], field="dueDateTo")
        if is_date_only(args["dueDateTo"]):
            due_to = end_of_day(due_to.date())

    return TaskFilters(
        status=_enum_arg(TaskStatus, args.get("status"), "status"),
        priority=_enum_arg(TaskPriority, args.get("priority"), "priority"),
        assigned=assigned,
        assignee_id=_int_arg(args.get("assignee"), "assignee"),
        creator_id=_int_arg(args.get("creator"), "creator"),
        due_from=parse_iso_datetime(args["dueDateFrom"], field="dueDateFrom") if args.get("dueDateFrom") else None,
        due_to=due_to,
        overdue=(args.get("overdue") or "").lower() == "true",
        unassigned=(args.get("unassigned") or "").lower() == "true",
    )


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def check_transition(current: TaskStatus, target: TaskStatus) -> None:
    """COMPLETED and CANCELLED are terminal; any other move is allowed."""

    if current == target:
        return
    if current in TASK_TERMINAL_STATUSES:
        raise ValidationError(
            f"Cannot change status of a {current.value} task",
            details=[{"field": "status", "message": f"{current.value} is a final status"}],
        )


class TaskService:
    """Use case: create, assign and track tasks."""

    def __init__(
        self,
        tasks: TaskRepository,
        dispatcher: NotificationDispatcher,
        *,
        cache: Optional[TaggedCache] = None,
        transaction_factory: Callable[[], ContextManager] = transaction,
    ):
        self._tasks = tasks
        self._dispatcher = dispatcher
        self._cache = cache
        self._tx = transaction_factory

    def list_tasks(self, ctx: ApiContext, filters: TaskFilters, *, now: Optional[datetime] = None):
        now = now or now_local()
        rows, total = self._tasks.search(
            filters=filters,
            search=ctx.search,
            pagination=ctx.pagination,
            actor_id=ctx.user_id,
            visible_to=None if can_access_feature(ctx.role, Feature.ASSIGN_TASKS) else ctx.user_id,
            now=now,
        )
        return [task_dict(t, now=now) for t in rows], total

    def get(self, actor: SessionUser, task_id: int) -> dict:
        task = self._require(task_id)
        owners = (task.assignee_id, task.creator_id)
        if not any(can_perform_action(actor, "read", "task", owner_id=uid) for uid in owners):
            raise AuthorizationError("You can only view tasks assigned to you")
        return task_dict(task)

    def create(self, actor: SessionUser, body: CreateTaskRequest, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        due_date = _naive(body.due_date)
        self._validate_due_date(due_date, now)

        outbox = NotificationOutbox()
        with self._tx():
            assignee = self._resolve_assignee(body.assignee_id)
            employee = self._tasks.get_employee_for_user(assignee.id) if assignee else None
            task = self._tasks.add(
                Task(
                    title=body.title,
                    description=body.description or None,
                    status=body.status.value,
                    priority=body.priority.value,
                    due_date=due_date,
                    creator_id=actor.user_id,
                    assignee=assignee,
                    employee=employee,
                )
            )
            result = task_dict(task, now=now)

            if assignee is not None and assignee.id != actor.user_id:
                outbox.add(
                    assignee.id,
                    "New task assigned",
                    f"You have been assigned a new task: {task.title}",
                    NotificationType.INFO,
                )
            outbox.add_audience(
                Audience.STAFF,
                "New task created",
                f"{actor.name or 'A user'} created task '{task.title}'"
                + (f" for {assignee.name}" if assignee else ""),
                exclude=[actor.user_id, assignee.id if assignee else None],
            )

        self._dispatcher.flush(outbox)
        self._invalidate()
        logger.info("task created id=%s by user_id=%s", result["id"], actor.user_id)
        return result

    def update(
        self,
        actor: SessionUser,
        task_id: int,
        body: UpdateTaskRequest,
        *,
        now: Optional[datetime] = None,
    ) -> dict:
        now = now or now_local()
        changes = body.model_dump(exclude_unset=True)

        outbox = NotificationOutbox()
        with self._tx():
            task = self._require(task_id)
            if not can_perform_action(actor, "update", "task", owner_id=task.assignee_id):
                raise AuthorizationError("You can only update tasks assigned to you")
            if not can_access_feature(actor.role, Feature.ASSIGN_TASKS) and set(changes) - {"status"}:
                raise AuthorizationError("You can only update the status of your tasks")

            if changes.get("status") is not None:
                check_transition(TaskStatus(task.status), changes["status"])
                if changes["status"].value != task.status:
                    task.status = changes["status"].value
                    if task.creator_id != actor.user_id:
                        outbox.add(
                            task.creator_id,
                            "Task status updated",
                            f"'{task.title}' is now {task.status.replace('_', ' ').lower()}",
                            NotificationType.SUCCESS if task.status == TaskStatus.COMPLETED else NotificationType.INFO,
                        )

            if changes.get("title") is not None:
                task.title = changes["title"]
            if "description" in changes:
                task.description = changes["description"] or None
            if changes.get("priority") is not None:
                task.priority = changes["priority"].value
            if "due_date" in changes:
                due_date = _naive(changes["due_date"])
                if due_date is not None and due_date != task.due_date:
                    self._validate_due_date(due_date, now)
                task.due_date = due_date
            if "assignee_id" in changes:
                assignee = self._resolve_assignee(changes["assignee_id"])
                new_id = assignee.id if assignee else None
                if new_id != task.assignee_id:
                    task.assignee = assignee
                    task.employee = self._tasks.get_employee_for_user(assignee.id) if assignee else None
                    if assignee is not None and assignee.id != actor.user_id:
                        outbox.add(assignee.id, "New task assigned", f"You have been assigned: {task.title}")

            result = task_dict(task, now=now)

        self._dispatcher.flush(outbox)
        self._invalidate()
        return result

    def delete(self, actor: SessionUser, task_id: int) -> None:
        with self._tx():
            task = self._require(task_id)
            task.is_active = False
        self._invalidate()
        logger.info("task deleted id=%s by user_id=%s", task_id, actor.user_id)

    def list_notes(self, actor: SessionUser, task_id: int) -> list:
        task = self._require_note_access(actor, task_id, "read")
        return [note_dict(n) for n in task.notes]

    def add_note(self, actor: SessionUser, task_id: int, body: CreateTaskNoteRequest) -> dict:
        outbox = NotificationOutbox()
        with self._tx():
            task = self._require_note_access(actor, task_id, "update")
            note = self._tasks.add_note(TaskNote(content=body.content, task_id=task.id, user_id=actor.user_id))
            result = note_dict(note)
            watchers = {task.creator_id, task.assignee_id} - {None, actor.user_id}
            outbox.add_many(sorted(watchers), "New task note", f"{actor.name} commented on '{task.title}'")
        self._dispatcher.flush(outbox)
        return result

    def stats(self, ctx: ApiContext, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        visible_to = None if can_access_feature(ctx.role, Feature.ASSIGN_TASKS) else ctx.user_id
        counts = self._tasks.status_counts(visible_to=visible_to)
        total = sum(counts.values())
        completed = counts.get(TaskStatus.COMPLETED.value, 0)
        return {
            "total": total,
            "pending": counts.get(TaskStatus.PENDING.value, 0),
            "inProgress": counts.get(TaskStatus.IN_PROGRESS.value, 0),
            "completed": completed,
            "cancelled": counts.get(TaskStatus.CANCELLED.value, 0),
            "overdue": self._tasks.count_overdue(visible_to=visible_to, now=now),
            "completionRate": round(completed / total * 100) if total else 0,
        }

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def _require_note_access(self, actor: SessionUser, task_id: int, action: str) -> Task:
        task = self._require(task_id)
        if not can_perform_action(actor, action, "task", owner_id=task.assignee_id):
            raise AuthorizationError("You can only access notes on tasks assigned to you")
        return task

    def _resolve_assignee(self, raw: Union[int, str, None]) -> Optional[User]:
        if raw is None:
            return None
        if isinstance(raw, str):
            value = raw.strip()
            if not value or value.lower() == UNASSIGNED:
                return None
            try:
                raw = int(value)
            except ValueError:
                raise ValidationError(
                    "Validation failed", details=[{"field": "assigneeId", "message": "Must be a user id"}]
                ) from None
        user = self._tasks.get_user(int(raw))
        if user is None or (user.employee is not None and not user.employee.is_active):
            raise ValidationError(
                "Assignee not found", details=[{"field": "assigneeId", "message": "User does not exist"}]
            )
        return user

    @staticmethod
    def _validate_due_date(due_date: Optional[datetime], now: datetime) -> None:
        if due_date is None:
            return
        if due_date.date() < now.date():
            raise ValidationError(
                "Due date cannot be in the past", details=[{"field": "dueDate", "message": "Must not be in the past"}]
            )
        if due_date > now + timedelta(days=MAX_TASK_DUE_DAYS):
            raise ValidationError(
                "Due date cannot be more than 1 year in the future",
                details=[{"field": "dueDate", "message": "Must be within one year"}],
            )

    def _invalidate(self) -> None:
        if self._cache is not None:
            self._cache.invalidate(CacheTag.TASKS, CacheTag.DASHBOARD, CacheTag.REPORTS)
