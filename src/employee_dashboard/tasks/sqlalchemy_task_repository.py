from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select

from ..api.context import Pagination, SearchParams
from ..api.filters import build_text_search_where, combine
from ..core.enums import TASK_TERMINAL_STATUSES, SortOrder
from ..database.models import Employee, Task, TaskNote, User
from ..extensions import db
from .repository import TaskFilters

SEARCH_FIELDS = ("title", "description", "assignee.name", "creator.name")

SORT_COLUMNS = {
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
    "dueDate": Task.due_date,
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
}


def _open_clause():
    return Task.status.notin_([s.value for s in TASK_TERMINAL_STATUSES])


def _visibility(visible_to: Optional[int]):
    if visible_to is None:
        return None
    return or_(Task.assignee_id == visible_to, Task.creator_id == visible_to)


class SQLAlchemyTaskRepository:
    def get(self, task_id: int) -> Optional[Task]:
        task = db.session.get(Task, task_id)
        return task if task is not None and task.is_active else None

    def search(
        self,
        *,
        filters: TaskFilters,
        search: SearchParams,
        pagination: Pagination,
        actor_id: int,
        visible_to: Optional[int],
        now: datetime,
    ) -> Tuple[List[Task], int]:
        assigned = None
        if filters.assigned == "me":
            assigned = Task.assignee_id == actor_id
        elif filters.assigned == "others":
            assigned = (Task.assignee_id.isnot(None)) & (Task.assignee_id != actor_id)
        elif filters.assigned == "unassigned":
            assigned = Task.assignee_id.is_(None)

        where = combine(
            Task.is_active.is_(True),
            _visibility(visible_to),
            build_text_search_where(search.search, SEARCH_FIELDS, Task),
            Task.status == filters.status.value if filters.status else None,
            Task.priority == filters.priority.value if filters.priority else None,
            assigned,
            Task.assignee_id == filters.assignee_id if filters.assignee_id is not None else None,
            Task.creator_id == filters.creator_id if filters.creator_id is not None else None,
            Task.due_date >= filters.due_from if filters.due_from else None,
            Task.due_date <= filters.due_to if filters.due_to else None,
            (Task.due_date < now) & _open_clause() if filters.overdue else None,
            Task.assignee_id.is_(None) if filters.unassigned else None,
        )

        column = SORT_COLUMNS.get(search.sort_by or "", Task.created_at)
        ordering = column.asc() if search.sort_order == SortOrder.ASC else column.desc()
        stmt = (
            select(Task)
            .where(where)
            .order_by(ordering, Task.id.desc())
            .offset(pagination.skip)
            .limit(pagination.limit)
        )
        total = int(db.session.scalar(select(func.count(Task.id)).where(where)) or 0)
        return list(db.session.scalars(stmt)), total

    def add(self, task: Task) -> Task:
        db.session.add(task)
        db.session.flush()
        return task

    def add_note(self, note: TaskNote) -> TaskNote:
        db.session.add(note)
        db.session.flush()
        return note

    def get_user(self, user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    def get_employee_for_user(self, user_id: int) -> Optional[Employee]:
        return db.session.scalars(select(Employee).where(Employee.user_id == user_id)).first()

    def status_counts(self, *, visible_to: Optional[int]) -> dict:
        where = combine(Task.is_active.is_(True), _visibility(visible_to))
        stmt = select(Task.status, func.count(Task.id)).where(where).group_by(Task.status)
        return {status: int(count) for status, count in db.session.execute(stmt).all()}

    def count_overdue(self, *, visible_to: Optional[int], now: datetime) -> int:
        where = combine(Task.is_active.is_(True), _visibility(visible_to), Task.due_date < now, _open_clause())
        return int(db.session.scalar(select(func.count(Task.id)).where(where)) or 0)
