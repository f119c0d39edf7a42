from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from ..api.context import Pagination, SearchParams
from ..core.enums import TaskPriority, TaskStatus
from ..database.models import Employee, Task, TaskNote, User


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned: Optional[str] = None
    assignee_id: Optional[int] = None
    creator_id: Optional[int] = None
    due_from: Optional[datetime] = None
    due_to: Optional[datetime] = None
    overdue: bool = False
    unassigned: bool = False


class TaskRepository(Protocol):
    def get(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

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
        """visible_to restricts to tasks the user is assignee or creator of."""

        raise NotImplementedError

    def add(self, task: Task) -> Task:
        raise NotImplementedError

    def add_note(self, note: TaskNote) -> TaskNote:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_employee_for_user(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def status_counts(self, *, visible_to: Optional[int]) -> dict:
        raise NotImplementedError

    def count_overdue(self, *, visible_to: Optional[int], now: datetime) -> int:
        raise NotImplementedError
