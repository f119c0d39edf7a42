from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

from ..database.models import Department, User


class DepartmentRepository(Protocol):
    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def find_by_name(self, name: str, *, exclude_id: Optional[int] = None) -> Optional[Department]:
        """Case-insensitive name lookup."""

        raise NotImplementedError

    def list_with_counts(self, *, include_inactive: bool = False) -> List[Tuple[Department, int]]:
        raise NotImplementedError

    def count_active_employees(self, department_id: int) -> int:
        raise NotImplementedError

    def add(self, department: Department) -> Department:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError
