from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

from ..api.context import Pagination, SearchParams
from ..database.models import Department, Employee, User


class EmployeeRepository(Protocol):
    def get(self, employee_pk: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_code(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def find_user_by_email(self, email: str, *, exclude_user_id: Optional[int] = None) -> Optional[User]:
        raise NotImplementedError

    def get_department(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def find_department_by_name(self, name: str) -> Optional[Department]:
        raise NotImplementedError

    def search(
        self,
        *,
        search: SearchParams,
        pagination: Pagination,
        department: Optional[str] = None,
        status: Optional[str] = None,
        include_inactive: bool = False,
        only_user_id: Optional[int] = None,
    ) -> Tuple[List[Employee], int]:
        raise NotImplementedError

    def list_active(self) -> List[Employee]:
        raise NotImplementedError

    def add_user(self, user: User) -> User:
        raise NotImplementedError

    def add_employee(self, employee: Employee) -> Employee:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError

    def active_department_names(self) -> List[str]:
        raise NotImplementedError

    def count_hired_since(self, since) -> int:
        raise NotImplementedError
