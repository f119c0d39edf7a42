from __future__ import annotations

from contextlib import nullcontext
from io import BytesIO
from types import SimpleNamespace

import pytest
from werkzeug.datastructures import FileStorage

from employee_dashboard.auth.model import SessionUser
from employee_dashboard.core.enums import Role
from employee_dashboard.core.exceptions import NotFoundError
from employee_dashboard.employees.image_store import LocalImageStore
from employee_dashboard.employees.service import EmployeeService

USER = SessionUser(user_id=10, email="e@company.com", name="Emp", role=Role.EMPLOYEE)


class FakeEmployees:
    def __init__(self, users=None):
        self.users = users or {}

    def get_user(self, user_id):
        return self.users.get(user_id)


def _upload(name: str = "me.png") -> FileStorage:
    return FileStorage(stream=BytesIO(b"\x89PNG fake"), filename=name)


def _service(repo, folder) -> EmployeeService:
    return EmployeeService(
        repo,
        dispatcher=None,
        image_store=LocalImageStore(str(folder)),
        transaction_factory=nullcontext,
    )


def test_new_image_replaces_previous_file(tmp_path):
    store = LocalImageStore(str(tmp_path))
    old_url = store.save(USER.user_id, _upload("old.png"))
    user = SimpleNamespace(image=old_url)

    result = _service(FakeEmployees({USER.user_id: user}), tmp_path).set_image(USER, _upload())

    assert user.image == result["image"]
    assert [p.name for p in tmp_path.iterdir()] == [result["image"].rsplit("/", 1)[-1]]


def test_failed_update_removes_written_file(tmp_path):
    with pytest.raises(NotFoundError):
        _service(FakeEmployees(), tmp_path).set_image(USER, _upload())

    assert list(tmp_path.iterdir()) == []
