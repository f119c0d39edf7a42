from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import select

from employee_dashboard import create_app
from employee_dashboard.database import bootstrap
from employee_dashboard.database.models import Employee, User
from employee_dashboard.extensions import db

DEMO_EMAILS = {
    "ADMIN": "admin@company.com",
    "MANAGER": "manager@company.com",
    "EMPLOYEE": "employee@company.com",
}

# modules that read the clock through now_local()
_CLOCK_MODULES = (
    "employee_dashboard.attendance.service",
    "employee_dashboard.employees.service",
    "employee_dashboard.reports.controller",
    "employee_dashboard.tasks.service",
)


@pytest.fixture()
def app(tmp_path):
    app = create_app("employee_dashboard.config.testing", UPLOAD_FOLDER=str(tmp_path / "uploads"))
    with app.app_context():
        bootstrap.ensure_demo_users()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_as(app):
    """Return a logged-in test client for one of the demo roles."""

    def _login(role: str):
        c = app.test_client()
        resp = c.post(
            "/api/auth/login",
            json={"email": DEMO_EMAILS[role], "password": bootstrap.DEMO_PASSWORD},
        )
        assert resp.status_code == 200, resp.get_json()
        return c

    return _login


@pytest.fixture()
def user_id(app):
    def _lookup(role: str) -> int:
        with app.app_context():
            return db.session.scalar(select(User.id).where(User.email == DEMO_EMAILS[role]))

    return _lookup


@pytest.fixture()
def employee_pk(app):
    def _lookup(code: str) -> int:
        with app.app_context():
            return db.session.scalar(select(Employee.id).where(Employee.employee_id == code))

    return _lookup


@pytest.fixture()
def fixed_now(monkeypatch):
    now = datetime(2025, 1, 8, 9, 0, 0)
    for module in _CLOCK_MODULES:
        monkeypatch.setattr(f"{module}.now_local", lambda: now)
    return now
