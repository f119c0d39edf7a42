from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.exc import OperationalError


def _due(days: int = 7) -> str:
    return f"{date.today() + timedelta(days=days)}T12:00:00"


def _create(client, **overrides):
    body = {"title": "Write report", "priority": "HIGH", "dueDate": _due()}
    body.update(overrides)
    return client.post("/api/tasks", json=body)


def test_unassigned_sentinel_stores_null(login_as):
    resp = _create(login_as("MANAGER"), assigneeId="unassigned")

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["assignee"] is None
    assert data["status"] == "PENDING"


def test_employee_cannot_create_tasks(login_as):
    assert _create(login_as("EMPLOYEE")).status_code == 403


def test_due_date_must_not_be_in_the_past(login_as):
    resp = _create(login_as("MANAGER"), dueDate=_due(-2))

    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "dueDate"


def test_due_date_within_a_year(login_as):
    assert _create(login_as("MANAGER"), dueDate=_due(400)).status_code == 400


def test_unknown_assignee_rejected(login_as):
    assert _create(login_as("MANAGER"), assigneeId=99999).status_code == 400


def test_employee_may_only_change_status_of_own_task(login_as, user_id):
    task = _create(login_as("MANAGER"), assigneeId=user_id("EMPLOYEE")).get_json()["data"]
    employee = login_as("EMPLOYEE")

    resp = employee.put(f"/api/tasks/{task['id']}", json={"title": "Mine now"})
    assert resp.status_code == 403

    resp = employee.put(f"/api/tasks/{task['id']}", json={"status": "IN_PROGRESS"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "IN_PROGRESS"


def test_employee_cannot_touch_unassigned_task(login_as):
    task = _create(login_as("MANAGER")).get_json()["data"]

    resp = login_as("EMPLOYEE").put(f"/api/tasks/{task['id']}", json={"status": "COMPLETED"})

    assert resp.status_code == 403


def test_completed_task_cannot_be_reopened(login_as):
    manager = login_as("MANAGER")
    task = _create(manager).get_json()["data"]
    assert manager.put(f"/api/tasks/{task['id']}", json={"status": "COMPLETED"}).status_code == 200

    resp = manager.put(f"/api/tasks/{task['id']}", json={"status": "PENDING"})

    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "status"


def test_employee_lists_only_visible_tasks(login_as, user_id):
    manager = login_as("MANAGER")
    _create(manager, title="For employee", assigneeId=user_id("EMPLOYEE"))
    _create(manager, title="For manager", assigneeId=user_id("MANAGER"))

    employee_view = login_as("EMPLOYEE").get("/api/tasks").get_json()
    assert [t["title"] for t in employee_view["data"]] == ["For employee"]
    assert employee_view["meta"]["total"] == 1

    manager_view = manager.get("/api/tasks?assigned=me").get_json()
    assert [t["title"] for t in manager_view["data"]] == ["For manager"]


def test_deleted_task_is_hidden(login_as):
    manager = login_as("MANAGER")
    task = _create(manager).get_json()["data"]

    assert manager.delete(f"/api/tasks/{task['id']}").status_code == 200
    assert manager.get(f"/api/tasks/{task['id']}").status_code == 404


def test_notes_and_stats(login_as, user_id):
    manager = login_as("MANAGER")
    task = _create(manager, assigneeId=user_id("EMPLOYEE")).get_json()["data"]
    employee = login_as("EMPLOYEE")

    resp = employee.post(f"/api/tasks/{task['id']}/notes", json={"content": "On it"})
    assert resp.status_code == 201
    notes = employee.get(f"/api/tasks/{task['id']}/notes").get_json()["data"]
    assert [n["content"] for n in notes] == ["On it"]

    stats = employee.get("/api/tasks/stats").get_json()["data"]
    assert stats["total"] == 1
    assert stats["pending"] == 1
    assert stats["completionRate"] == 0


def test_assignment_notifies_assignee(login_as, user_id):
    _create(login_as("MANAGER"), assigneeId=user_id("EMPLOYEE"))

    data = login_as("EMPLOYEE").get("/api/notifications").get_json()["data"]

    assert data["unreadCount"] >= 1
    assert "New task assigned" in {n["title"] for n in data["notifications"]}


def test_create_succeeds_when_staff_lookup_fails(app, login_as, monkeypatch):
    def broken_lookup():
        raise OperationalError("SELECT users", {}, Exception("connection lost"))

    monkeypatch.setattr(app.extensions["container"].notifications_repo, "staff_user_ids", broken_lookup)
    manager = login_as("MANAGER")

    resp = _create(manager, title="Still stored")

    assert resp.status_code == 201
    listed = manager.get("/api/tasks?search=Still").get_json()["data"]
    assert [t["title"] for t in listed] == ["Still stored"]
