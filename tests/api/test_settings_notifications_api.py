from __future__ import annotations


def test_company_settings_defaults(login_as):
    data = login_as("EMPLOYEE").get("/api/settings/company").get_json()["data"]

    assert data["workingHoursStart"] == "08:00"
    assert data["workingHoursEnd"] == "17:00"
    assert data["lateArrivalGraceMinutes"] == 2


def test_only_admin_updates_settings(login_as):
    assert login_as("MANAGER").put("/api/settings/company", json={"companyName": "X"}).status_code == 403


def test_working_hours_must_be_ordered(login_as):
    resp = login_as("ADMIN").put("/api/settings/company", json={"workingHoursStart": "18:00"})

    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "workingHoursEnd"


def test_malformed_hours_rejected(login_as):
    resp = login_as("ADMIN").put("/api/settings/company", json={"workingHoursStart": "9am"})

    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "workingHoursStart"


def test_new_working_hours_drive_checkin_status(login_as, fixed_now):
    resp = login_as("ADMIN").put("/api/settings/company", json={"workingHoursStart": "09:30"})
    assert resp.status_code == 200

    data = login_as("EMPLOYEE").post("/api/attendance/checkin").get_json()["data"]

    assert data["status"] == "present"


def test_manager_list(login_as):
    data = login_as("MANAGER").get("/api/settings/managers").get_json()["data"]

    assert {m["email"] for m in data} == {"admin@company.com", "manager@company.com"}


def test_mark_notifications_read(login_as, fixed_now):
    login_as("EMPLOYEE").post("/api/attendance/checkin")
    manager = login_as("MANAGER")

    data = manager.get("/api/notifications").get_json()["data"]
    assert data["unreadCount"] == 1

    resp = manager.put("/api/notifications", json={})
    assert resp.get_json()["data"]["updated"] == 1

    data = manager.get("/api/notifications?unreadOnly=true").get_json()["data"]
    assert data["unreadCount"] == 0
    assert data["notifications"] == []
