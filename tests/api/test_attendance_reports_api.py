from __future__ import annotations

import csv
import io


def test_checkin_late_then_duplicate_rejected(login_as, fixed_now):
    employee = login_as("EMPLOYEE")

    resp = employee.post("/api/attendance/checkin")
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "late"
    assert data["date"] == "2025-01-08"

    resp = employee.post("/api/attendance/checkin")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "ALREADY_CHECKED_IN"


def test_checkout_requires_checkin(login_as, fixed_now):
    resp = login_as("EMPLOYEE").post("/api/attendance/checkout")

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "NO_CHECK_IN_RECORD"


def test_today_and_history(login_as, fixed_now):
    employee = login_as("EMPLOYEE")
    assert employee.get("/api/attendance/today").get_json()["data"] is None

    employee.post("/api/attendance/checkin")
    employee.post("/api/attendance/checkout")

    today = employee.get("/api/attendance/today").get_json()["data"]
    assert today["checkOut"] is not None
    history = employee.get("/api/attendance/history").get_json()["data"]
    assert len(history) == 1


def test_non_admin_list_is_limited_to_own_rows(login_as, fixed_now):
    login_as("EMPLOYEE").post("/api/attendance/checkin")
    manager = login_as("MANAGER")
    manager.post("/api/attendance/checkin")

    own = manager.get("/api/attendance").get_json()
    assert own["meta"]["total"] == 1
    assert own["data"]["attendance"][0]["user"]["email"] == "manager@company.com"

    everyone = login_as("ADMIN").get("/api/attendance").get_json()
    assert everyone["meta"]["total"] == 2
    assert "Engineering" in everyone["data"]["departments"]


def test_attendance_report_is_admin_only(login_as, fixed_now):
    login_as("EMPLOYEE").post("/api/attendance/checkin")

    assert login_as("MANAGER").get("/api/attendance/reports").status_code == 403

    report = login_as("ADMIN").get("/api/attendance/reports?startDate=2025-01-01&endDate=2025-01-31").get_json()
    summary = report["data"]["summary"]
    assert summary["totalRecords"] == 1
    assert summary["lateCount"] == 1
    assert summary["attendanceRate"] == 0
    assert report["data"]["departmentStats"]["Engineering"]["late"] == 1


def test_attendance_report_defaults_to_current_month(login_as, fixed_now):
    report = login_as("ADMIN").get("/api/attendance/reports").get_json()["data"]

    assert report["dateRange"] == {"startDate": "2025-01-01", "endDate": "2025-01-31"}


def test_dashboard_reflects_checkin(login_as, fixed_now):
    employee = login_as("EMPLOYEE")
    before = employee.get("/api/dashboard/stats").get_json()["data"]
    assert before["presentToday"] == 0

    employee.post("/api/attendance/checkin")

    after = employee.get("/api/dashboard/stats").get_json()["data"]
    assert after["presentToday"] == 1
    assert after["attendanceRate"] == 100
    assert after["totalEmployees"] == 3


def test_report_stats_and_period_validation(login_as, fixed_now):
    login_as("EMPLOYEE").post("/api/attendance/checkin")
    manager = login_as("MANAGER")

    stats = manager.get("/api/reports/stats?period=week").get_json()["data"]
    assert stats["attendanceRate"] == 100
    assert stats["activeEmployees"] == 1

    resp = manager.get("/api/reports/tasks?period=decade")
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "period"


def test_task_report_for_explicit_range(login_as):
    data = login_as("MANAGER").get("/api/reports/tasks?startDate=2024-01-01&endDate=2024-01-31").get_json()["data"]

    assert data["summary"]["totalTasks"] == 0
    assert data["dateRange"]["startDate"] == "2024-01-01T00:00:00"


def test_attendance_export_csv(login_as, fixed_now):
    login_as("EMPLOYEE").post("/api/attendance/checkin")

    resp = login_as("MANAGER").get("/api/export/attendance?startDate=2025-01-01&endDate=2025-01-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert resp.headers["Content-Disposition"] == "attachment; filename=attendance_20250101_20250131.csv"
    rows = list(csv.DictReader(io.StringIO(resp.data.decode("utf-8-sig"))))
    assert rows[0]["name"] == "Nguyễn Văn A"
    assert rows[0]["status"] == "late"


def test_employee_export_is_staff_only(login_as):
    assert login_as("EMPLOYEE").get("/api/export/employees").status_code == 403

    resp = login_as("ADMIN").get("/api/export/employees")
    rows = list(csv.DictReader(io.StringIO(resp.data.decode("utf-8-sig"))))
    assert {r["employee_id"] for r in rows} == {"EMP001", "EMP002", "EMP003"}
