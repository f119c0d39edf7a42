"""ORM models (Flask-SQLAlchemy).

Enum-typed columns are stored as their string values; the str-based enums in
core.enums compare equal to those strings.
"""
from __future__ import annotations

from datetime import datetime

from ..core.enums import AttendanceStatus, EmployeeStatus, NotificationType, Role, TaskPriority, TaskStatus
from ..extensions import db


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class User(TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.EMPLOYEE.value)

    phone = db.Column(db.String(50))
    address = db.Column(db.String(255))
    bio = db.Column(db.Text)
    image = db.Column(db.String(500))

    employee = db.relationship("Employee", back_populates="user", uselist=False)


class Department(TimestampMixin, db.Model):
    __tablename__ = "departments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    budget = db.Column(db.Float)
    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    manager = db.relationship("User")
    employees = db.relationship("Employee", back_populates="department")


class Employee(TimestampMixin, db.Model):
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = db.Column(db.String(50), unique=True, nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"))
    manager_id = db.Column(db.Integer, db.ForeignKey("employees.id"))
    position = db.Column(db.String(100), nullable=False)
    salary = db.Column(db.Float)
    status = db.Column(db.String(20), nullable=False, default=EmployeeStatus.ACTIVE.value)
    hire_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship("User", back_populates="employee")
    department = db.relationship("Department", back_populates="employees")
    manager = db.relationship("Employee", remote_side=[id], back_populates="reports")
    reports = db.relationship("Employee", back_populates="manager")


class Task(TimestampMixin, db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=TaskStatus.PENDING.value)
    priority = db.Column(db.String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = db.Column(db.DateTime)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    assignee_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    creator = db.relationship("User", foreign_keys=[creator_id])
    assignee = db.relationship("User", foreign_keys=[assignee_id])
    employee = db.relationship("Employee")
    notes = db.relationship("TaskNote", back_populates="task", order_by="TaskNote.created_at")


class TaskNote(TimestampMixin, db.Model):
    __tablename__ = "task_notes"

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    task = db.relationship("Task", back_populates="notes")
    user = db.relationship("User")


class Attendance(TimestampMixin, db.Model):
    __tablename__ = "attendance"
    __table_args__ = (db.UniqueConstraint("user_id", "work_date", name="uq_attendance_user_day"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"))
    work_date = db.Column(db.Date, nullable=False)
    check_in = db.Column(db.DateTime)
    check_out = db.Column(db.DateTime)
    total_hours = db.Column(db.Float)
    status = db.Column(db.String(20), nullable=False, default=AttendanceStatus.PRESENT.value)
    notes = db.Column(db.Text)

    user = db.relationship("User")
    employee = db.relationship("Employee")


class Notification(TimestampMixin, db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default=NotificationType.INFO.value)
    is_read = db.Column(db.Boolean, nullable=False, default=False)


class CompanySettings(TimestampMixin, db.Model):
    __tablename__ = "company_settings"

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(255), nullable=False, default="Company")
    company_email = db.Column(db.String(255))
    company_phone = db.Column(db.String(50))
    company_address = db.Column(db.String(255))
    working_hours_start = db.Column(db.String(5), nullable=False, default="08:00")
    working_hours_end = db.Column(db.String(5), nullable=False, default="17:00")
    late_arrival_grace_minutes = db.Column(db.Integer, nullable=False, default=2)
    early_departure_grace_minutes = db.Column(db.Integer, nullable=False, default=0)
    overtime_threshold_hours = db.Column(db.Integer, nullable=False, default=8)
    working_days_per_week = db.Column(db.Integer, nullable=False, default=5)
    timezone = db.Column(db.String(64), nullable=False, default="UTC")
    currency = db.Column(db.String(8), nullable=False, default="USD")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
