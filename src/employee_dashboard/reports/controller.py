from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import List, Optional, Tuple

from flask import Flask, jsonify, request

from ..api.context import admin_guard, feature_guard, login_guard
from ..api.responses import format_api_response
from ..auth.permissions import Feature
from ..common.datetime_utils import now_local, parse_iso_datetime, period_range, resolve_range
from ..container import Container
from ..core.enums import Granularity, ReportPeriod
from ..core.exceptions import ValidationError
from .performance import default_granularity


def _parse_period(raw: Optional[str]) -> ReportPeriod:
    try:
        return ReportPeriod(raw or ReportPeriod.MONTH.value)
    except ValueError:
        raise ValidationError(
            f"Invalid period: {raw}",
            details=[{"field": "period", "message": "Must be one of week, month, year"}],
        ) from None


def _parse_granularity(raw: Optional[str], period: ReportPeriod) -> Granularity:
    if not raw:
        return default_granularity(period)
    try:
        return Granularity(raw)
    except ValueError:
        raise ValidationError(
            f"Invalid granularity: {raw}",
            details=[{"field": "granularity", "message": "Must be one of daily, weekly, monthly"}],
        ) from None


def _report_window() -> Tuple[ReportPeriod, datetime, datetime]:
    """period plus its range; startDate/endDate override the range when both are given."""

    period = _parse_period(request.args.get("period"))
    start, end = resolve_range(
        period=period,
        start=request.args.get("startDate"),
        end=request.args.get("endDate"),
        today=now_local().date(),
    )
    return period, start, end


def _date_arg(name: str, default: date) -> date:
    raw = request.args.get(name)
    if not raw:
        return default
    return parse_iso_datetime(raw, field=name).date()


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _write_csv(rows: List[dict], *, filename: str):
        """Write export rows to a CSV attachment."""

        out = io.StringIO()
        if rows:
            writer = csv.DictWriter(out, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            for row in rows:
                writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _attendance_window():
        today = now_local().date()
        month_start, month_end = period_range(ReportPeriod.MONTH, today=today)
        start = _date_arg("startDate", month_start.date())
        end = _date_arg("endDate", month_end.date())
        if start > end:
            raise ValidationError("startDate must not be after endDate")
        return start, end

    @app.route("/api/attendance/reports", methods=["GET"], endpoint="attendance_reports")
    @admin_guard("attendance reports")
    def attendance_reports(ctx):
        start, end = _attendance_window()
        department = request.args.get("department") or None
        data = service.build_attendance_report(start=start, end=end, department=department)
        return jsonify(format_api_response(data))

    @app.route("/api/reports/stats", methods=["GET"], endpoint="reports_stats")
    @feature_guard(Feature.VIEW_REPORTS, "report statistics")
    def report_stats(ctx):
        period = _parse_period(request.args.get("period"))
        data = service.period_stats(period=period, today=now_local().date())
        return jsonify(format_api_response(data))

    @app.route("/api/reports/tasks", methods=["GET"], endpoint="reports_tasks")
    @feature_guard(Feature.VIEW_REPORTS, "task reports")
    def task_report(ctx):
        period, start, end = _report_window()
        data = service.build_task_report(period=period, start=start, end=end)
        return jsonify(format_api_response(data))

    @app.route("/api/reports/tasks/metrics", methods=["GET"], endpoint="reports_task_metrics")
    @feature_guard(Feature.VIEW_REPORTS, "task analytics")
    def task_metrics(ctx):
        period, start, end = _report_window()
        data = service.task_metrics(period=period, start=start, end=end, now=now_local())
        return jsonify(format_api_response(data))

    @app.route("/api/reports/tasks/trends", methods=["GET"], endpoint="reports_task_trends")
    @feature_guard(Feature.VIEW_REPORTS, "task analytics")
    def task_trends(ctx):
        period, start, end = _report_window()
        granularity = _parse_granularity(request.args.get("granularity"), period)
        data = service.task_trends(period=period, granularity=granularity, start=start, end=end)
        return jsonify(format_api_response(data))

    @app.route("/api/reports/performance", methods=["GET"], endpoint="reports_performance")
    @feature_guard(Feature.VIEW_REPORTS, "performance reports")
    def performance(ctx):
        period, start, end = _report_window()
        data = service.performance_overview(period=period, start=start, end=end, now=now_local())
        return jsonify(format_api_response(data))

    @app.route("/api/reports/performance/employees", methods=["GET"], endpoint="reports_performance_employee")
    @feature_guard(Feature.VIEW_REPORTS, "performance reports")
    def employee_performance(ctx):
        code = (request.args.get("employeeId") or "").strip()
        if not code:
            raise ValidationError(
                "employeeId parameter is required",
                details=[{"field": "employeeId", "message": "Required"}],
            )
        period, start, end = _report_window()
        data = service.employee_performance(
            code,
            period=period,
            granularity=default_granularity(period),
            start=start,
            end=end,
            now=now_local(),
        )
        return jsonify(format_api_response(data))

    @app.route("/api/reports/performance/trends", methods=["GET"], endpoint="reports_performance_trends")
    @feature_guard(Feature.VIEW_REPORTS, "performance reports")
    def performance_trends(ctx):
        period, start, end = _report_window()
        data = service.performance_trends(
            period=period,
            granularity=_parse_granularity(request.args.get("granularity"), period),
            start=start,
            end=end,
            now=now_local(),
            department=request.args.get("department") or None,
        )
        return jsonify(format_api_response(data))

    @app.route("/api/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @login_guard()
    def dashboard_stats(ctx):
        data = service.dashboard_stats(ctx.user, today=now_local().date())
        return jsonify(format_api_response(data))

    @app.route("/api/dashboard/activities", methods=["GET"], endpoint="dashboard_activities")
    @login_guard()
    def dashboard_activities(ctx):
        return jsonify(format_api_response(service.recent_activities(now=now_local())))

    @app.route("/api/export/attendance", methods=["GET"], endpoint="export_attendance")
    @feature_guard(Feature.VIEW_REPORTS, "attendance export")
    def export_attendance(ctx):
        start, end = _attendance_window()
        rows = service.attendance_export_rows(
            start=start, end=end, department=request.args.get("department") or None
        )
        return _write_csv(rows, filename=f"attendance_{start:%Y%m%d}_{end:%Y%m%d}.csv")

    @app.route("/api/export/employees", methods=["GET"], endpoint="export_employees")
    @feature_guard(Feature.VIEW_REPORTS, "employee export")
    def export_employees(ctx):
        include_inactive = request.args.get("includeInactive", "").lower() in {"1", "true", "yes"}
        rows = service.employee_export_rows(include_inactive=include_inactive)
        return _write_csv(rows, filename=f"employees_{now_local():%Y%m%d}.csv")

    @app.route("/api/export/tasks", methods=["GET"], endpoint="export_tasks")
    @feature_guard(Feature.VIEW_REPORTS, "task export")
    def export_tasks(ctx):
        _, start, end = _report_window()
        rows = service.task_export_rows(start=start, end=end)
        return _write_csv(rows, filename=f"tasks_{start:%Y%m%d}_{end:%Y%m%d}.csv")
