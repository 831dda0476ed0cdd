from typing import Any, Dict, List
from app.models.records import DashboardStats, SyncOutcome
from app.services.aggregation_service import compute_stats
from app.utils.timezone import to_utc_iso


class ReportBuilder:
    """Builds the camelCase JSON payloads the dashboard client reads."""

    @staticmethod
    def build_user(user) -> Dict[str, Any]:
        return {
            "id": user.id,
            "username": user.username,
            "displayName": user.display_name,
            "email": user.email,
            "role": user.role.value if user.role else None,
        }

    @staticmethod
    def build_time_entry(entry) -> Dict[str, Any]:
        return {
            "id": entry.zoho_timesheet_id,
            "date": entry.date.isoformat(),
            "project": entry.project,
            "employee": entry.employee,
            "job": entry.job,
            "billableHours": entry.billable_hours,
            "nonBillableHours": entry.non_billable_hours,
            "totalHours": entry.total_hours,
        }

    @staticmethod
    def build_summary(row) -> Dict[str, Any]:
        return {
            "name": row.name,
            "billableHours": row.billable_hours,
            "nonBillableHours": row.non_billable_hours,
            "totalHours": row.total_hours,
            "lastSyncDate": to_utc_iso(row.last_sync_date),
        }

    @staticmethod
    def build_stats(stats: DashboardStats) -> Dict[str, Any]:
        return {
            "billableHours": stats.billable_hours,
            "nonBillableHours": stats.non_billable_hours,
            "totalHours": stats.total_hours,
            "activeProjects": stats.active_projects,
            "activeEmployees": stats.active_employees,
        }

    @staticmethod
    def build_dashboard(data: Dict[str, List]) -> Dict[str, Any]:
        projects = data["project_hours"]
        employees = data["employee_hours"]
        stats = compute_stats(data["time_entries"], len(projects), len(employees))
        return {
            "success": True,
            "timeEntries": [ReportBuilder.build_time_entry(e) for e in data["time_entries"]],
            "projectHours": [ReportBuilder.build_summary(p) for p in projects],
            "employeeHours": [ReportBuilder.build_summary(e) for e in employees],
            "stats": ReportBuilder.build_stats(stats),
            "lastSyncDate": to_utc_iso(data["last_sync_date"]),
        }

    @staticmethod
    def build_sync_result(outcome: SyncOutcome) -> Dict[str, Any]:
        return {
            "success": True,
            "message": "Timesheet data synchronized successfully",
            "source": outcome.source,
            "dateRange": {
                "startDate": outcome.start_date.isoformat(),
                "endDate": outcome.end_date.isoformat(),
            },
            "stats": {
                "timeEntries": outcome.time_entries,
                "projectHours": outcome.project_hours,
                "employeeHours": outcome.employee_hours,
            },
        }
