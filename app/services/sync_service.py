from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from app.models.records import AggregationResult, HoursSummary
from app.models.timesheet import TimeEntry, ProjectHours, EmployeeHours
from app.utils.timezone import utcnow
import logging

logger = logging.getLogger(__name__)


class SyncService:
    @staticmethod
    def clear_user_data(db: Session, user_id: int):
        """Delete a user's entries and summaries. Does not commit."""
        entries = db.query(TimeEntry).filter(TimeEntry.user_id == user_id).delete(synchronize_session=False)
        projects = db.query(ProjectHours).filter(ProjectHours.user_id == user_id).delete(synchronize_session=False)
        employees = db.query(EmployeeHours).filter(EmployeeHours.user_id == user_id).delete(synchronize_session=False)
        logger.debug(f"Cleared user {user_id}: {entries} entries, {projects} project rows, {employees} employee rows")

    @staticmethod
    def _upsert_summary(db: Session, model, user_id: int, summary: HoursSummary, synced_at):
        row = db.query(model).filter(model.user_id == user_id, model.name == summary.name).first()
        if row is None:
            row = model(user_id=user_id, name=summary.name)
            db.add(row)
        row.billable_hours = summary.billable_hours
        row.non_billable_hours = summary.non_billable_hours
        row.total_hours = summary.total_hours
        row.last_sync_date = synced_at
        return row

    @staticmethod
    def replace_user_data(db: Session, user_id: int, result: AggregationResult) -> Dict[str, int]:
        """
        Make the stored data for a user match the aggregation result exactly.

        Delete, insert and upsert run in one transaction; on any failure the
        transaction is rolled back and the previous data stays in place.
        """
        synced_at = utcnow()
        try:
            SyncService.clear_user_data(db, user_id)

            db.add_all([
                TimeEntry(
                    user_id=user_id,
                    zoho_timesheet_id=e.record_id,
                    date=e.date,
                    project=e.project,
                    employee=e.employee,
                    job=e.job,
                    billable_hours=e.billable_hours,
                    non_billable_hours=e.non_billable_hours,
                    total_hours=e.total_hours
                )
                for e in result.entries
            ])
            # Flush so the upsert lookups see a consistent state
            db.flush()

            for summary in result.project_summaries:
                SyncService._upsert_summary(db, ProjectHours, user_id, summary, synced_at)
            for summary in result.employee_summaries:
                SyncService._upsert_summary(db, EmployeeHours, user_id, summary, synced_at)

            db.commit()
        except Exception as e:
            logger.error(f"❌ Sync persist failed for user {user_id}, rolling back: {str(e)}")
            db.rollback()
            raise

        counts = {
            "time_entries": len(result.entries),
            "project_hours": len(result.project_summaries),
            "employee_hours": len(result.employee_summaries),
        }
        logger.info(f"✅ Stored sync for user {user_id}: {counts}")
        return counts

    @staticmethod
    def get_user_data(db: Session, user_id: int) -> Dict[str, Any]:
        entries = db.query(TimeEntry).filter(
            TimeEntry.user_id == user_id
        ).order_by(TimeEntry.date, TimeEntry.id).all()
        projects = db.query(ProjectHours).filter(
            ProjectHours.user_id == user_id
        ).order_by(ProjectHours.total_hours.desc(), ProjectHours.name).all()
        employees = db.query(EmployeeHours).filter(
            EmployeeHours.user_id == user_id
        ).order_by(EmployeeHours.total_hours.desc(), EmployeeHours.name).all()

        return {
            "time_entries": entries,
            "project_hours": projects,
            "employee_hours": employees,
            "last_sync_date": SyncService._last_sync_date(projects, employees),
        }

    @staticmethod
    def _last_sync_date(projects, employees) -> Optional[Any]:
        dates = [r.last_sync_date for r in list(projects) + list(employees) if r.last_sync_date]
        return max(dates) if dates else None
