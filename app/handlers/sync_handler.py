from sqlalchemy.orm import Session
from datetime import date
from app.config import get_settings
from app.models.records import SyncOutcome
from app.services.aggregation_service import aggregate_records
from app.services.credential_service import CredentialService
from app.services.record_source import RecordSource
from app.services.sync_service import SyncService
from app.utils.date_range import resolve_date_range
from app.utils.sync_guard import SyncGuard, sync_guard
from app.utils.timezone import get_local_today
import logging

logger = logging.getLogger(__name__)


class SyncHandler:
    """
    Fetch -> aggregate -> persist for one user and one date window.

    Nothing is deleted until the fetch has succeeded, so an upstream failure
    leaves the previously synced data in place.
    """

    def __init__(self, db: Session, source: RecordSource, guard: SyncGuard = None):
        self.db = db
        self.source = source
        self.guard = guard or sync_guard
        self.settings = get_settings()

    def resolve_range(self, date_range: str, start: str = None, end: str = None):
        today = get_local_today(self.settings.app_timezone)
        return resolve_date_range(date_range, today, start, end)

    def sync(self, user_id: int, start: date, end: date) -> SyncOutcome:
        with self.guard.hold(user_id):
            logger.info(f"🔄 Sync started for user {user_id} ({start} - {end}) via {self.source.name}")

            credentials = CredentialService.get_active_credentials(self.db, user_id, self.source)
            records = self.source.fetch_records(credentials, start, end)
            result = aggregate_records(records)
            counts = SyncService.replace_user_data(self.db, user_id, result)

            logger.info(
                f"✅ Sync finished for user {user_id}: {counts['time_entries']} entries, "
                f"{result.stats.total_hours:.1f} hours"
            )
            return SyncOutcome(
                source=self.source.name,
                start_date=start,
                end_date=end,
                time_entries=counts["time_entries"],
                project_hours=counts["project_hours"],
                employee_hours=counts["employee_hours"],
            )

    def sync_date_range(self, user_id: int, date_range: str, start: str = None, end: str = None) -> SyncOutcome:
        start_date, end_date = self.resolve_range(date_range, start, end)
        return self.sync(user_id, start_date, end_date)
