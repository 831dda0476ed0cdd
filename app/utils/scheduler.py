from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from app.database import SessionLocal
from app.config import get_settings
from app.errors import AppError
from app.handlers.sync_handler import SyncHandler
from app.models.credentials import ZohoCredentials
from app.services.record_source import get_record_source
from app.utils.logging_config import cleanup_old_logs
import logging

logger = logging.getLogger(__name__)


class TaskScheduler:
    def __init__(self):
        self.settings = get_settings()
        self.scheduler = AsyncIOScheduler(timezone=self.settings.app_timezone)

    def start(self):
        if self.settings.auto_sync_enabled:
            self.scheduler.add_job(
                self.run_auto_sync,
                CronTrigger(hour=self.settings.auto_sync_hour, minute=0),
                id='auto_sync',
                max_instances=1,
                coalesce=True
            )

        self.scheduler.add_job(
            self.run_log_cleanup,
            CronTrigger(hour=3, minute=30),
            id='log_cleanup'
        )

        self.scheduler.start()
        if self.settings.auto_sync_enabled:
            logger.info(f"Scheduler started - auto-sync daily at {self.settings.auto_sync_hour:02d}:00, log cleanup at 03:30")
        else:
            logger.info("Scheduler started - auto-sync disabled, log cleanup at 03:30")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def linked_user_ids(self, db):
        """Users whose Zoho link currently holds a token."""
        rows = db.query(ZohoCredentials.user_id).filter(
            ZohoCredentials.access_token.isnot(None)
        ).order_by(ZohoCredentials.user_id).all()
        return [row[0] for row in rows]

    def run_auto_sync(self):
        """
        Sync every linked user for the configured date range.
        One user's failure does not stop the others.
        """
        logger.info("=== STARTING AUTO-SYNC ===")
        db = SessionLocal()
        synced, failed = 0, 0
        try:
            source = get_record_source()
            handler = SyncHandler(db, source)
            for user_id in self.linked_user_ids(db):
                try:
                    outcome = handler.sync_date_range(user_id, self.settings.auto_sync_date_range)
                    synced += 1
                    logger.info(f"Auto-sync user {user_id}: {outcome.time_entries} entries")
                except AppError as e:
                    failed += 1
                    logger.warning(f"Auto-sync skipped user {user_id}: {e.code}: {e.message}")
                except Exception as e:
                    failed += 1
                    db.rollback()
                    logger.exception(f"Auto-sync failed for user {user_id}: {str(e)}")
        finally:
            db.close()
        logger.info(f"=== AUTO-SYNC COMPLETE: {synced} synced, {failed} failed ===")
        return synced, failed

    def run_log_cleanup(self):
        cleanup_old_logs(days_to_keep=self.settings.log_retention_days)
