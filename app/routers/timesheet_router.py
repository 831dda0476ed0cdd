from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.handlers.sync_handler import SyncHandler
from app.models.user import User
from app.services.auth_service import require_authenticated
from app.services.record_source import RecordSource, get_record_source
from app.services.sync_service import SyncService
from app.utils.report_builder import ReportBuilder
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/timesheet", tags=["timesheet"])


@router.post("/sync")
def sync_timesheets(
    date_range: Optional[str] = Query(None, alias="dateRange"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user: User = Depends(require_authenticated),
    db: Session = Depends(get_db),
    source: RecordSource = Depends(get_record_source)
):
    handler = SyncHandler(db, source)
    outcome = handler.sync_date_range(user.id, date_range, start_date, end_date)
    return ReportBuilder.build_sync_result(outcome)


@router.get("/data")
def timesheet_data(user: User = Depends(require_authenticated), db: Session = Depends(get_db)):
    data = SyncService.get_user_data(db, user.id)
    return ReportBuilder.build_dashboard(data)
