from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager
from app.routers import auth_router, zoho_router, timesheet_router
from app.database import init_db, SessionLocal
from app.errors import register_error_handlers
from app.services.user_service import UserService
from app.utils.scheduler import TaskScheduler
from app.utils.logging_config import setup_logging, get_log_files_info
from app.config import get_settings
import logging
import secrets

logs_dir = setup_logging()
logger = logging.getLogger(__name__)

settings = get_settings()
scheduler = TaskScheduler()

session_secret = settings.session_secret_key or secrets.token_urlsafe(48)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Timesheet Dashboard...")
    init_db()
    db = SessionLocal()
    try:
        UserService.ensure_bootstrap_admin(db)
    finally:
        db.close()

    if not settings.session_secret_key:
        logger.warning("SESSION_SECRET_KEY is not set. Sessions will not survive a restart.")
    if settings.scheduler_enabled:
        scheduler.start()
    logger.info(f"Application started successfully (record source: {settings.record_source})")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if settings.scheduler_enabled:
        scheduler.stop()
    logger.info("Application stopped")


app = FastAPI(
    title="Timesheet Dashboard",
    description="Zoho People timesheet sync and reporting API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    SessionMiddleware,
    secret_key=session_secret,
    session_cookie="dashboard_session",
    max_age=settings.session_max_age_seconds,
    https_only=settings.https_only
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth_router.router)
app.include_router(zoho_router.router)
app.include_router(timesheet_router.router)


@app.get("/")
async def root():
    return {
        "success": True,
        "message": "Timesheet Dashboard API",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    return {
        "success": True,
        "status": "healthy",
        "recordSource": settings.record_source,
        "scheduler": "running" if scheduler.scheduler.running else "stopped"
    }


@app.get("/logs/info")
async def logs_info():
    """Get information about current log files."""
    return {
        "success": True,
        "logs_directory": str(logs_dir.absolute()),
        "log_files": get_log_files_info()
    }
