from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import get_settings
import logging

logger = logging.getLogger(__name__)
settings = get_settings()

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # FastAPI serves sync endpoints from a thread pool
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # Models must be imported so their tables register on Base.metadata
    from app.models import user, credentials, timesheet  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
