import logging
import logging.handlers
import time
from datetime import datetime
from pathlib import Path
from app.config import get_settings


def _logs_dir() -> Path:
    return Path(get_settings().logs_dir)


def _component_handler(logs_dir: Path, filename: str, log_format: logging.Formatter):
    handler = logging.handlers.RotatingFileHandler(
        logs_dir / filename,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(log_format)
    return handler


# logger name -> dedicated log file
COMPONENT_LOG_FILES = {
    'app.handlers.sync_handler': "sync.log",
    'app.services.sync_service': "sync.log",
    'app.services.zoho_service': "zoho_service.log",
    'app.services.credential_service': "zoho_service.log",
    'app.services.auth_service': "auth.log",
    'app.routers.auth_router': "auth.log",
}


def setup_logging():
    """
    Configure logging for the timesheet dashboard.
    Console output plus rotating files: app.log, one file per component and errors.log.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logs_dir = _logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_format = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(log_format)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        logs_dir / "app.log",
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(level)
    main_file_handler.setFormatter(log_format)
    root_logger.addHandler(main_file_handler)

    # Components sharing a file share one handler
    file_handlers = {}
    for logger_name, filename in COMPONENT_LOG_FILES.items():
        if filename not in file_handlers:
            file_handlers[filename] = _component_handler(logs_dir, filename, log_format)
        component_logger = logging.getLogger(logger_name)
        component_logger.handlers.clear()
        component_logger.addHandler(file_handlers[filename])
        component_logger.setLevel(logging.DEBUG)

    error_file_handler = logging.handlers.RotatingFileHandler(
        logs_dir / "errors.log",
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(log_format)
    root_logger.addHandler(error_file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('apscheduler').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configuration completed")
    logger.info(f"Log files will be saved to: {logs_dir.absolute()}")

    return logs_dir


def log_file_names():
    """Every file setup_logging writes to."""
    return ["app.log"] + sorted(set(COMPONENT_LOG_FILES.values())) + ["errors.log"]


def get_log_files_info():
    """Size and modification time of each configured log file, for /logs/info."""
    logs_dir = _logs_dir()
    info = {}
    for filename in log_file_names():
        path = logs_dir / filename
        if not path.exists():
            info[filename] = {"exists": False}
            continue
        stat = path.stat()
        info[filename] = {
            "exists": True,
            "size_kb": round(stat.st_size / 1024, 1),
            "modified": datetime.fromtimestamp(stat.st_mtime).isoformat(timespec="seconds"),
        }
    return info


def cleanup_old_logs(days_to_keep=30):
    """
    Remove rotated log files older than the given number of days.
    """
    logs_dir = _logs_dir()
    if not logs_dir.exists():
        return []

    cutoff_time = time.time() - (days_to_keep * 24 * 60 * 60)

    cleaned_files = []
    for log_file in logs_dir.glob("*.log.*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                cleaned_files.append(log_file.name)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Failed to clean up {log_file}: {e}")

    if cleaned_files:
        logging.getLogger(__name__).info(f"Cleaned up old log files: {cleaned_files}")
    return cleaned_files
