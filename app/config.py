from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./dashboard.db"

    # Sessions
    session_secret_key: str = ""
    session_max_age_seconds: int = 24 * 60 * 60
    https_only: bool = False
    # Comma-separated origins allowed to call the API with cookies
    cors_origins: str = "http://localhost:5173"

    # Bootstrap admin account, created on startup if missing
    admin_username: str = "admin"
    admin_password: str = "password123"
    admin_email: str = ""
    admin_display_name: str = "Admin"

    # Where timesheet records come from: "zoho" or "fixture"
    record_source: str = "zoho"

    # Zoho People
    zoho_accounts_url: str = "https://accounts.zoho.com"
    zoho_api_domain: str = "zoho.com"
    zoho_scope: str = "ZohoPeople.timetracker.ALL"
    upstream_timeout_seconds: float = 30.0
    token_lifetime_seconds: int = 3600

    # Application
    app_env: str = "development"
    app_timezone: str = "UTC"
    log_level: str = "INFO"
    logs_dir: str = "logs"
    log_retention_days: int = 30

    # Scheduler. Auto-sync re-runs every linked user's sync once a day.
    scheduler_enabled: bool = False
    auto_sync_enabled: bool = False
    auto_sync_hour: int = 2
    auto_sync_date_range: str = "Last 7 days"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origin_list(self):
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
