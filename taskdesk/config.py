"""Taskdesk configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class TaskdeskSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///taskdesk.db"
    echo_sql: bool = False
    app_title: str = "Taskdesk API"
    log_level: str = "INFO"

    # Bearer tokens
    auth_secret: str = "change-me"
    auth_token_ttl_seconds: int = 7 * 24 * 3600
    password_min_length: int = 6
    auth_bootstrap_name: str = "Administrator"
    auth_bootstrap_email: str = "admin@example.com"
    auth_bootstrap_password: str = ""

    # Listing + search
    default_page_size: int = 10
    max_page_size: int = 100
    search_page_size: int = 10

    # Attachments
    blobstore_dir: str = "data/uploads"
    attachment_max_bytes: int = 5 * 1024 * 1024
    attachment_max_files: int = 5
    attachment_allowed_extensions: str = "jpeg,jpg,png,gif,pdf,doc,docx,xls,xlsx,txt"

    # Side effects
    side_effect_drain_seconds: float = 5.0
    audit_settle_seconds: float = 2.0

    # Daily due-task reminders
    reminder_enabled: bool = True
    reminder_hour: int = 9
    reminder_timezone: str = "America/New_York"

    model_config = {"env_prefix": "TASKDESK_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent

    @property
    def blobstore_path(self) -> Path:
        path = Path(self.blobstore_dir)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def allowed_extensions(self) -> set[str]:
        return {
            ext.strip().lower().lstrip(".")
            for ext in self.attachment_allowed_extensions.split(",")
            if ext.strip()
        }

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = TaskdeskSettings()
