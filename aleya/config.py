"""
Application Configuration.

Pydantic Settings model for the Aleya Shop back office.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from typing import ClassVar, Optional

from pydantic_settings import BaseSettings
from pydantic import SecretStr, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")

    # --- Local store ---
    SQLITE_PATH: str = "aleya_local.db"

    # --- Logging ---
    LOG_FILE: str = "aleya.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    # --- Expense cancellation workflow ---
    # Rejections are not written to the activity log unless switched on.
    AUDIT_CANCELLATION_REJECTIONS: bool = False

    # --- Notifications ---
    NOTIFICATIONS_UNREAD_LIMIT: int = 50
    NOTIFICATIONS_PAGE_SIZE: int = 30

    # Fixed business rules.  ClassVar so pydantic-settings never loads
    # them from the environment.
    MIN_REASON_LENGTH: ClassVar[int] = 10

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when Supabase is not configured."""
        _log = logging.getLogger("aleya.config")

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty; running in standalone mode. "
                "The local SQLite database is the system of record."
            )

        return self

    def supabase_key(self) -> str:
        """Return the service-role key when present, else the anon key."""
        service_key = self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value()
        return service_key or self.SUPABASE_ANON_KEY.get_secret_value()


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern to avoid the lock overhead on the
    fast path while remaining thread-safe during first initialisation.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
