"""
Application Configuration.

Pydantic Settings model for the Civic Portal client.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic_settings import BaseSettings
from pydantic import Field, model_validator

_LOCAL_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Portal REST API ---
    API_BASE_URL: str = "http://localhost:5000/api"
    API_TIMEOUT_S: float = Field(default=15.0, gt=0)

    # --- Local persistence (Token Store) ---
    LOCAL_DB_PATH: str = "portal_local.db"
    TOKEN_SALT_PATH: str = "~/.civicportal_token_salt"
    TOKEN_KDF_ITERATIONS: int = Field(default=600_000, ge=1)

    # --- OTP verification ---
    OTP_LENGTH: int = 6
    OTP_TTL_SECONDS: int = 300

    # --- Routes ---
    LOGIN_PATH: str = "/login"
    PROFILE_PATH: str = "/profile"
    ADMIN_PATH: str = "/admin"
    UNAUTHORIZED_PATH: str = "/unauthorized"

    # --- Logging ---
    LOG_FILE: str = "portal.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_insecure_settings(self) -> "AppConfig":
        """Emit startup warnings for missing or risky configuration.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        and a plain-HTTP API outside localhost would send bearer tokens
        and OTP codes in clear text.
        """
        _log = logging.getLogger("civicportal.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        parsed = urlparse(self.API_BASE_URL)
        if parsed.scheme != "https" and parsed.hostname not in _LOCAL_HOSTS:
            _log.warning(
                "API_BASE_URL '%s' is not HTTPS; credentials will be sent "
                "unencrypted.",
                self.API_BASE_URL,
            )

        return self

    @property
    def token_salt_path(self) -> Path:
        """``TOKEN_SALT_PATH`` with ``~`` expanded."""
        return Path(self.TOKEN_SALT_PATH).expanduser()


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern to avoid the lock overhead on the
    fast path while remaining thread-safe during first initialisation.
    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
