"""
Configuration Module

Settings are read from the environment (optionally from a ``.env`` file next to
the backend) when a ``Settings`` instance is created. Keyword overrides are
accepted so tests and scripts can build an app without touching os.environ.
"""

import logging
import os
from typing import List

from dotenv import load_dotenv

load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), '../.env'))

logger = logging.getLogger(__name__)

FALLBACK_SESSION_SECRET = "fallback-session-secret-for-development-only"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./groupchat.db"


def env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {value!r}")
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Runtime settings for the chat backend"""

    def __init__(self, **overrides):
        self.environment = os.getenv("ENVIRONMENT", "development").lower()
        self.database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        self.sql_echo = env_bool("SQL_ECHO", False)
        self.session_secret = os.getenv("SESSION_SECRET", FALLBACK_SESSION_SECRET)
        # 0 disables the corresponding expiry policy
        self.session_ttl_seconds = env_int("SESSION_TTL_SECONDS", 0)
        self.session_idle_timeout_seconds = env_int("SESSION_IDLE_TIMEOUT_SECONDS", 0)
        self.reaper_interval_seconds = env_int("REAPER_INTERVAL_SECONDS", 30)
        self.activity_require_session = env_bool("ACTIVITY_REQUIRE_SESSION", False)
        self.read_retry_attempts = env_int("READ_RETRY_ATTEMPTS", 2)
        self.rate_limit_enabled = env_bool("RATE_LIMIT_ENABLED", True)
        self.login_rate_limit = os.getenv("LOGIN_RATE_LIMIT", "20/minute")
        self.register_rate_limit = os.getenv("REGISTER_RATE_LIMIT", "10/minute")
        self.cors_origins = _env_list("CORS_ORIGINS", [
            "http://127.0.0.1:3000",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ])
        self.allowed_hosts = _env_list("ALLOWED_HOSTS", ["*"])
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def validate_environment(settings: Settings) -> None:
    """Log warnings for insecure or suspicious configuration"""
    if settings.session_secret == FALLBACK_SESSION_SECRET:
        logger.warning("Using fallback session secret. Set SESSION_SECRET for production.")
    elif len(settings.session_secret) < 32:
        logger.warning("SESSION_SECRET should be at least 32 characters long")

    if settings.environment not in ["development", "test", "staging", "production"]:
        logger.warning(f"Invalid ENVIRONMENT value: {settings.environment}")

    expiry_enabled = settings.session_idle_timeout_seconds > 0 or settings.session_ttl_seconds > 0
    if expiry_enabled and settings.reaper_interval_seconds <= 0:
        logger.warning("REAPER_INTERVAL_SECONDS must be positive when session expiry is enabled")

    if settings.is_production and settings.database_url.startswith("sqlite"):
        logger.warning("SQLite is not recommended for production deployments")
