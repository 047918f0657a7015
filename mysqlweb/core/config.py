"""
Configuration management via environment variables.

This module loads configuration from .env file using python-dotenv.
All configuration values are accessed through the Settings class.

Why environment variables:
1. Flexibility - Different values per machine without code changes
2. Easy override - HOST/PORT can be changed when launching the server
3. 12-factor app compliance - Configuration in environment
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from mysqlweb.core.exceptions import ConfigError


# Load .env file from project root
# This must happen before accessing os.environ
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    frozen=True makes the dataclass immutable, preventing accidental
    modification of settings at runtime.

    Attributes:
        app_name: Application identifier for logging
        app_env: Environment name (development, production)
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for daily log files, console only when None
        host: Interface the HTTP server binds to
        port: Port the HTTP server listens on
        bookmark_dir: Directory holding one JSON file per bookmark
        query_history_limit: Statements kept per session (0 = unbounded)
        connect_timeout_seconds: Driver connect timeout
        enforce_where_clause: Reject UPDATE/DELETE without WHERE
        enable_audit_logging: Log every request through AuditMiddleware
    """
    # Application settings
    app_name: str
    app_env: str
    log_level: str
    log_dir: Optional[Path]

    # Server settings
    host: str
    port: int

    # Storage settings
    bookmark_dir: Path

    # Session settings
    query_history_limit: int
    connect_timeout_seconds: int

    # Safety settings
    enforce_where_clause: bool
    enable_audit_logging: bool

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"


def _get_env(key: str, default: Optional[str] = None) -> str:
    """
    Get environment variable with optional default.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value

    Raises:
        ConfigError: If required variable is not set and no default provided
    """
    value = os.environ.get(key, default)
    if value is None:
        raise ConfigError(
            f"Required environment variable '{key}' is not set. "
            f"Please check your .env file."
        )
    return value


def _get_int(key: str, default: str) -> int:
    """Read an integer environment variable."""
    raw = _get_env(key, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"Environment variable '{key}' must be an integer, got '{raw}'")


def _get_bool(key: str, default: str) -> bool:
    return _get_env(key, default).lower() in ("1", "true", "yes")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Why lru_cache:
    - Settings are read once at startup
    - Avoids re-parsing .env on every access
    - maxsize=1 ensures only one instance exists

    Returns:
        Settings instance with all configuration values

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    log_dir = os.environ.get("LOG_DIR")
    bookmark_dir = _get_env(
        "BOOKMARK_DIR",
        str(Path.home() / ".mysqlweb" / "bookmark"),
    )

    history_limit = _get_int("QUERY_HISTORY_LIMIT", "1000")
    if history_limit < 0:
        raise ConfigError("QUERY_HISTORY_LIMIT cannot be negative")

    return Settings(
        # Application
        app_name=_get_env("APP_NAME", "mysqlweb"),
        app_env=_get_env("APP_ENV", "development"),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        log_dir=Path(log_dir).expanduser() if log_dir else None,

        # Server
        host=_get_env("HOST", "127.0.0.1"),
        port=_get_int("PORT", "8080"),

        # Storage
        bookmark_dir=Path(bookmark_dir).expanduser(),

        # Sessions
        query_history_limit=history_limit,
        connect_timeout_seconds=_get_int("CONNECT_TIMEOUT_SECONDS", "10"),

        # Safety
        enforce_where_clause=_get_bool("ENFORCE_WHERE_CLAUSE", "true"),
        enable_audit_logging=_get_bool("ENABLE_AUDIT_LOGGING", "true"),
    )
