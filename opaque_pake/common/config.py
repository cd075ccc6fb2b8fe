"""Environment configuration (.env) and structlog setup."""

import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()


def get_log_level() -> int:
    """Resolve OPAQUE_LOG_LEVEL to a logging level, falling back to INFO."""
    name = os.getenv("OPAQUE_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_argon2_params() -> dict:
    """Default Argon2id cost parameters for the optional key-stretching function."""
    return {
        "time_cost": int(os.getenv("OPAQUE_ARGON2_TIME_COST", 3)),
        "memory_cost": int(os.getenv("OPAQUE_ARGON2_MEMORY_COST", 65536)),
        "parallelism": int(os.getenv("OPAQUE_ARGON2_PARALLELISM", 4)),
    }


def get_db_params() -> dict:
    """MySQL connection parameters for the password-file store."""
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", 3306)),
        "user": os.getenv("DB_USER", "opaque"),
        "password": os.getenv("DB_PASSWORD", "opaque"),
        "database": os.getenv("DB_NAME", "opaque"),
    }


def configure_logging(level: int = None, fmt: str = None):
    """
    Configure structlog for the process.

    Args:
        level: minimum level; defaults to OPAQUE_LOG_LEVEL
        fmt: "json" or "console"; defaults to OPAQUE_LOG_FORMAT
    """
    if level is None:
        level = get_log_level()
    if fmt is None:
        fmt = os.getenv("OPAQUE_LOG_FORMAT", "json")

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
