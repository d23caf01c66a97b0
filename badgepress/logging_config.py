"""
Logging Configuration for the BadgePress service

Call `setup_logging()` once, before the app modules start logging. Every module
logs through `logging.getLogger(__name__)`, so the whole service shares the
single console handler installed here.
"""

import logging
import sys

from badgepress.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Floor levels for chatty libraries, whatever the app level
THIRD_PARTY_LEVELS = {
    "uvicorn.access": logging.INFO,
    "uvicorn.error": logging.WARNING,
    "fastapi": logging.INFO,
    "starlette": logging.WARNING,
    "sqlalchemy.dialects": logging.WARNING,
    "sqlalchemy.orm": logging.WARNING,
    # Pillow logs every chunk it parses at DEBUG
    "PIL": logging.WARNING,
}


def resolve_level(log_level: str | None) -> int:
    """Numeric level for a name like "debug"; unknown names mean INFO"""
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str | None = None) -> None:
    """
    Configure logging for the entire application.

    Args:
        log_level: Optional override for log level. If not provided, uses settings.LOG_LEVEL
    """
    numeric_level = resolve_level(log_level)

    root_logger = logging.getLogger()

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)

    _configure_third_party_loggers(numeric_level)

    root_logger.info(
        "Logging configured: level=%s, handler=console",
        logging.getLevelName(numeric_level),
    )


def _configure_third_party_loggers(app_level: int) -> None:
    logging.getLogger("uvicorn").setLevel(max(app_level, logging.INFO))

    # engine echo is driven by DB_ECHO (see config.py)
    engine_level = logging.INFO if settings.DB_ECHO else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(engine_level)
    logging.getLogger("sqlalchemy.pool").setLevel(
        logging.INFO if app_level == logging.DEBUG else logging.WARNING
    )

    for name, level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(level)
