"""
Relay logging.

Status lines go to stdout and to a daily-rotated file whose location, name and
retention come from ``Settings`` (``LOG_DIR``, ``LOG_FILE``,
``LOG_BACKUP_DAYS``). Every module takes its logger from ``get_logger``.
"""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from cockpit_relay.utils.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Capped at WARNING.
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "asyncio", "aiohttp", "discord")

_initialized: bool = False


def build_file_handler(path: Path, level: int, backup_count: int) -> TimedRotatingFileHandler:
    """Midnight-rotated handler writing to ``path``; the directory is created."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        interval=1,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging() -> None:
    """Configure the root logger once from the relay settings."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)
    root_logger.addHandler(
        build_file_handler(settings.log_path, level, settings.log_backup_count)
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger (``name`` is usually ``__name__``) with relay logging set up."""
    setup_logging()
    return logging.getLogger(name)
