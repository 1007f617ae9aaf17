# app/utils/logger.py
"""
Logging setup for the FleetSync backend.

One console handler and one size-rotated file handler on the root logger,
both driven by Settings (LOG_LEVEL, LOG_DIR, LOG_FILE, LOG_MAX_BYTES,
LOG_BACKUP_COUNT). Uvicorn's own loggers are routed through the same
handlers so access lines and app lines end up in one file.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import Settings, settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")

# Loggers that are too chatty at INFO (httpx logs every email POST)
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_installed: list[logging.Handler] = []


def log_file_path(config: Settings) -> str:
    return os.path.join(config.LOG_DIR or DEFAULT_LOG_DIR, config.LOG_FILE)


def configure_logging(config: Settings = settings, force: bool = False) -> list[logging.Handler]:
    """
    Install the handlers on the root logger. Runs once; `force` replaces the
    handlers installed by an earlier call (used when settings change).
    """
    if _installed and not force:
        return _installed

    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    level = config.LOG_LEVEL.upper()
    path = log_file_path(config)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    file_handler = RotatingFileHandler(
        filename=path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=config.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    for handler in (console, file_handler):
        handler.setLevel(level)
        handler.setFormatter(fmt)
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in UVICORN_LOGGERS:
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True

    return _installed


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    configure_logging()
    return logging.getLogger(name)
