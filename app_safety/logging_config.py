"""
Logging for the App Safety Agent.

Every module gets its logger with get_logger(__name__). The dashboard calls
setup_logging() once at import; Streamlit re-imports it on each rerun, so the
setup replaces earlier handlers instead of stacking new ones.

LOG_LEVEL and LOG_FILE come from .env (see config.py).
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from app_safety.config import LOG_LEVEL, LOG_FILE

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Every LLM call goes out through openai -> httpx; their per-request lines drown ours
NOISY_LOGGERS = ("openai", "httpx", "httpcore")

LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 2


def _file_handler(log_file: str) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES,
                               backupCount=LOG_FILE_BACKUPS, encoding="utf-8")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        level:    DEBUG, INFO, ... Defaults to LOG_LEVEL from config.
        log_file: Also write to this (rotating) file. Defaults to LOG_FILE;
                  when neither is set, logs only go to stdout.
    """
    level = (level or LOG_LEVEL).upper()
    log_file = log_file or LOG_FILE
    numeric_level = getattr(logging, level, logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(_file_handler(log_file))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, datefmt=DATE_FORMAT,
                        handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger(__name__).debug(f"Logging at {level}" + (f", also to {log_file}" if log_file else ""))


def get_logger(name: str) -> logging.Logger:
    """Logger for one module; pass __name__."""
    return logging.getLogger(name)
