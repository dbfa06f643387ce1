"""Logging configuration for almacen.

Log files live under ``<home>/logs``:
- ``local-YYYY-MM-DD.log``: the ``almacen`` logger hierarchy
- ``record-events-YYYY-MM-DD.log``: one line per mutating command
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from almacen.utils import get_almacen_home

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_log_dir() -> Path:
    """Return (and create) the log directory."""
    log_dir = get_almacen_home() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_almacen_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``almacen`` logger with a dated file handler.

    DEBUG additionally logs to the console. Calling this twice does not
    add duplicate handlers. Unknown level names fall back to INFO.
    """
    logger = logging.getLogger("almacen")
    resolved = getattr(logging, str(level).upper(), None)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)

    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return logger

    date_str = datetime.now().strftime("%Y-%m-%d")
    file_handler = logging.FileHandler(get_log_dir() / f"local-{date_str}.log", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    if resolved == logging.DEBUG:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console)

    return logger


def log_record_event(event_type: str, details: str, db_name: Optional[str] = None) -> None:
    """Append one line to the record-events log.

    Format: ``<timestamp> | <event_type> | db=<db_name> | <details>``
    """
    date_str = datetime.now().strftime("%Y-%m-%d")
    path = get_log_dir() / f"record-events-{date_str}.log"
    timestamp = datetime.now().isoformat(timespec="seconds")
    line = f"{timestamp} | {event_type} | db={db_name or '-'} | {details}\n"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line)
