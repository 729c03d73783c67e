"""Logging setup for almondlink processes.

Call ``init()`` once before the client connects. Records go to a rotating
file under ``log_dir`` and, unless ``foreground`` is False, to stderr.

Format (UTC)::

    2026-10-19T10:00:00.123Z [INFO    ] almondlink.connection: Websocket opened
"""

from __future__ import annotations

import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# websockets logs every frame at DEBUG; keep it quieter than our own loggers
_LIBRARY_LEVELS = {"websockets": "INFO"}

_FMT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


class _UtcFormatter(logging.Formatter):
    converter = time.gmtime

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = time.strftime("%Y-%m-%dT%H:%M:%S", self.converter(record.created))
        return f"{stamp}.{int(record.msecs):03d}Z"


def _level(name: str, default: int = logging.INFO) -> int:
    value = getattr(logging, name.upper(), None)
    return value if isinstance(value, int) else default


def init(
    component: str,
    log_dir: Path | None,
    *,
    level: str = "INFO",
    foreground: bool = True,
    log_levels: dict[str, str] | None = None,
) -> None:
    """Configure the root logger for one almondlink process.

    Parameters
    ----------
    component:
        Log-file stem, e.g. ``"cli"``.
    log_dir:
        Directory for the rotating log file, created if absent. ``None``
        disables file logging.
    level:
        Root level name, ``"INFO"`` by default.
    foreground:
        Also log to stderr.
    log_levels:
        Per-logger overrides, e.g. ``{"almondlink.correlation": "DEBUG"}``.
    """
    formatter = _UtcFormatter(_FMT)
    handlers: list[logging.Handler] = []

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / f"{component}.log",
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        handlers.append(file_handler)

    if foreground:
        handlers.append(logging.StreamHandler())

    root = logging.getLogger()
    root.setLevel(_level(level))
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for logger_name, level_str in {**_LIBRARY_LEVELS, **(log_levels or {})}.items():
        logging.getLogger(logger_name).setLevel(_level(level_str))
