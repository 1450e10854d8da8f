"""Run log for the assistant's own loggers.

Everything under the ``hitl_email_assistant`` logger (triage decisions,
review requests, reviewer answers, run summaries) goes to one file so a
suspended thread can be audited after it is resumed in another process.
The root logger is left alone; applications embedding the assistant keep
their own logging setup.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

__all__ = ["PACKAGE_LOGGER", "setup_logging"]

PACKAGE_LOGGER = "hitl_email_assistant"

_LOG_PATH_ENV = "EMAIL_ASSISTANT_LOG_PATH"
_LOG_LEVEL_ENV = "EMAIL_ASSISTANT_LOG_LEVEL"
_DEFAULT_LOG_PATH = "logs/hitl_email_assistant.log"
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _level_from_env() -> int:
    name = (os.getenv(_LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(path: Optional[str] = None, level: Optional[int] = None) -> Optional[Path]:
    """Attach the run-log file handler to the package logger.

    ``EMAIL_ASSISTANT_LOG_PATH=""`` disables the file. Calling this again with
    the same path is a no-op apart from the level. Returns the log path, or
    ``None`` when file logging is off.
    """

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level if level is not None else _level_from_env())

    raw_path = path if path is not None else os.getenv(_LOG_PATH_ENV, _DEFAULT_LOG_PATH)
    if not raw_path:
        return None

    log_path = Path(raw_path).expanduser().resolve()
    for handler in package_logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path:
            return log_path

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    package_logger.addHandler(file_handler)
    return log_path
