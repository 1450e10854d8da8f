"""Checkpointer construction for resumable runs.

A suspended run is only as durable as its checkpointer: the SQLite saver keeps
pending review requests across process restarts, the in-memory saver is for
tests and one-shot scripts.
"""

from __future__ import annotations

import atexit
import logging
import os
import sqlite3
from functools import lru_cache
from pathlib import Path
from typing import Optional

from langgraph.checkpoint.memory import MemorySaver
from langgraph.checkpoint.sqlite import SqliteSaver

CHECKPOINT_PATH_ENV = "EMAIL_ASSISTANT_CHECKPOINT_PATH"
SQLITE_TIMEOUT_ENV = "EMAIL_ASSISTANT_SQLITE_TIMEOUT"

_DEFAULT_CHECKPOINT_PATH = Path.home() / ".langgraph" / "hitl_email_checkpoints.sqlite"
_DEFAULT_TIMEOUT_SECONDS = 30.0

logger = logging.getLogger(__name__)


def checkpoint_path(path: Optional[str] = None) -> Path:
    """Where pending reviews are stored: ``path``, the env override, or ~/.langgraph."""

    raw = path or os.getenv(CHECKPOINT_PATH_ENV)
    resolved = Path(raw).expanduser() if raw else _DEFAULT_CHECKPOINT_PATH
    if not resolved.is_absolute():
        resolved = Path.cwd() / resolved
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def sqlite_timeout() -> float:
    raw_value = os.getenv(SQLITE_TIMEOUT_ENV)
    if raw_value is None:
        return _DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw_value)
    except ValueError:
        timeout = 0.0
    if timeout <= 0:
        logger.warning(
            "Invalid %s=%r; falling back to %.1fs",
            SQLITE_TIMEOUT_ENV,
            raw_value,
            _DEFAULT_TIMEOUT_SECONDS,
        )
        return _DEFAULT_TIMEOUT_SECONDS
    return timeout


@lru_cache(maxsize=4)
def get_sqlite_checkpointer(path: Optional[str] = None) -> SqliteSaver:
    """Return a cached SqliteSaver for the requested path.

    One saver per file: the console runner and a resumed run in the same
    process must see the same pending interrupts.
    """

    resolved = checkpoint_path(path)
    timeout_seconds = sqlite_timeout()
    conn = sqlite3.connect(str(resolved), check_same_thread=False, timeout=timeout_seconds)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout = %d" % int(timeout_seconds * 1000))
    atexit.register(conn.close)
    logger.info("Review checkpoints stored at %s", resolved)
    return SqliteSaver(conn)


def new_memory_checkpointer() -> MemorySaver:
    """In-memory checkpointer for tests and single-process runs."""

    return MemorySaver()
