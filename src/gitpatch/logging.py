"""Logging setup for gitpatch runs.

Each ``apply`` run writes to ``~/.gitpatch/runs/<run_id>.log``. The run logger
is isolated (no propagation) and avoids duplicate handlers across repeated
initializations.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from gitpatch.config import LogLevel
from gitpatch.paths import runs_dir

DEFAULT_MAX_LOG_BYTES = 5 * 1024 * 1024


def generate_run_id(now: datetime | None = None) -> str:
    """Return a run id in the form YYYYMMDDHHMM-uuid4.

    ``now`` exists to ease testing and determinism; it defaults to current UTC.
    """

    instant = now or datetime.now(UTC)
    timestamp = instant.strftime("%Y%m%d%H%M")
    return f"{timestamp}-{uuid4()}"


def run_log_path(run_id: str, base_dir: Path | None = None) -> Path:
    return runs_dir(base_dir) / f"{run_id}.log"


def configure_run_logger(
    run_id: str,
    *,
    log_level: LogLevel | str = LogLevel.INFO,
    base_dir: Path | None = None,
    max_bytes: int = DEFAULT_MAX_LOG_BYTES,
) -> logging.Logger:
    """Configure and return a file logger scoped to a run.

    Subsequent calls with the same run_id return the same logger without
    duplicating handlers. An existing log larger than ``max_bytes`` is
    truncated before the handler is attached.
    """

    logger = logging.getLogger(f"gitpatch.run.{run_id}")

    level_value = _to_logging_level(log_level)
    logger.setLevel(level_value)
    logger.propagate = False

    if not logger.handlers:
        path = run_log_path(run_id, base_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists() and path.stat().st_size > max_bytes:
            path.write_text("", encoding="utf-8")

        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level_value)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)

    return logger


def close_run_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.flush()
        handler.close()
        logger.removeHandler(handler)


def _to_logging_level(value: LogLevel | str) -> int:
    mapping = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
    }
    if isinstance(value, LogLevel):
        return mapping[value]
    if isinstance(value, str):
        try:
            return mapping[LogLevel(value)]
        except ValueError:
            return logging.WARNING
    return logging.WARNING


__all__ = [
    "close_run_logger",
    "configure_run_logger",
    "generate_run_id",
    "run_log_path",
    "_to_logging_level",
]
