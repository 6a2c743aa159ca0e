import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from gitpatch.config import LogLevel
from gitpatch.logging import (
    _to_logging_level,
    close_run_logger,
    configure_run_logger,
    generate_run_id,
    run_log_path,
)


def test_generate_run_id_format() -> None:
    run_id = generate_run_id(datetime(2024, 5, 6, 7, 8, tzinfo=UTC))
    assert run_id.startswith("202405060708-")
    assert re.fullmatch(r"\d{12}-[0-9a-f\-]{36}", run_id)
    assert generate_run_id() != generate_run_id()


def test_run_log_path_respects_base(tmp_path: Path) -> None:
    assert run_log_path("abc", tmp_path) == tmp_path / "runs" / "abc.log"


def test_run_log_path_defaults_to_home(gitpatch_home: Path) -> None:
    assert run_log_path("abc") == gitpatch_home / "runs" / "abc.log"


def test_configure_run_logger_creates_file_and_logs(tmp_path: Path) -> None:
    logger = configure_run_logger("run-1", base_dir=tmp_path, log_level=LogLevel.INFO)

    logger.info("hello world")
    close_run_logger(logger)

    content = run_log_path("run-1", tmp_path).read_text(encoding="utf-8")
    assert "hello world" in content
    assert logger.handlers == []


def test_configure_run_logger_is_idempotent(tmp_path: Path) -> None:
    logger1 = configure_run_logger("run-dup", base_dir=tmp_path)
    logger2 = configure_run_logger("run-dup", base_dir=tmp_path)
    try:
        assert logger1 is logger2
        assert len(logger1.handlers) == 1
        assert logger1.propagate is False
    finally:
        close_run_logger(logger1)


def test_oversized_log_is_truncated(tmp_path: Path) -> None:
    path = run_log_path("run-big", tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text("x" * 100, encoding="utf-8")

    logger = configure_run_logger("run-big", base_dir=tmp_path, max_bytes=10)
    logger.warning("fresh")
    close_run_logger(logger)

    content = path.read_text(encoding="utf-8")
    assert "xxxx" not in content
    assert "fresh" in content


def test_log_level_mapping(tmp_path: Path) -> None:
    logger = configure_run_logger("run-level", base_dir=tmp_path, log_level="verbose")
    try:
        assert logger.level == logging.WARNING
    finally:
        close_run_logger(logger)


def test_to_logging_level_handles_enum_and_string() -> None:
    assert _to_logging_level(LogLevel.ERROR) == logging.ERROR
    assert _to_logging_level("debug") == logging.DEBUG
    assert _to_logging_level(123) == logging.WARNING  # type: ignore[arg-type]
