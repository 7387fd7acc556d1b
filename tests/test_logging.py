"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from streakline.config import BaseConfig
from streakline.logging_config import JSONFormatter, get_logger, setup_logging, teardown_logging


@pytest.fixture(autouse=True)
def _cleanup_handlers():
    yield
    teardown_logging()


def _record(**overrides) -> logging.LogRecord:
    record = logging.LogRecord(
        name="streakline.test",
        level=overrides.pop("level", logging.INFO),
        pathname="test.py",
        lineno=42,
        msg=overrides.pop("msg", "Test message"),
        args=(),
        exc_info=overrides.pop("exc_info", None),
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in overrides.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "streakline.test"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_includes_extra_fields():
    log_data = json.loads(JSONFormatter().format(_record(habit_id=7, day="2024-01-01")))
    assert log_data["extra"] == {"habit_id": 7, "day": "2024-01-01"}


def test_json_formatter_with_exception():
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging_writes_json_file(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "streakline"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "streakline.log"
    assert log_file.exists()

    get_logger("services.test").warning("Something odd", extra={"key": "bogus"})
    for handler in logger.handlers:
        handler.flush()

    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert lines[0]["message"] == "Logging initialized"
    assert lines[-1]["message"] == "Something odd"
    assert lines[-1]["extra"] == {"key": "bogus"}


def test_setup_logging_twice_does_not_duplicate_handlers(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger_namespacing():
    assert get_logger("module1").name == "streakline.module1"
    assert get_logger("streakline.services.habits").name == "streakline.services.habits"
    assert get_logger("streakline").name == "streakline"


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console = [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(console) == 1
    assert console[0].level == (logging.INFO if dev_mode else logging.WARNING)


def test_console_level_override(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path

    logger = setup_logging(config, console_level=logging.ERROR)

    levels = {type(h).__name__: h.level for h in logger.handlers}
    assert levels["StreamHandler"] == logging.ERROR
