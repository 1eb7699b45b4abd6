"""
Tests for the logging setup.
"""
import logging

import pytest

from app_safety.logging_config import NOISY_LOGGERS, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers, root.level = handlers, level


def test_writes_to_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"

    setup_logging("debug", str(log_file))
    get_logger("app_safety.test").info("analysis ready")

    assert log_file.exists()
    assert "app_safety.test - INFO - analysis ready" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_sdk_loggers_are_quieted():
    setup_logging("DEBUG")

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
