import json
import logging

import pytest

from anvbot.config import LogLevel
from anvbot.logging_setup import get_logger, setup_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_logs(capsys, restore_root):
    setup_logging(json_logs=True, level="WARN", force=True)
    get_logger("Anv").warning("Failed to send available presence: %s", "timeout")

    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["level"] == "WARNING"
    assert payload["name"] == "Anv"
    assert payload["message"] == "Failed to send available presence: timeout"
    assert logging.getLogger().level == logging.WARNING


def test_get_logger_sets_level():
    assert get_logger("Database", LogLevel.DEBUG).level == logging.DEBUG
    assert get_logger("Client", "warning").level == logging.WARNING


def test_plain_logs_use_level_name_message(capsys, restore_root):
    setup_logging(level="INFO", force=True)
    get_logger("EventHandler").info("Marked self as available")

    assert capsys.readouterr().out.strip().splitlines()[-1] == "INFO | EventHandler | Marked self as available"
