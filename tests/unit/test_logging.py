"""Unit tests for logging configuration."""

import json
import logging

import pytest

from onboarding_console.core.logging import JsonFormatter, configure_logging


def test_json_formatter_includes_extra() -> None:
    record = logging.LogRecord(
        name="onboarding_console.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Task completed %s",
        args=("ok",),
        exc_info=None,
    )
    record.task_id = "t-1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "Task completed ok"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "onboarding_console.test"
    assert payload["extra"] == {"task_id": "t-1"}


def test_json_formatter_stringifies_unknown_values() -> None:
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "msg", None, None)
    record.when = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["extra"]["when"].startswith("<object object")


@pytest.mark.usefixtures("restore_root_logger")
def test_configure_logging_json() -> None:
    configure_logging("debug", "json")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("spiff").level == logging.WARNING


@pytest.mark.usefixtures("restore_root_logger")
def test_configure_logging_replaces_handlers() -> None:
    configure_logging("INFO")
    configure_logging("ERROR")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    assert logging.getLogger("spiff").level == logging.ERROR
