"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from revia_service.infra.logging import (
    clear_log_context,
    get_lazy_logger,
    lazy,
    remove_from_log_context,
    set_log_context,
)
from revia_service.infra.logging.context import ContextInjectingFilter, get_log_context
from revia_service.infra.logging.formatters import JSONFormatter


@pytest.fixture(autouse=True)
def _clean_context():
    clear_log_context()
    yield
    clear_log_context()


def make_record(msg: str = "Reminder scheduled", **extra) -> logging.LogRecord:
    record = logging.LogRecord("ReminderScheduler", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_one_line_with_extras() -> None:
    formatter = JSONFormatter(static={"service": "revia-service"})

    line = formatter.format(make_record(reminder_tag="leg-day"))

    assert "\n" not in line
    data = json.loads(line)
    assert data["level"] == "INFO"
    assert data["logger"] == "ReminderScheduler"
    assert data["message"] == "Reminder scheduled"
    assert data["service"] == "revia-service"
    assert data["reminder_tag"] == "leg-day"
    assert data["timestamp"].endswith("Z")
    assert "created" not in data


def test_context_is_injected_without_overwriting() -> None:
    set_log_context(user_id="u-1", request_id="r-1")
    record = make_record(request_id="explicit")

    assert ContextInjectingFilter().filter(record) is True

    assert record.user_id == "u-1"
    assert record.request_id == "explicit"


def test_remove_from_context() -> None:
    set_log_context(user_id="u-1", request_id="r-1")

    remove_from_log_context("user_id")

    assert get_log_context() == {"request_id": "r-1"}


def test_lazy_logger_skips_disabled_levels() -> None:
    logging.getLogger("lazy-test").setLevel(logging.INFO)
    calls = []

    get_lazy_logger("lazy-test").debug(lambda: calls.append("evaluated") or "expensive")

    assert calls == []


def test_lazy_string_defers_until_rendered() -> None:
    calls = []
    message = lazy(lambda: calls.append("evaluated") or "pending=3")

    assert calls == []
    assert str(message) == "pending=3"
    assert calls == ["evaluated"]
