"""
Name: JSON Logger and Request Context Tests

Responsibilities:
  - JSON payload carries message, extra fields and request context
  - Sensitive keys are redacted
  - clear_context() resets every context variable
"""

import json
import logging

import pytest

from taskboard.context import (
    clear_context,
    get_context_dict,
    set_actor_context,
    set_request_context,
)
from taskboard.crosscutting.logger import JSONFormatter

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="taskboard",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_payload_includes_extra_fields_and_context():
    set_request_context(request_id="req-1", method="PATCH", path="/v1/tasks/x")
    set_actor_context("actor-9")

    payload = json.loads(JSONFormatter().format(_record("task updated", position=3)))

    assert payload["message"] == "task updated"
    assert payload["level"] == "INFO"
    assert payload["position"] == 3
    assert payload["request_id"] == "req-1"
    assert payload["method"] == "PATCH"
    assert payload["actor_id"] == "actor-9"


def test_sensitive_keys_are_redacted():
    payload = json.loads(
        JSONFormatter().format(
            _record("config", database_url="postgresql://u:p@h/db", token="abc")
        )
    )

    assert payload["database_url"] == "***REDACTED***"
    assert payload["token"] == "***REDACTED***"


def test_nested_values_are_sanitized():
    payload = json.loads(
        JSONFormatter().format(_record("nested", details={"password": "x", "n": 1}))
    )
    assert payload["details"] == {"password": "***REDACTED***", "n": 1}


def test_clear_context_resets_everything():
    set_request_context(request_id="r", method="GET", path="/")
    set_actor_context("a")

    clear_context()

    assert get_context_dict() == {}
