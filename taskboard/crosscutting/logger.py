"""
===============================================================================
MODULE: Structured (JSON) logger with request context
===============================================================================

One log line per event, as a JSON object:
- request_id / method / path / actor_id come from taskboard/context.py
- `extra={...}` fields are merged at the top level
- secrets are masked and long values are clipped (task descriptions can be
  10k characters)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  JSONFormatter + setup_logger()

Responsibilities:
  - LogRecord -> JSON
  - Request/actor context enrichment
  - Redaction of sensitive keys, bounded nesting

Collaborators:
  - taskboard/context.py (ContextVars)
  - crosscutting/config.py (log_level, log_json)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as SettingsValidationError

from ..context import get_context_dict

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "authorization",
        "access_token",
        "jwt_secret",
        "database_url",
        "credential",
    }
)

MAX_VALUE_CHARS = 2_000
MAX_DEPTH = 4

# Attributes every LogRecord carries; anything else came from `extra`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def sanitize(value: Any, key: str | None = None, depth: int = 0) -> Any:
    """JSON-safe copy of `value` with secrets masked."""
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if depth > MAX_DEPTH:
        return "..."
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, dict):
        return {str(k): sanitize(v, str(k), depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize(v, key, depth + 1) for v in value]
    text = value if isinstance(value, str) else str(value)
    if len(text) > MAX_VALUE_CHARS:
        return text[:MAX_VALUE_CHARS] + "...(truncated)"
    return text


class JSONFormatter(logging.Formatter):
    """Formats a record as one JSON line (see module docstring)."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
        }
        payload.update(get_context_dict())

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS:
                payload[key] = sanitize(value, key)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(name: str = "taskboard") -> logging.Logger:
    """
    Configure the project logger once (re-imports do not stack handlers).

    Level and format come from Settings when the environment is complete;
    tooling without DATABASE_URL falls back to INFO + JSON.
    """
    level, as_json = "INFO", True
    try:
        from .config import get_settings

        settings = get_settings()
        level, as_json = settings.log_level.upper(), settings.log_json
    except SettingsValidationError:
        pass

    log = logging.getLogger(name)
    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter() if as_json else logging.Formatter("%(levelname)s %(message)s")
        )
        log.addHandler(handler)
    return log


logger = setup_logger()
