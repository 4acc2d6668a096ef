"""
===============================================================================
CRC CARD — taskboard/context.py (request-scoped context)
===============================================================================

Responsibilities:
  - Hold who/what the current request is about, per task (async-safe).
  - Feed the JSON logger so every line of a request can be correlated.

Collaborators:
  - crosscutting.middleware: request id, HTTP method, path.
  - identity.auth: actor id once the bearer token is verified.
  - crosscutting.logger: reads get_context_dict().

Constraints:
  - Values are plain strings; "" means unset and is never logged.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar

# log key -> variable
_FIELDS: dict[str, ContextVar[str]] = {
    "request_id": ContextVar("request_id", default=""),
    "method": ContextVar("http_method", default=""),
    "path": ContextVar("http_path", default=""),
    "actor_id": ContextVar("actor_id", default=""),
}


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    _FIELDS["request_id"].set(request_id or "")
    _FIELDS["method"].set(method or "")
    _FIELDS["path"].set(path or "")


def set_actor_context(actor_id: str = "") -> None:
    _FIELDS["actor_id"].set(actor_id or "")


def get_context_dict() -> dict[str, str]:
    return {key: var.get() for key, var in _FIELDS.items() if var.get()}


def clear_context() -> None:
    for var in _FIELDS.values():
        var.set("")
