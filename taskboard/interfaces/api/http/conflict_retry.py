"""taskboard.interfaces.api.http.conflict_retry

Name: Re-submit task mutations that lost a lane race

The mutation core gives up on the first ConflictError and leaves nothing
behind, so re-running the whole call is safe. Only the HTTP layer does that,
a bounded number of times with exponential backoff + jitter, before the
client sees 409.

Collaborators:
  - tenacity (retry engine)
  - crosscutting.config (attempt budget and delays)
  - crosscutting.logger (one warning per retry)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ....crosscutting.config import get_settings
from ....crosscutting.exceptions import TaskBoardError
from ....crosscutting.logger import logger

T = TypeVar("T")


@dataclass(frozen=True)
class ConflictRetryPolicy:
    attempts: int
    base_delay: float
    max_delay: float

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay cannot be negative")
        if self.max_delay <= 0:
            raise ValueError("max_delay must be positive")


def is_retryable(exception: BaseException) -> bool:
    return isinstance(exception, TaskBoardError) and exception.retryable


def _warn_before_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    pause = state.next_action.sleep if state.next_action else 0.0
    logger.warning(
        "task mutation conflicted, retrying",
        extra={
            "operation": getattr(state.fn, "__name__", "unknown"),
            "attempt": state.attempt_number,
            "wait_seconds": round(float(pause), 3),
            "reason": str(error) if error else None,
        },
    )


def create_conflict_retry(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """tenacity decorator; arguments left as None come from Settings."""
    settings = get_settings()
    policy = ConflictRetryPolicy(
        attempts=settings.conflict_retry_attempts if max_attempts is None else max_attempts,
        base_delay=float(
            settings.conflict_retry_base_delay_seconds if base_delay is None else base_delay
        ),
        max_delay=float(
            settings.conflict_retry_max_delay_seconds if max_delay is None else max_delay
        ),
    )
    return retry(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential_jitter(
            initial=policy.base_delay, max=policy.max_delay, jitter=policy.base_delay
        ),
        before_sleep=_warn_before_retry,
        reraise=True,
    )


def call_with_conflict_retry(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    return create_conflict_retry()(fn)(*args, **kwargs)
