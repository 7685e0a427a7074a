"""
app/services/write_retry.py

Bounded retry for watchlist writes that lose a race with a concurrent writer.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from app.config import WriteRetrySettings, get_write_retry_settings
from app.repositories.watchlist_repository import WriteConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WriteRetryExhaustedError(RuntimeError):
    """
    Raised when a write still conflicts after every allowed attempt.
    """

    def __init__(self, description: str, attempts: int) -> None:
        super().__init__(f"{description} still conflicted after {attempts} attempts.")
        self.description = description
        self.attempts = attempts


@dataclass(frozen=True)
class WriteRetryPolicy:
    """
    Attempt budget and exponential backoff between attempts.
    """

    max_attempts: int = 3
    backoff_initial_seconds: float = 0.05
    backoff_multiplier: float = 2.0

    @classmethod
    def from_settings(cls, settings: WriteRetrySettings | None = None) -> WriteRetryPolicy:
        resolved = settings or get_write_retry_settings()
        return cls(
            max_attempts=resolved.max_attempts,
            backoff_initial_seconds=resolved.backoff_initial_seconds,
            backoff_multiplier=resolved.backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """
        Wait before attempt ``attempt + 1`` (attempts are 1-based).
        """

        return self.backoff_initial_seconds * (self.backoff_multiplier ** (attempt - 1))


def run_with_write_retry(
    operation: Callable[[], T],
    *,
    policy: WriteRetryPolicy,
    description: str = "watchlist write",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run ``operation`` until it stops raising WriteConflictError.

    The operation must re-read whatever it depends on, because a retry means
    another writer changed the data in between.
    """

    attempts = max(1, policy.max_attempts)
    last_error: WriteConflictError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except WriteConflictError as exc:
            last_error = exc

        if attempt >= attempts:
            break

        delay = policy.delay_for(attempt)
        logger.warning(
            "Write conflict retry operation=%s attempt=%s/%s wait_seconds=%.3f error=%s",
            description,
            attempt,
            attempts,
            delay,
            last_error,
        )
        sleep(delay)

    logger.error(
        "Write conflict retries exhausted operation=%s attempts=%s error=%s",
        description,
        attempts,
        last_error,
    )
    raise WriteRetryExhaustedError(description, attempts) from last_error
