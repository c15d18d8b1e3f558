"""Bounded retry with exponential backoff for replay uploads.

Only transient upload failures (connection errors, 5xx and 429
responses) are retried. An explicit API rejection such as
``invalid_auth`` fails on the first attempt.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from replay_uploader.errors import UploadError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """How many times to try an upload within one cycle, and how long to wait."""
    max_attempts: int = 3
    base_delay: float = 2.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: bool = True

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)
        if self.jitter:
            delay = delay * (0.5 + random.random() * 0.5)
        return delay


class RetryError(UploadError):
    """Raised when every attempt at a transient upload failure is used up."""

    def __init__(self, attempts: int, last_error: UploadError) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            last_error.filename,
            f"failed after {attempts} attempts: {last_error.reason}",
            transient=True,
        )


def retry(
    func: Callable[..., T],
    policy: RetryPolicy | None = None,
    sleep_func: Callable[[float], None] | None = None,
    *args: Any,
    **kwargs: Any,
) -> T:
    """Call func, retrying transient UploadErrors with backoff.

    Raises:
        UploadError: The first non-transient failure, unchanged.
        RetryError: If the last attempt still failed transiently.
    """
    pol = policy or RetryPolicy()
    do_sleep = sleep_func or time.sleep

    attempt = 1
    while True:
        try:
            return func(*args, **kwargs)
        except UploadError as exc:
            if not exc.transient:
                raise
            if attempt >= pol.max_attempts:
                raise RetryError(attempt, exc) from exc
            delay = pol.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s), retrying in %.1fs",
                attempt, pol.max_attempts, exc.reason, delay,
            )
        do_sleep(delay)
        attempt += 1
