"""Retry wrapper for calls to external APIs.

Client errors (4xx) are returned immediately since repeating the same
request cannot succeed. Everything else, including network failures with
no status, is retried with a linear backoff of ``base_delay_ms * attempt``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of a retried call."""

    value: T | None = None
    error: BaseException | None = None
    status_code: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def is_retryable_status(status_code: int | None) -> bool:
    """A failure is retried unless the peer rejected the request itself."""
    # 429 is a client error too and is not retried
    return status_code is None or not 400 <= status_code < 500


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: int = 1000,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> RetryOutcome[T]:
    """Call ``fn`` until it succeeds, fails with a 4xx, or attempts run out.

    Args:
        fn: Async callable taking no arguments
        max_attempts: Total number of calls, at least one is always made
        base_delay_ms: Delay unit; the wait after attempt ``n`` is ``n`` units
        sleep: Awaitable sleep taking seconds, injectable for tests

    Returns:
        RetryOutcome with either ``value`` or the last ``error`` and its
        ``status_code`` (read from the exception's ``status_code`` attribute)
    """
    max_attempts = max(1, max_attempts)
    error: BaseException | None = None
    status_code: int | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            value = await fn()
            return RetryOutcome(value=value, attempts=attempt)
        except Exception as e:
            error = e
            status_code = getattr(e, "status_code", None)

        if not is_retryable_status(status_code):
            logger.info(f"Not retrying after status {status_code} (attempt {attempt})")
            return RetryOutcome(error=error, status_code=status_code, attempts=attempt)

        if attempt < max_attempts:
            delay_ms = base_delay_ms * attempt
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed ({error}), retrying in {delay_ms}ms"
            )
            await sleep(delay_ms / 1000)

    logger.warning(f"All {max_attempts} attempts failed: {error}")
    return RetryOutcome(error=error, status_code=status_code, attempts=max_attempts)
