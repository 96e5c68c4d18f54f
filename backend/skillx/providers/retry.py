"""Retry strategy for backend operations.

Exponential backoff with jitter for transient errors. A RateLimitError
carrying a Retry-After hint waits for the hinted duration instead.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from skillx.providers.errors import RateLimitError, TransientError

__all__ = ["RetryPolicy", "with_retries"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry settings.

    Attributes:
        max_retries: Retries after the first attempt (0 disables retrying).
        base_delay_ms: Base delay for exponential backoff.
        max_delay_ms: Max delay cap for exponential backoff.
    """

    max_retries: int = 3
    base_delay_ms: int = 500
    max_delay_ms: int = 8000


async def with_retries(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retryable_errors: tuple[type[Exception], ...] = (TransientError, RateLimitError),
) -> T:
    """Await ``func`` until it succeeds or the policy runs out of retries.

    Only ``retryable_errors`` are retried; anything else propagates at once.
    After the last attempt the final retryable error is re-raised.

    Args:
        func: Zero-argument coroutine factory, called once per attempt.
        policy: Attempt count and backoff bounds.
        retryable_errors: Error types worth another attempt.

    Returns:
        Whatever ``func`` returned on the successful attempt.
    """
    last_error: Exception | None = None

    for attempt in range(policy.max_retries + 1):
        try:
            return await func()
        except retryable_errors as e:
            last_error = e

            if attempt == policy.max_retries:
                break

            if isinstance(e, RateLimitError) and e.retry_after_seconds:
                delay = e.retry_after_seconds
            else:
                base_delay = policy.base_delay_ms * (2**attempt)
                jitter = random.uniform(0, base_delay * 0.1)
                delay = min(base_delay + jitter, policy.max_delay_ms) / 1000

            logger.warning(
                "Backend error (attempt %d/%d): %s. Retrying in %.2fs",
                attempt + 1,
                policy.max_retries + 1,
                e,
                delay,
            )

            await asyncio.sleep(delay)

    if last_error is not None:
        raise last_error
    raise RuntimeError("Retry loop exited without error or result")
