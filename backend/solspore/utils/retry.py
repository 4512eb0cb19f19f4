"""Bounded retry with fixed backoff for store and payment-rail calls."""

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from pymongo.errors import PyMongoError

from solspore.exceptions import RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connectivity-class failures worth another attempt. Anything else is a bug or a
# validation problem and fails immediately.
TRANSIENT_ERRORS: Tuple[Type[BaseException], ...] = (PyMongoError, OSError, asyncio.TimeoutError)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    name: str,
    max_attempts: int = 3,
    delay_seconds: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = TRANSIENT_ERRORS,
) -> T:
    """
    Run ``operation`` up to ``max_attempts`` times, sleeping ``delay_seconds``
    between attempts.

    Raises:
        RetryExhausted: every attempt failed with a retryable error.
    """
    max_attempts = max(1, max_attempts)
    last_error: BaseException | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            last_error = e
            logger.warning(f"{name} attempt {attempt}/{max_attempts} failed: {e}")
            if attempt < max_attempts:
                await asyncio.sleep(delay_seconds)

    raise RetryExhausted(name, max_attempts, last_error)
