"""
Bounded exponential backoff around a single external call.

Delay before retry n (0-indexed) is ``initial_delay * 2**n``. Only failures
classified as transient are retried; everything else propagates on its
first occurrence, and the last transient failure propagates once the
retries are used up.

Example:
    response = await retry_async(
        lambda: client.post(url, json=payload),
        max_retries=2,
        initial_delay=1.0,
    )
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from briefing.errors import PermanentExternalError, TransientExternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are worth retrying."""
    return status_code == 429 or 500 <= status_code < 600


def is_transient_error(exc: BaseException) -> bool:
    """
    Classify a failure as transient (retryable) or permanent.

    Transient:
    - TransientExternalError
    - httpx.TimeoutException, httpx.ConnectError, httpx.ReadError
    - asyncio.TimeoutError
    - httpx.HTTPStatusError with a 429 or 5xx response

    Args:
        exc: The exception that was raised

    Returns:
        True if the operation should be retried
    """
    if isinstance(exc, TransientExternalError):
        return True
    if isinstance(exc, PermanentExternalError):
        return False
    if isinstance(
        exc,
        (
            httpx.TimeoutException,
            httpx.ConnectError,
            httpx.ReadError,
            asyncio.TimeoutError,
        ),
    ):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_status(exc.response.status_code)
    return False


def backoff_delay(attempt: int, initial_delay: float) -> float:
    """Delay in seconds before retry ``attempt`` (0-indexed)."""
    return initial_delay * (2**attempt)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    initial_delay: float = 1.0,
    classify: Callable[[BaseException], bool] = is_transient_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``operation``, retrying transient failures with exponential backoff.

    The operation is invoked at most ``max_retries + 1`` times. Cancellation
    while waiting propagates unchanged.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        max_retries: Retries after the first attempt
        initial_delay: Delay before the first retry, in seconds
        classify: Returns True for failures worth retrying
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        The operation's result

    Raises:
        The first permanent failure, or the last transient one
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not classify(e):
                raise
            if attempt >= max_retries:
                logger.warning(
                    "Giving up after %d attempts: %s", attempt + 1, e
                )
                raise

            delay = backoff_delay(attempt, initial_delay)
            logger.info(
                "Transient failure (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1, max_retries + 1, delay, e,
            )
            await sleep(delay)
            attempt += 1
