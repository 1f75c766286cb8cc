"""
Retry utility with exponential backoff for calls to external services
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.core.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Auth and billing failures: retrying cannot help
FAST_FAIL_MARKERS = ("401", "402", "403", "Payment Required")
RATE_LIMIT_MARKER = "429"


def is_fast_fail(error: BaseException) -> bool:
    """True for errors that signal unrecoverable auth/billing failures."""
    if isinstance(error, UpstreamUnavailable):
        return True
    message = str(error)
    return any(marker in message for marker in FAST_FAIL_MARKERS)


def is_rate_limited(error: BaseException) -> bool:
    """True for errors carrying a 429 marker."""
    return RATE_LIMIT_MARKER in str(error)


def backoff_delay_ms(
    attempt: int, base_delay_ms: int, rate_limited: bool = False
) -> int:
    """
    Delay before retry number `attempt + 1`.

    delay = base * 2^attempt, doubled again for rate limits. No jitter.
    """
    delay = base_delay_ms * (2 ** attempt)
    if rate_limited:
        delay *= 2
    return delay


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 2,
    base_delay_ms: int = 1000,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Invoke `operation`, retrying up to `max_attempts` additional times.

    Args:
        operation: Zero-argument coroutine factory
        max_attempts: Number of retries after the first call
        base_delay_ms: Base delay in milliseconds
        sleep: Awaitable sleep function (seconds), injectable for tests

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted, or immediately for
        401/402/403-class failures
    """
    sleep = sleep or asyncio.sleep

    for attempt in range(max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if is_fast_fail(e):
                logger.warning(f"Not retrying unrecoverable upstream failure: {e}")
                raise

            if attempt == max_attempts:
                logger.error(
                    f"Giving up after {attempt + 1} attempts: {type(e).__name__}: {e}"
                )
                raise

            if is_rate_limited(e):
                delay = backoff_delay_ms(attempt, base_delay_ms, rate_limited=True)
                logger.info(
                    f"Rate limited, waiting {delay}ms before retry {attempt + 1}/{max_attempts}"
                )
            else:
                delay = backoff_delay_ms(attempt, base_delay_ms)
                logger.info(
                    f"Attempt {attempt + 1} failed ({type(e).__name__}), retrying in {delay}ms..."
                )
            await sleep(delay / 1000)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("run_with_retry exhausted without result")
