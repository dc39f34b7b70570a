"""Bounded retry with pluggable backoff."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

# attempt number (1-based, the attempt that just failed) -> seconds to wait
DelayPolicy = Callable[[int], float]


def fixed_delay(seconds: float) -> DelayPolicy:
    """Wait the same amount of time after every failed attempt."""
    if seconds < 0:
        raise ValueError("delay must be >= 0")
    return lambda attempt: seconds


def exponential_delay(base: float, factor: float = 2.0, maximum: Optional[float] = None) -> DelayPolicy:
    """Wait base, base*factor, base*factor**2, ... capped at maximum."""
    if base < 0 or factor < 1:
        raise ValueError("base must be >= 0 and factor >= 1")

    def _delay(attempt: int) -> float:
        value = base * (factor ** (attempt - 1))
        if maximum is not None:
            value = min(value, maximum)
        return value

    return _delay


async def retry_with_backoff(
    action: Callable[[], Union[T, Awaitable[T]]],
    max_attempts: int,
    delay_policy: DelayPolicy,
    *,
    on_retry: Optional[Callable[[int, BaseException], Any]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``action`` until it succeeds or ``max_attempts`` attempts have failed.

    ``action`` may be a plain callable or return an awaitable. After each
    failure ``on_retry(attempt, error)`` is called, then ``sleep`` waits for
    ``delay_policy(attempt)`` seconds unless that was the last attempt. The
    last error is re-raised once the bound is exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            result = action()
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            if on_retry is not None:
                on_retry(attempt, e)
            if attempt >= max_attempts:
                logger.debug(f"Giving up after {attempt} attempts: {e}")
                raise
            await sleep(delay_policy(attempt))
