"""
Retry utilities.

Provides :func:`retryable`, which re-runs a callable on a chosen set of
exceptions with a constant delay, and the :func:`retry` decorator for
wrapping provider calls with capped exponential backoff.
"""

from __future__ import annotations

import time
import logging
from functools import wraps
from typing import Callable, Any, TypeVar

logger = logging.getLogger("provisioner")

T = TypeVar("T")

# Default set of exception types considered transient / retryable.
_DEFAULT_RETRYABLE: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
)


def retryable(
    fn: Callable[[], T],
    *,
    tries: int,
    on: type[BaseException] | tuple[type[BaseException], ...],
    delay: float = 0.0,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """Call *fn* until it returns, retrying only on *on* exceptions.

    Args:
        fn: Zero-argument callable to run.
        tries: Maximum number of total attempts (including the first).
        on: Exception type(s) that consume an attempt and trigger a retry.
            Anything else propagates immediately.
        delay: Constant pause in seconds between attempts.
        sleep: Function used to pause between attempts.

    Returns:
        The result of the first attempt that does not raise.

    Raises:
        ValueError: If ``tries`` is less than 1.
        The last *on* exception once every attempt has failed.
    """
    if tries < 1:
        raise ValueError(f"tries must be at least 1, got {tries}")

    name = getattr(fn, "__qualname__", repr(fn))
    for attempt in range(1, tries + 1):
        try:
            return fn()
        except on as exc:
            if attempt == tries:
                logger.error("All %d attempts failed for %s: %s", tries, name, exc)
                raise
            logger.warning(
                "Attempt %d/%d for %s failed (%s), retrying in %.1fs…",
                attempt,
                tries,
                name,
                exc,
                delay,
            )
            if delay:
                sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


def retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    retryable_exceptions: tuple[type[BaseException], ...] | None = None,
) -> Callable:
    """Decorator: retry a function on transient exceptions with exponential backoff.

    Args:
        max_attempts: Maximum number of total attempts (including the first).
        base_delay: Initial delay in seconds before the first retry.
        max_delay: Cap on the delay between retries.
        backoff_factor: Multiplier applied to the delay after each retry.
            ``1.0`` keeps the delay constant.
        retryable_exceptions: Tuple of exception types that trigger a retry.
            Defaults to ConnectionError and TimeoutError.

    Returns:
        Decorated function that retries on transient failures.
    """
    if retryable_exceptions is None:
        retryable_exceptions = _DEFAULT_RETRYABLE

    def decorator(fn: Callable) -> Callable:
        @wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = base_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable_exceptions as exc:
                    if attempt == max_attempts:
                        logger.error(
                            "All %d attempts failed for %s: %s",
                            max_attempts,
                            fn.__qualname__,
                            exc,
                        )
                        raise
                    logger.warning(
                        "Attempt %d/%d for %s failed (%s), retrying in %.1fs…",
                        attempt,
                        max_attempts,
                        fn.__qualname__,
                        exc,
                        delay,
                    )
                    time.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return wrapper

    return decorator
