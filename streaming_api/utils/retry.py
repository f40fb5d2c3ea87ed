"""
Bounded retry for transient subprocess failures
Used around ffprobe, whose only transient failure is a timeout
"""

import functools
import random
import subprocess
import time
from typing import Callable, Optional, Tuple, Type

from .logger import get_logger

logger = get_logger()


def backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool = True) -> float:
    """Seconds to wait before retry number ``attempt + 1`` (doubling, capped)."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry_sync(
    max_retries: int,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (subprocess.TimeoutExpired,),
    describe: Optional[Callable[..., str]] = None
):
    """
    Retry a blocking call on the given exceptions with exponential backoff.

    Args:
        max_retries: Extra attempts after the first one; 0 disables retrying
        base_delay: Delay before the first retry in seconds
        max_delay: Upper bound for a single delay
        jitter: Scale each delay by a random factor in [0.5, 1.5)
        retryable_exceptions: Exceptions treated as transient; anything else
            propagates on the first occurrence
        describe: Builds the log label from the call arguments, e.g. the
            job and file being probed. Defaults to the function name.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            label = describe(*args, **kwargs) if describe else func.__name__
            attempts = max_retries + 1
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt + 1 >= attempts:
                        logger.error(f"{label}: giving up after {attempts} attempts ({type(e).__name__})")
                        raise
                    delay = backoff_delay(attempt, base_delay, max_delay, jitter)
                    logger.warning(
                        f"{label}: attempt {attempt + 1}/{attempts} failed "
                        f"({type(e).__name__}), retrying in {delay:.2f}s"
                    )
                    time.sleep(delay)

        return wrapper
    return decorator
