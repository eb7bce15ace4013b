"""
Backoff for transient catalog failures (429, 5xx, dropped connections).
"""
import logging
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type

from .errors import RetryableError

logger = logging.getLogger(__name__)


def _next_wait(error: Exception, scheduled: float, max_delay: float) -> float:
    """The server's Retry-After wins over our schedule, capped at max_delay."""
    retry_after = getattr(error, "retry_after", None)
    if retry_after is None:
        return scheduled
    return min(float(retry_after), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_multiplier: float = 2.0,
    max_delay: float = 30.0,
    exceptions: Tuple[Type[Exception], ...] = (RetryableError,),
    before_sleep: Optional[Callable[[float], None]] = None,
):
    """
    Retry the decorated call up to `max_retries` times on `exceptions`.

    Waits initial_delay, initial_delay * multiplier, ... (never above
    max_delay) between attempts. `before_sleep(wait)` runs before every
    sleep and may raise to abandon the loop, e.g. on cancellation.
    Anything not in `exceptions` propagates on the first attempt.

        @retry_with_backoff(max_retries=2, initial_delay=0.5)
        def fetch_profile():
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            scheduled = initial_delay
            attempts = max_retries + 1
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error(f"{func.__name__} giving up after {attempts} attempts: {e}")
                        raise
                    wait = _next_wait(e, scheduled, max_delay)
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{attempts} failed, retry in {wait:.1f}s: {e}"
                    )
                    if before_sleep is not None:
                        before_sleep(wait)
                    time.sleep(wait)
                    scheduled = min(scheduled * backoff_multiplier, max_delay)

        return wrapper
    return decorator
