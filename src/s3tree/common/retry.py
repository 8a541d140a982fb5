"""Exponential backoff with full jitter.

Only credential acquisition is retried. Copy, move and delete never retry
internally; a failed store call surfaces as a ``StoreError`` whose
``retryable`` flag is left for the caller to act on.
"""

import functools
import random
import time
from typing import Callable, Tuple, Type

from s3tree.common.config import TransferConfig
from s3tree.common.exceptions import NonRetryableError, RetryableError
from s3tree.common.logger import get_logger

logger = get_logger(__name__)


def exponential_backoff_with_jitter(
    max_attempts: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (RetryableError,),
) -> Callable:
    """Decorator retrying ``retryable_exceptions`` up to ``max_attempts`` times.

    Before attempt ``n + 1`` it sleeps ``uniform(0, min(max_delay, base_delay * 2**n))``.
    ``NonRetryableError`` always propagates at once.
    """
    attempts = max(1, max_attempts)

    def decorator(func: Callable) -> Callable:
        name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except NonRetryableError:
                    raise
                except retryable_exceptions as e:
                    if attempt == attempts - 1:
                        logger.error(
                            "Giving up on %s after %d attempts", name, attempts, exc_info=True
                        )
                        raise
                    delay = random.uniform(0, min(max_delay, base_delay * (2**attempt)))
                    logger.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.2fs",
                        name,
                        attempt + 1,
                        attempts,
                        e,
                        delay,
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


def with_configured_retry(func: Callable, config: TransferConfig) -> Callable:
    """Wrap ``func`` in the backoff policy set by ``MAX_RETRY_ATTEMPTS`` and ``RETRY_*``."""
    return exponential_backoff_with_jitter(
        max_attempts=config.max_retry_attempts,
        base_delay=config.retry_base_delay,
        max_delay=config.retry_max_delay,
    )(func)
