"""
Retry utilities with exponential backoff for transient network errors.

Oracle APIs fail temporarily on rate limiting (HTTP 429), overloaded servers
(HTTP 5xx) and dropped connections. Those calls are retried with a delay that
doubles after every attempt, capped at max_delay, and multiplied by a random
jitter factor between 0.5 and 1.5 so concurrent clients don't retry in lockstep.

USAGE:
------
    from utils.retry import retry_on_transient_error

    def is_retryable(exc):
        return getattr(exc, 'status_code', None) in {429, 503}

    @retry_on_transient_error(is_retryable=is_retryable, max_retries=3)
    def call_oracle():
        return client.chat.completions.create(...)
"""

import time
import random
from functools import wraps
from typing import Callable, Optional


def retry_on_transient_error(
    is_retryable: Callable[[Exception], bool],
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    on_retry: Optional[Callable[[Exception, int, float], None]] = None,
):
    """
    Decorator that retries a function on transient errors with exponential backoff.

    Args:
        is_retryable: Takes an exception and returns True if the call should
                      be retried. Anything else is re-raised immediately.
        max_retries: Maximum number of retry attempts after the initial try.
        base_delay: Delay in seconds before the first retry, doubled each time.
        max_delay: Cap on the delay before jitter is applied.
        on_retry: Optional callback receiving (exc, attempt, delay) before
                  each retry, used for logging.

    Raises:
        The last exception encountered if all retries are exhausted, or
        immediately if the exception is not retryable.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None

            # Total attempts = max_retries + 1
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as exc:
                    if not is_retryable(exc):
                        raise

                    last_exception = exc

                    if attempt < max_retries:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        delay *= 0.5 + random.random()

                        if on_retry:
                            on_retry(exc, attempt + 1, delay)

                        time.sleep(delay)

            raise last_exception

        return wrapper
    return decorator


# Standard HTTP status codes that indicate transient server issues
TRANSIENT_HTTP_STATUS_CODES = {
    429,  # Too Many Requests (rate limited)
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}

# Standard network exception types that are typically transient
TRANSIENT_NETWORK_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
)


def is_transient_network_error(exc: Exception) -> bool:
    """Check if an exception is a transient network error."""
    return isinstance(exc, TRANSIENT_NETWORK_EXCEPTIONS)
