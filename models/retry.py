"""Retry conditions shared by the LLM providers."""

import httpx
import openai

from shelfsort import ShelfSort
from utils.retry import TRANSIENT_HTTP_STATUS_CODES, is_transient_network_error


def is_retryable(exc: Exception) -> bool:
    """Rate limits, 5xx responses and network failures are worth retrying.

    Both SDKs expose the HTTP status as ``status_code`` on their API errors.
    Connection failures surface as openai.APIConnectionError or, for Mistral,
    as raw httpx transport errors.
    """
    status = getattr(exc, 'status_code', None)
    if status in TRANSIENT_HTTP_STATUS_CODES:
        return True
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError)):
        return True
    return is_transient_network_error(exc)


def log_retry(exc: Exception, attempt: int, delay: float) -> None:
    ShelfSort.print_right(
        f"[yellow]Oracle call failed ({exc}), retry {attempt} in {delay:.1f}s[/yellow]"
    )
