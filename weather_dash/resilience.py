"""
Failure taxonomy and adapter-local retry for Weather Dash.

ErrorType labels every failed provider attempt. with_retry() lets an adapter
repeat its own HTTP call on transient errors; the WeatherManager itself
never retries a provider inside one request, it moves to the next candidate.
"""

import asyncio
import functools
import json
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    PARSE_ERROR = "parse_error"
    CREDENTIAL_MISSING = "credential_missing"
    NO_PROVIDERS = "no_providers"  # every provider filtered out before any call
    EXHAUSTED = "exhausted"        # every candidate was called and failed
    UNKNOWN = "unknown"


# Providers signal quota exhaustion with either status
RATE_LIMIT_STATUSES = {
    429: "HTTP 429 Too Many Requests",
    503: "HTTP 503 Service Unavailable (quota?)",
}


@dataclass
class RetryConfig:
    """How an adapter retries its own request."""
    max_retries: int = 1  # extra attempts after the first
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 5.0
    exponential_base: float = 2.0
    jitter: bool = True

    # Client errors: the same request will fail again
    non_retryable_status_codes: tuple = (400, 401, 403, 404, 422)
    retryable_status_codes: tuple = (408, 429, 500, 502, 503, 504)


def categorize_error(exception: Exception) -> Tuple[ErrorType, str]:
    """Map an exception raised during a provider call to (ErrorType, short message)."""
    detail = str(exception)[:200]

    if isinstance(exception, httpx.TimeoutException):
        return ErrorType.TIMEOUT, f"Timeout: {detail}"

    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        if status in RATE_LIMIT_STATUSES:
            return ErrorType.RATE_LIMIT, RATE_LIMIT_STATUSES[status]
        return ErrorType.API_ERROR, f"HTTP {status}"

    if isinstance(exception, httpx.RequestError):
        return ErrorType.API_ERROR, f"Request error: {detail}"

    if isinstance(exception, (json.JSONDecodeError, KeyError, ValueError, TypeError)):
        return ErrorType.PARSE_ERROR, f"Parse error: {detail}"

    return ErrorType.UNKNOWN, detail


def calculate_backoff_delay(attempt: int, config: RetryConfig) -> float:
    """Seconds to wait before retry number attempt + 1 (attempt is 0-based)."""
    delay = min(
        config.base_delay_seconds * config.exponential_base ** attempt,
        config.max_delay_seconds,
    )
    if config.jitter:
        delay *= 1 + 0.25 * random.random()
    return delay


def is_retryable_error(exception: Exception, config: RetryConfig) -> bool:
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        if status in config.non_retryable_status_codes:
            return False
        return status in config.retryable_status_codes or status >= 500

    # Timeouts and connection failures
    if isinstance(exception, httpx.RequestError):
        return True

    # A malformed body comes back malformed
    if isinstance(exception, (KeyError, ValueError, TypeError)):
        return False

    return True


def with_retry(config: Optional[RetryConfig] = None, provider_name: str = "unknown") -> Callable:
    """
    Decorate an async call so transient failures are retried with backoff.

    The last exception is re-raised once attempts run out or the error is not
    retryable; the adapter turns it into a failed AdapterResult.
    """
    config = config or RetryConfig()

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            started = time.monotonic()
            attempts = config.max_retries + 1

            for attempt in range(attempts):
                if attempt:
                    delay = calculate_backoff_delay(attempt - 1, config)
                    logger.info(f"[{provider_name}] Retry {attempt}/{config.max_retries} in {delay:.1f}s")
                    await asyncio.sleep(delay)

                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    error_type, detail = categorize_error(e)
                    logger.warning(f"[{provider_name}] Attempt {attempt + 1}/{attempts} failed: "
                                   f"{error_type.value} - {detail}")
                    if attempt + 1 == attempts or not is_retryable_error(e, config):
                        logger.error(f"[{provider_name}] Giving up after "
                                     f"{time.monotonic() - started:.2f}s")
                        raise
                    continue

                if attempt:
                    logger.info(f"[{provider_name}] Recovered on attempt {attempt + 1}")
                return result

        return wrapper

    return decorator
