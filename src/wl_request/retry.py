"""Retry policy: attempt ceiling, delay strategy and retryable-error predicate."""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
import time
from typing import Awaitable, Callable

from .exceptions import (
    ConfigError,
    HTTPStatusError,
    RequestCancelledError,
    RequestError,
    RequestTimeoutError,
    RetryExhaustedError,
    TransportError,
)
from .models import Response
from .request_config import RETRY_STRATEGIES, RetryConfig

logger = logging.getLogger(__name__)

Call = Callable[[], Awaitable[Response]]

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


def is_retryable(error: BaseException, retry_index: int = 0) -> bool:
    """Timeouts, network failures and transient HTTP statuses are retryable."""
    if isinstance(error, RequestTimeoutError):
        return True
    if isinstance(error, HTTPStatusError):
        return error.status_code in RETRYABLE_STATUS_CODES
    return isinstance(error, TransportError)


def calculate_delay(retry_index: int, policy: RetryConfig, error: BaseException | None = None) -> float:
    """Seconds to wait before retry number ``retry_index`` (zero based)."""
    if policy.respect_retry_after and isinstance(error, RequestError) and error.retry_after is not None:
        delay = error.retry_after
    else:
        if policy.strategy == "exponential":
            delay = policy.delay * (policy.multiplier**retry_index)
        elif policy.strategy == "linear":
            delay = policy.delay * (retry_index + 1)
        else:
            delay = policy.delay
        if policy.jitter > 0:
            delay += random.uniform(0, policy.jitter)
    if policy.max_delay is not None:
        delay = min(delay, policy.max_delay)
    return max(0.0, delay)


def validate_retry_config(policy: RetryConfig) -> None:
    if policy.max_attempts < 1:
        raise ConfigError("retry.max_attempts must be at least 1")
    if policy.strategy not in RETRY_STRATEGIES:
        raise ConfigError(f"Unsupported retry strategy: {policy.strategy}")
    if policy.delay < 0:
        raise ConfigError("retry.delay must be non-negative")


def _accepts_retry_index(condition: Callable[..., bool]) -> bool:
    try:
        parameters = inspect.signature(condition).parameters.values()
    except (TypeError, ValueError):
        return True
    positional = 0
    for parameter in parameters:
        if parameter.kind is parameter.VAR_POSITIONAL:
            return True
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def retry_condition(policy: RetryConfig) -> Callable[[BaseException, int], bool]:
    """Normalize ``policy.condition`` to a ``(error, retry_index)`` predicate."""
    condition = policy.condition
    if condition is None:
        return is_retryable
    if _accepts_retry_index(condition):
        return condition
    return lambda error, retry_index: condition(error)


def with_retry(call: Call, policy: RetryConfig) -> Call:
    validate_retry_config(policy)
    condition = retry_condition(policy)

    async def retrying() -> Response:
        started = time.monotonic()
        attempt = 0
        while True:
            attempt += 1
            try:
                return await call()
            except RequestCancelledError:
                raise
            except Exception as exc:
                last_error = exc

            retry_index = attempt - 1
            if not condition(last_error, retry_index):
                raise last_error
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(
                    f"Request failed after {attempt} attempts: {last_error}",
                    attempts=attempt,
                    last_error=last_error,
                )

            wait = calculate_delay(retry_index, policy, last_error)
            if policy.total_timeout is not None and time.monotonic() - started + wait > policy.total_timeout:
                raise RetryExhaustedError(
                    f"Retry total timeout exceeded ({policy.total_timeout}s)",
                    attempts=attempt,
                    last_error=last_error,
                )
            logger.warning(
                "attempt %d/%d failed (%s); retrying in %.3fs",
                attempt,
                policy.max_attempts,
                last_error,
                wait,
            )
            await asyncio.sleep(wait)

    return retrying
