"""Declarative request configuration and feature policies."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Mapping, Union

if TYPE_CHECKING:
    from .adapters import CacheAdapter, RequestAdapter
    from .models import Response


RetryStrategy = Literal["fixed", "linear", "exponential"]
RETRY_STRATEGIES: tuple[str, ...] = ("fixed", "linear", "exponential")

OnBeforeHook = Callable[["RequestConfig"], Union["RequestConfig", None, Awaitable[Union["RequestConfig", None]]]]
OnSuccessHook = Callable[["Response"], Union[None, Awaitable[None]]]
OnErrorHook = Callable[[BaseException], Union[None, Awaitable[None]]]
OnFinallyHook = Callable[[], Union[None, Awaitable[None]]]
RetryCondition = Union[Callable[[BaseException], bool], Callable[[BaseException, int], bool]]

HOOK_FIELDS = ("on_before", "on_success", "on_error", "on_finally")


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy. ``max_attempts`` counts the first try.

    ``condition`` is called as ``condition(error)`` or, when it accepts a
    second positional argument, ``condition(error, retry_index)``.
    """

    max_attempts: int = 3
    delay: float = 0.0
    strategy: RetryStrategy = "fixed"
    multiplier: float = 2.0
    max_delay: float | None = None
    jitter: float = 0.0
    condition: RetryCondition | None = None
    total_timeout: float | None = None
    respect_retry_after: bool = True


@dataclass(frozen=True)
class CacheConfig:
    key: str | None = None
    ttl: float | None = None
    cache_adapter: CacheAdapter | None = None


@dataclass(frozen=True)
class IdempotentConfig:
    key: str | None = None
    ttl: float | None = None
    cache_adapter: CacheAdapter | None = None


@dataclass(frozen=True)
class RequestConfig:
    """Per-call (and process-wide) request configuration.

    Every field except ``url`` is optional; ``None`` means "inherit from the
    next layer" when configurations are merged.
    """

    url: str = ""
    method: str | None = None
    base_url: str | None = None
    headers: Mapping[str, str] | None = None
    params: Mapping[str, Any] | None = None
    data: Any = None
    timeout: float | None = None
    adapter: RequestAdapter | None = None
    cache: CacheConfig | None = None
    idempotent: IdempotentConfig | None = None
    retry: RetryConfig | None = None
    cache_adapter: CacheAdapter | None = None
    on_before: OnBeforeHook | None = None
    on_success: OnSuccessHook | None = None
    on_error: OnErrorHook | None = None
    on_finally: OnFinallyHook | None = None

    def replace(self, **changes: Any) -> "RequestConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_value(cls, value: "RequestConfig | Mapping[str, Any] | None" = None, **fields: Any) -> "RequestConfig":
        if value is None:
            config = cls()
        elif isinstance(value, RequestConfig):
            config = value
        elif isinstance(value, Mapping):
            config = cls(**dict(value))
        else:
            raise TypeError(f"Unsupported request config: {type(value).__name__}")
        return config.replace(**fields) if fields else config


GlobalConfig = RequestConfig
