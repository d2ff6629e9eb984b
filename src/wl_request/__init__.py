"""Client-side request orchestration: hooks, caching, idempotency, retry, composition."""

from .adapters import (
    CacheAdapter,
    RequestAdapter,
    get_adapter,
    get_default_adapter,
    get_default_cache_adapter,
    register_adapter,
    reset_adapters,
    reset_default_cache_adapter,
    set_default_adapter,
    set_default_cache_adapter,
)
from .cache import clear_pending_refills, with_cache
from .cache_adapters import FileCacheAdapter, MemoryCacheAdapter
from .composers import (
    ParallelComposer,
    SerialComposer,
    Settled,
    parallel_requests,
    serial_requests,
    use_parallel_requests,
    use_serial_requests,
)
from .config import configure, get_global_config, merge_config, reset_config, resolve_config
from .exceptions import (
    CompositionError,
    ConfigError,
    HTTPStatusError,
    RequestCancelledError,
    RequestError,
    RequestTimeoutError,
    RetryExhaustedError,
    TransportError,
)
from .hooks import HookPipeline, RequestHooks
from .httpx_adapter import HttpxAdapter
from .idempotency import clear_pending_requests, with_idempotency
from .models import CacheEntry, Response, calculate_expires_at
from .request import RequestInstance, create_request, use_request
from .request_config import (
    CacheConfig,
    GlobalConfig,
    IdempotentConfig,
    RequestConfig,
    RetryConfig,
    RetryStrategy,
)
from .retry import calculate_delay, is_retryable, with_retry

__version__ = "0.1.0"

__all__ = [
    "CacheAdapter",
    "CacheConfig",
    "CacheEntry",
    "CompositionError",
    "ConfigError",
    "FileCacheAdapter",
    "GlobalConfig",
    "HTTPStatusError",
    "HookPipeline",
    "HttpxAdapter",
    "IdempotentConfig",
    "MemoryCacheAdapter",
    "ParallelComposer",
    "RequestAdapter",
    "RequestCancelledError",
    "RequestConfig",
    "RequestError",
    "RequestHooks",
    "RequestInstance",
    "RequestTimeoutError",
    "Response",
    "RetryConfig",
    "RetryExhaustedError",
    "RetryStrategy",
    "SerialComposer",
    "Settled",
    "TransportError",
    "calculate_delay",
    "calculate_expires_at",
    "clear_pending_refills",
    "clear_pending_requests",
    "configure",
    "create_request",
    "get_adapter",
    "get_default_adapter",
    "get_default_cache_adapter",
    "get_global_config",
    "is_retryable",
    "merge_config",
    "parallel_requests",
    "register_adapter",
    "reset_adapters",
    "reset_config",
    "reset_default_cache_adapter",
    "resolve_config",
    "serial_requests",
    "set_default_adapter",
    "set_default_cache_adapter",
    "use_parallel_requests",
    "use_request",
    "use_serial_requests",
    "with_cache",
    "with_idempotency",
    "with_retry",
]
