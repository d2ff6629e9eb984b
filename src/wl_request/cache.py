"""Response caching with single-flight refills."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .adapters import CacheAdapter, get_default_cache_adapter
from .models import Response
from .request_config import CacheConfig, RequestConfig
from .singleflight import SingleFlight, fingerprint

logger = logging.getLogger(__name__)

Call = Callable[[], Awaitable[Response]]

_refills: SingleFlight[Response] = SingleFlight("cache")


def cache_key(config: RequestConfig, policy: CacheConfig) -> str:
    return policy.key or fingerprint(config)


def resolve_cache_adapter(config: RequestConfig, adapter: CacheAdapter | None = None) -> CacheAdapter:
    if adapter is not None:
        return adapter
    if config.cache_adapter is not None:
        return config.cache_adapter
    return get_default_cache_adapter()


def with_cache(call: Call, config: RequestConfig, policy: CacheConfig) -> Call:
    """Serve unexpired cached responses; otherwise refill once per key.

    Concurrent callers for a key share one lookup-and-refill; a failed
    refill is delivered to all of them and nothing is stored.
    """
    store = resolve_cache_adapter(config, policy.cache_adapter)
    key = cache_key(config, policy)

    async def refill() -> Response:
        entry = await store.get(key)
        if entry is not None and not entry.is_expired():
            logger.debug("cache hit for %s", key)
            return entry.value
        logger.debug("cache miss for %s", key)
        response = await call()
        await store.set(key, response, policy.ttl)
        return response

    async def cached() -> Response:
        return await _refills.run(f"{id(store)}:{key}", refill)

    return cached


def clear_pending_refills() -> None:
    _refills.clear()
