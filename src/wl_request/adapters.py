"""Transport and cache capability contracts, plus the process-wide registries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import CacheEntry, Response
    from .request_config import RequestConfig


@runtime_checkable
class RequestAdapter(Protocol):
    """Performs one network operation for an effective configuration.

    Adapters may expose a ``default_config`` attribute holding a
    ``RequestConfig`` with adapter-intrinsic defaults; it sits below the
    global configuration when configurations are resolved.
    """

    async def dispatch(self, config: RequestConfig) -> Response: ...


@runtime_checkable
class CacheAdapter(Protocol):
    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, key: str, value: Response, ttl: float | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def has(self, key: str) -> bool: ...


_adapter_registry: dict[str, RequestAdapter] = {}
_default_adapter: RequestAdapter | None = None
_fallback_adapter: RequestAdapter | None = None

_default_cache_adapter: CacheAdapter | None = None
_fallback_cache_adapter: CacheAdapter | None = None


def register_adapter(name: str, adapter: RequestAdapter) -> None:
    _adapter_registry[name] = adapter


def set_default_adapter(adapter: RequestAdapter) -> None:
    global _default_adapter
    _default_adapter = adapter


def get_default_adapter() -> RequestAdapter:
    """Return the configured default adapter, creating an httpx one on first use."""
    global _fallback_adapter
    if _default_adapter is not None:
        return _default_adapter
    if _fallback_adapter is None:
        from .httpx_adapter import HttpxAdapter

        _fallback_adapter = HttpxAdapter()
    return _fallback_adapter


def get_adapter(name: str | None = None) -> RequestAdapter | None:
    if not name or name == "default":
        return get_default_adapter()
    return _adapter_registry.get(name)


def reset_adapters() -> None:
    global _default_adapter, _fallback_adapter
    _adapter_registry.clear()
    _default_adapter = None
    _fallback_adapter = None


def set_default_cache_adapter(adapter: CacheAdapter) -> None:
    global _default_cache_adapter
    _default_cache_adapter = adapter


def get_default_cache_adapter(global_config: Any = None) -> CacheAdapter:
    """Resolve the cache backend used when a policy does not name one.

    Order: the global ``cache_adapter``, the registered default, then a
    process-wide in-memory store.
    """
    global _fallback_cache_adapter
    if global_config is None:
        from .config import get_global_config

        global_config = get_global_config()
    if global_config.cache_adapter is not None:
        return global_config.cache_adapter
    if _default_cache_adapter is not None:
        return _default_cache_adapter
    if _fallback_cache_adapter is None:
        from .cache_adapters import MemoryCacheAdapter

        _fallback_cache_adapter = MemoryCacheAdapter()
    return _fallback_cache_adapter


def reset_default_cache_adapter() -> None:
    global _default_cache_adapter, _fallback_cache_adapter
    _default_cache_adapter = None
    _fallback_cache_adapter = None
