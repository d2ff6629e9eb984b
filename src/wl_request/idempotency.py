"""Idempotent dispatch: at most one underlying call per key and TTL window."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from .cache import resolve_cache_adapter
from .models import Response
from .request_config import IdempotentConfig, RequestConfig
from .singleflight import SingleFlight, fingerprint

logger = logging.getLogger(__name__)

Call = Callable[[], Awaitable[Response]]

IDEMPOTENT_NAMESPACE = "idempotent:"

_pending: SingleFlight[Response] = SingleFlight("idempotent")


def idempotency_key(config: RequestConfig, policy: IdempotentConfig) -> str:
    return policy.key or fingerprint(config)


def with_idempotency(call: Call, config: RequestConfig, policy: IdempotentConfig) -> Call:
    """Collapse calls sharing an idempotency key.

    Callers arriving while the dispatch is in flight join it. A success is
    recorded under its own namespace for ``policy.ttl`` seconds and replayed
    to later callers; a failure reaches every current waiter and is not
    recorded, so the next call dispatches again.
    """
    store = resolve_cache_adapter(config, policy.cache_adapter)
    key = idempotency_key(config, policy)
    record_key = f"{IDEMPOTENT_NAMESPACE}{key}"

    async def dispatch_once() -> Response:
        record = await store.get(record_key)
        if record is not None and not record.is_expired():
            logger.debug("replaying idempotent result for %s", key)
            return record.value
        response = await call()
        await store.set(record_key, response, policy.ttl)
        return response

    async def idempotent() -> Response:
        return await _pending.run(f"{id(store)}:{record_key}", dispatch_once)

    return idempotent


def clear_pending_requests() -> None:
    """Forget in-flight records; callers already waiting keep their result."""
    _pending.clear()
