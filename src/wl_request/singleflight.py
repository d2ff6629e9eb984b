"""Keyed single-flight coordination and request fingerprints."""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

from .request_config import RequestConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def fingerprint(config: RequestConfig) -> str:
    """Deterministic key from method, resolved URL, params and body."""
    payload = json.dumps(
        {
            "method": (config.method or "GET").upper(),
            "url": config.url,
            "params": dict(config.params) if config.params else None,
            "data": config.data.decode("latin-1") if isinstance(config.data, bytes) else config.data,
        },
        sort_keys=True,
        default=str,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode()).hexdigest()


class _Flight(Generic[T]):
    __slots__ = ("task", "waiters")

    def __init__(self, task: asyncio.Task[T]) -> None:
        self.task = task
        self.waiters = 0


class SingleFlight(Generic[T]):
    """Collapse concurrent calls for one key into a single operation.

    The shared operation runs in its own task, installed as the in-flight
    marker before the first suspension point. A second caller either joins
    that task or starts after it was released. A cancelled caller only stops
    waiting; the task keeps running for the remaining callers and is
    cancelled once nobody waits for it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._inflight: dict[str, _Flight[T]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._inflight

    def __len__(self) -> int:
        return len(self._inflight)

    async def _execute(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        finally:
            flight = self._inflight.get(key)
            if flight is not None and flight.task is asyncio.current_task():
                del self._inflight[key]

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(asyncio.ensure_future(self._execute(key, operation)))
            self._inflight[key] = flight
        else:
            logger.debug("%s: joining in-flight call for %s", self.name, key)

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    def clear(self) -> None:
        self._inflight.clear()
