from __future__ import annotations

import asyncio
from typing import Any

import pytest

from wl_request import (
    RequestConfig,
    Response,
    clear_pending_refills,
    clear_pending_requests,
    reset_adapters,
    reset_config,
    reset_default_cache_adapter,
)


def ok(data: Any = None, status: int = 200) -> Response:
    return Response(status=status, status_text="OK", headers={"content-type": "application/json"}, data=data)


class ScriptedAdapter:
    """Adapter returning scripted outcomes; the last outcome repeats.

    An outcome may be a ``(outcome, delay)`` tuple. ``routes`` maps a
    resolved URL to a fixed outcome.
    """

    def __init__(
        self,
        *outcomes: Any,
        delay: float = 0.0,
        routes: dict[str, Any] | None = None,
        default_config: RequestConfig | None = None,
    ) -> None:
        self.outcomes = list(outcomes)
        self.delay = delay
        self.routes = routes or {}
        self.default_config = default_config
        self.calls: list[RequestConfig] = []
        self.events: list[str] = []

    def _next(self, config: RequestConfig) -> tuple[Any, float]:
        if config.url in self.routes:
            outcome = self.routes[config.url]
        elif len(self.outcomes) > 1:
            outcome = self.outcomes.pop(0)
        elif self.outcomes:
            outcome = self.outcomes[0]
        else:
            outcome = ok()
        delay = self.delay
        if isinstance(outcome, tuple):
            outcome, delay = outcome
        return outcome, delay

    async def dispatch(self, config: RequestConfig) -> Response:
        self.calls.append(config)
        self.events.append(f"start {config.url}")
        outcome, delay = self._next(config)
        if delay:
            await asyncio.sleep(delay)
        self.events.append(f"end {config.url}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    monkeypatch.delenv("WL_REQUEST_BASE_URL", raising=False)
    monkeypatch.delenv("WL_REQUEST_TIMEOUT", raising=False)

    def reset() -> None:
        reset_config()
        reset_adapters()
        reset_default_cache_adapter()
        clear_pending_requests()
        clear_pending_refills()

    reset()
    yield
    reset()
