"""Request instances: one configuration bound to a ``send()`` operation."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Mapping

from .adapters import RequestAdapter
from .cache import with_cache
from .config import finalize_config, get_global_config, merge_config, resolve_adapter, resolve_config
from .exceptions import RequestCancelledError, RequestError, RequestTimeoutError, TransportError
from .hooks import HookPipeline, RequestHooks
from .idempotency import with_idempotency
from .models import Response
from .request_config import RequestConfig
from .retry import with_retry

Call = Callable[[], Awaitable[Response]]


def _coerce_response(result: Any, config: RequestConfig) -> Response:
    if isinstance(result, Response):
        return result
    if isinstance(result, Mapping):
        return Response.model_validate(dict(result))
    raise TransportError(
        f"Adapter returned {type(result).__name__}, expected Response",
        code="INVALID_RESPONSE",
        config=config,
    )


async def dispatch_attempt(adapter: RequestAdapter, config: RequestConfig) -> Response:
    """One adapter call bounded by ``config.timeout``."""
    try:
        if config.timeout is None:
            result = await adapter.dispatch(config)
        else:
            result = await asyncio.wait_for(adapter.dispatch(config), config.timeout)
    except RequestError:
        raise
    except asyncio.TimeoutError as exc:
        raise RequestTimeoutError(
            f"Request exceeded timeout of {config.timeout}s",
            code="TIMEOUT_ERROR",
            config=config,
            cause=exc,
        )
    except Exception as exc:
        raise TransportError(str(exc) or type(exc).__name__, code="ADAPTER_ERROR", config=config, cause=exc)
    return _coerce_response(result, config)


def build_call(config: RequestConfig, adapter: RequestAdapter) -> Call:
    """Compose cache -> idempotency -> retry -> timed dispatch for ``config``."""

    async def attempt() -> Response:
        return await dispatch_attempt(adapter, config)

    call: Call = attempt
    if config.retry is not None:
        call = with_retry(call, config.retry)
    if config.idempotent is not None:
        call = with_idempotency(call, config, config.idempotent)
    if config.cache is not None:
        call = with_cache(call, config, config.cache)
    return call


class RequestInstance:
    """A reusable request. Each ``send()`` resolves configuration afresh."""

    def __init__(self, config: RequestConfig) -> None:
        self.config = config
        self._cancelled = False

    def __repr__(self) -> str:
        return f"RequestInstance(method={self.config.method!r}, url={self.config.url!r})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the current ``send()`` cancelled.

        The adapter call already in progress is not aborted; its result is
        discarded and ``send()`` raises ``RequestCancelledError``.
        """
        self._cancelled = True

    def _raise_if_cancelled(self, config: RequestConfig) -> None:
        if self._cancelled:
            raise RequestCancelledError(config=config)

    async def send(self) -> Response:
        self._cancelled = False
        global_config = get_global_config()
        hooks = RequestHooks.from_config(merge_config(global_config, self.config))

        def prepare() -> RequestConfig:
            return resolve_config(self.config, global_config)

        async def dispatch(config: RequestConfig) -> Response:
            self._raise_if_cancelled(config)
            config = finalize_config(config)
            adapter = config.adapter or resolve_adapter(config, global_config)
            response = await build_call(config, adapter)()
            self._raise_if_cancelled(config)
            return response

        return await HookPipeline(hooks).run(prepare, dispatch)


def create_request(config: RequestConfig | Mapping[str, Any] | None = None, **fields: Any) -> RequestInstance:
    return RequestInstance(RequestConfig.from_value(config, **fields))


def use_request(config: RequestConfig | Mapping[str, Any] | None = None, **fields: Any) -> RequestInstance:
    """Hook-style constructor, e.g. ``use_request(url="/users", on_success=render)``."""
    return create_request(config, **fields)
