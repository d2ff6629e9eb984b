"""Lifecycle hooks around a single dispatch."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, NoReturn

from .exceptions import RequestCancelledError
from .models import Response
from .request_config import OnBeforeHook, OnErrorHook, OnFinallyHook, OnSuccessHook, RequestConfig
from .singleflight import maybe_await

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestHooks:
    on_before: OnBeforeHook | None = None
    on_success: OnSuccessHook | None = None
    on_error: OnErrorHook | None = None
    on_finally: OnFinallyHook | None = None

    @classmethod
    def from_config(cls, config: RequestConfig) -> "RequestHooks":
        return cls(
            on_before=config.on_before,
            on_success=config.on_success,
            on_error=config.on_error,
            on_finally=config.on_finally,
        )

    def overridden_by(self, config: RequestConfig) -> "RequestHooks":
        """Hooks set on a configuration returned by ``on_before`` take over."""
        changes = {
            name: getattr(config, name)
            for name in ("on_success", "on_error", "on_finally")
            if getattr(config, name) is not None
        }
        return dataclasses.replace(self, **changes) if changes else self


class HookPipeline:
    """Run ``on_before -> dispatch -> on_success | on_error -> on_finally``.

    A hook that raises becomes the call's error and is routed to
    ``on_error``. An exception from ``on_error`` itself propagates directly.
    ``on_finally`` always runs last and its failures are logged, never
    raised over the call's outcome. Cancellation skips ``on_error``.
    """

    def __init__(self, hooks: RequestHooks) -> None:
        self.hooks = hooks

    async def run(
        self,
        prepare: Callable[[], RequestConfig],
        dispatch: Callable[[RequestConfig], Awaitable[Response]],
    ) -> Response:
        try:
            try:
                config = prepare()
                if self.hooks.on_before is not None:
                    replaced = await maybe_await(self.hooks.on_before(config))
                    if replaced is not None:
                        config = replaced
                        self.hooks = self.hooks.overridden_by(replaced)
                response = await dispatch(config)
            except RequestCancelledError:
                raise
            except Exception as exc:
                await self._fail(exc)

            if self.hooks.on_success is not None:
                try:
                    await maybe_await(self.hooks.on_success(response))
                except Exception as exc:
                    await self._fail(exc)
            return response
        finally:
            await self._finish()

    async def _fail(self, error: Exception) -> NoReturn:
        if self.hooks.on_error is not None:
            try:
                await maybe_await(self.hooks.on_error(error))
            except Exception as hook_error:
                if hook_error is error:
                    raise
                raise hook_error from error
        raise error

    async def _finish(self) -> None:
        await run_finally_hook(self.hooks.on_finally)


async def run_finally_hook(hook: OnFinallyHook | None) -> None:
    """Run an ``on_finally`` hook; its failure is logged and never re-raised."""
    if hook is None:
        return
    try:
        await maybe_await(hook())
    except Exception:
        logger.exception("on_finally hook failed")
