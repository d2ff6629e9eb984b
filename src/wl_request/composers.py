"""Multi-request composition: serial chains and parallel batches."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar, Union

from .exceptions import CompositionError, RequestCancelledError
from .hooks import run_finally_hook
from .models import Response
from .request import RequestInstance, create_request
from .request_config import RequestConfig
from .singleflight import maybe_await

logger = logging.getLogger(__name__)

T = TypeVar("T")

RequestLike = Union[RequestInstance, RequestConfig, Mapping[str, Any]]


@dataclass(frozen=True)
class Settled:
    """Outcome of one request in a parallel batch, at its input position."""

    index: int
    response: Response | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_instances(requests: Sequence[RequestLike]) -> list[RequestInstance]:
    instances: list[RequestInstance] = []
    for request in requests:
        if isinstance(request, RequestInstance):
            instances.append(request)
        else:
            instances.append(create_request(request))
    return instances


async def serial_requests(calls: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
    """Await each call in order; the first failure propagates."""
    results: list[T] = []
    for call in calls:
        results.append(await call())
    return results


async def parallel_requests(calls: Sequence[Callable[[], Awaitable[Response]]]) -> list[Settled]:
    """Run every call concurrently and settle each one by position."""
    if not calls:
        return []
    outcomes = await asyncio.gather(*(call() for call in calls), return_exceptions=True)
    settled: list[Settled] = []
    for index, outcome in enumerate(outcomes):
        if isinstance(outcome, BaseException):
            settled.append(Settled(index=index, error=outcome))
        else:
            settled.append(Settled(index=index, response=outcome))
    return settled


class SerialComposer:
    """Send requests one at a time, stopping at the first failure.

    On failure ``on_error(error, index)`` fires, then ``on_success`` receives
    the responses gathered before the failing request, and ``send()`` raises
    ``CompositionError``.
    """

    def __init__(
        self,
        requests: Sequence[RequestLike],
        *,
        on_before: Callable[[], Any] | None = None,
        on_success: Callable[[list[Response]], Any] | None = None,
        on_error: Callable[[BaseException, int], Any] | None = None,
        on_finally: Callable[[], Any] | None = None,
    ) -> None:
        self.instances = _as_instances(requests)
        self.on_before = on_before
        self.on_success = on_success
        self.on_error = on_error
        self.on_finally = on_finally
        self._cancelled = False

    def cancel(self) -> None:
        """Prevent requests after the current one from starting."""
        self._cancelled = True

    async def send(self) -> list[Response]:
        self._cancelled = False
        results: list[Response] = []
        try:
            if self.on_before is not None:
                await maybe_await(self.on_before())
            for index, instance in enumerate(self.instances):
                if self._cancelled:
                    raise RequestCancelledError(f"Serial batch cancelled before request {index}")
                try:
                    response = await instance.send()
                except RequestCancelledError:
                    raise
                except Exception as exc:
                    logger.debug("serial batch stopped at request %d: %s", index, exc)
                    if self.on_error is not None:
                        await maybe_await(self.on_error(exc, index))
                    if self.on_success is not None:
                        await maybe_await(self.on_success(list(results)))
                    raise CompositionError(
                        f"Request {index} failed: {exc}",
                        index=index,
                        cause=exc,
                        results=results,
                    ) from exc
                results.append(response)
            if self.on_success is not None:
                await maybe_await(self.on_success(list(results)))
            return results
        finally:
            await run_finally_hook(self.on_finally)


class ParallelComposer:
    """Send requests concurrently and report every outcome by position.

    With ``fail_fast`` the first failure cancels the outstanding requests and
    ``send()`` raises ``CompositionError`` instead of returning outcomes.
    """

    def __init__(
        self,
        requests: Sequence[RequestLike],
        *,
        on_before: Callable[[], Any] | None = None,
        on_success: Callable[[list[Settled]], Any] | None = None,
        on_error: Callable[[list[Settled]], Any] | None = None,
        on_finally: Callable[[], Any] | None = None,
        fail_fast: bool = False,
    ) -> None:
        self.instances = _as_instances(requests)
        self.on_before = on_before
        self.on_success = on_success
        self.on_error = on_error
        self.on_finally = on_finally
        self.fail_fast = fail_fast

    def cancel(self) -> None:
        for instance in self.instances:
            instance.cancel()

    async def send(self) -> list[Settled]:
        try:
            if self.on_before is not None:
                await maybe_await(self.on_before())
            if self.fail_fast:
                try:
                    outcomes = await self._send_fail_fast()
                except CompositionError as exc:
                    if self.on_error is not None:
                        await maybe_await(self.on_error([Settled(index=exc.index, error=exc.cause)]))
                    raise
            else:
                outcomes = await parallel_requests([instance.send for instance in self.instances])
                failures = [outcome for outcome in outcomes if not outcome.ok]
                if failures and self.on_error is not None:
                    await maybe_await(self.on_error(failures))
            if self.on_success is not None:
                await maybe_await(self.on_success(outcomes))
            return outcomes
        finally:
            await run_finally_hook(self.on_finally)

    async def _send_fail_fast(self) -> list[Settled]:
        tasks = [asyncio.ensure_future(instance.send()) for instance in self.instances]
        pending = set(tasks)
        try:
            while pending:
                _, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                failed = [
                    (index, task.exception())
                    for index, task in enumerate(tasks)
                    if task.done() and not task.cancelled() and task.exception() is not None
                ]
                if failed:
                    index, error = failed[0]
                    for task in pending:
                        task.cancel()
                    await asyncio.gather(*pending, return_exceptions=True)
                    completed = [
                        Settled(index=i, response=task.result())
                        for i, task in enumerate(tasks)
                        if task.done() and not task.cancelled() and task.exception() is None
                    ]
                    raise CompositionError(
                        f"Request {index} failed: {error}",
                        index=index,
                        cause=error,
                        results=completed,
                    )
            return [Settled(index=index, response=task.result()) for index, task in enumerate(tasks)]
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()


def use_serial_requests(requests: Sequence[RequestLike], **hooks: Any) -> SerialComposer:
    return SerialComposer(requests, **hooks)


def use_parallel_requests(requests: Sequence[RequestLike], **hooks: Any) -> ParallelComposer:
    return ParallelComposer(requests, **hooks)
