from __future__ import annotations

import asyncio

import pytest

from conftest import ScriptedAdapter, ok
from wl_request import (
    CompositionError,
    ParallelComposer,
    RequestCancelledError,
    RequestConfig,
    SerialComposer,
    Settled,
    TransportError,
    create_request,
    parallel_requests,
    serial_requests,
    use_parallel_requests,
    use_serial_requests,
)

BASE_URL = "https://api.example.com"


def _url(path: str) -> str:
    return f"{BASE_URL}{path}"


def _configs(adapter: ScriptedAdapter, *paths: str) -> list[RequestConfig]:
    return [RequestConfig(url=path, base_url=BASE_URL, adapter=adapter) for path in paths]


def test_serial_stops_at_first_failure() -> None:
    failure = TransportError("b failed")
    adapter = ScriptedAdapter(routes={_url("/a"): ok("A"), _url("/b"): failure, _url("/c"): ok("C")})
    events: list[object] = []

    composer = use_serial_requests(
        _configs(adapter, "/a", "/b", "/c"),
        on_success=lambda results: events.append(("success", [r.data for r in results])),
        on_error=lambda error, index: events.append(("error", error, index)),
        on_finally=lambda: events.append("finally"),
    )

    with pytest.raises(CompositionError) as exc_info:
        asyncio.run(composer.send())

    assert [call.url for call in adapter.calls] == [_url("/a"), _url("/b")]
    assert events == [("error", failure, 1), ("success", ["A"]), "finally"]
    assert exc_info.value.index == 1
    assert exc_info.value.cause is failure
    assert [r.data for r in exc_info.value.results] == ["A"]


def test_serial_runs_strictly_in_order() -> None:
    adapter = ScriptedAdapter(
        routes={_url("/a"): (ok("A"), 0.03), _url("/b"): (ok("B"), 0.0), _url("/c"): (ok("C"), 0.01)}
    )
    collected: list[list[str]] = []

    composer = SerialComposer(
        _configs(adapter, "/a", "/b", "/c"),
        on_success=lambda results: collected.append([r.data for r in results]),
    )
    results = asyncio.run(composer.send())

    assert [r.data for r in results] == ["A", "B", "C"]
    assert collected == [["A", "B", "C"]]
    assert adapter.events == [
        f"start {_url('/a')}",
        f"end {_url('/a')}",
        f"start {_url('/b')}",
        f"end {_url('/b')}",
        f"start {_url('/c')}",
        f"end {_url('/c')}",
    ]


def test_serial_cancel_prevents_later_requests() -> None:
    adapter = ScriptedAdapter(ok())
    finished: list[str] = []
    composer: SerialComposer

    first = create_request(url="/a", base_url=BASE_URL, adapter=adapter, on_success=lambda r: composer.cancel())
    composer = SerialComposer(
        [first, RequestConfig(url="/b", base_url=BASE_URL, adapter=adapter)],
        on_finally=lambda: finished.append("finally"),
    )

    with pytest.raises(RequestCancelledError):
        asyncio.run(composer.send())

    assert [call.url for call in adapter.calls] == [_url("/a")]
    assert finished == ["finally"]


def test_serial_with_no_requests() -> None:
    assert asyncio.run(SerialComposer([]).send()) == []


def test_parallel_preserves_input_positions() -> None:
    failure = TransportError("b failed")
    adapter = ScriptedAdapter(
        routes={_url("/a"): (ok("A"), 0.03), _url("/b"): (failure, 0.01), _url("/c"): (ok("C"), 0.0)}
    )
    reported: dict[str, object] = {}

    composer = use_parallel_requests(
        _configs(adapter, "/a", "/b", "/c"),
        on_success=lambda outcomes: reported.setdefault("success", outcomes),
        on_error=lambda failures: reported.setdefault("error", failures),
    )
    outcomes = asyncio.run(composer.send())

    assert [outcome.index for outcome in outcomes] == [0, 1, 2]
    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert outcomes[0].response.data == "A"
    assert outcomes[1].error is failure
    assert reported["success"] == outcomes
    assert reported["error"] == [Settled(index=1, error=failure)]


def test_parallel_dispatches_concurrently() -> None:
    adapter = ScriptedAdapter(ok(), delay=0.02)

    asyncio.run(ParallelComposer(_configs(adapter, "/a", "/b")).send())

    assert adapter.events[:2] == [f"start {_url('/a')}", f"start {_url('/b')}"]


def test_parallel_fail_fast_cancels_outstanding_requests() -> None:
    failure = TransportError("b failed")
    adapter = ScriptedAdapter(routes={_url("/a"): (ok("A"), 0.5), _url("/b"): (failure, 0.01)})
    errors: list[list[Settled]] = []
    finished: list[str] = []

    composer = ParallelComposer(
        _configs(adapter, "/a", "/b"),
        fail_fast=True,
        on_error=errors.append,
        on_finally=lambda: finished.append("finally"),
    )

    with pytest.raises(CompositionError) as exc_info:
        asyncio.run(composer.send())

    assert exc_info.value.index == 1
    assert exc_info.value.cause is failure
    assert f"end {_url('/a')}" not in adapter.events
    assert errors == [[Settled(index=1, error=failure)]]
    assert finished == ["finally"]


def test_parallel_fail_fast_returns_outcomes_when_all_succeed() -> None:
    adapter = ScriptedAdapter(ok("x"))

    outcomes = asyncio.run(ParallelComposer(_configs(adapter, "/a", "/b"), fail_fast=True).send())

    assert [outcome.response.data for outcome in outcomes] == ["x", "x"]


def test_low_level_helpers() -> None:
    order: list[int] = []

    def make(value: int):
        async def call():
            order.append(value)
            if value == 2:
                raise TransportError("two")
            return ok(value)

        return call

    async def scenario():
        serial = await serial_requests([make(0), make(1)])
        settled = await parallel_requests([make(1), make(2)])
        return serial, settled

    serial, settled = asyncio.run(scenario())

    assert [r.data for r in serial] == [0, 1]
    assert [outcome.ok for outcome in settled] == [True, False]
    assert asyncio.run(parallel_requests([])) == []
