from __future__ import annotations

import asyncio

import pytest

from pyallogas.exceptions import (
    RouteCancelledError,
    RouteError,
    RouteNotFoundError,
    RouteProviderError,
    RouteRateLimitError,
)
from pyallogas.metrics import ROUTE_CALCULATION, PerformanceMonitor
from pyallogas.models import Coordinate, Route, RouteFailure, RouteFailureCause
from pyallogas.routing.cache import RouteCache
from pyallogas.routing.resolver import RouteResolver

ORIGIN = Coordinate(latitude=3.850, longitude=11.500)
SELLER_A = Coordinate(latitude=3.848, longitude=11.502)
SELLER_B = Coordinate(latitude=4.051, longitude=9.768)


def _route(destination: Coordinate, meters: float = 1000.0) -> Route:
    return Route(geometry=(ORIGIN, destination), distance_meters=meters, duration_seconds=meters / 8)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _ScriptedProvider:
    """Answers immediately with queued routes or errors."""

    def __init__(self, *outcomes: Route | RouteError) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        self.calls.append((origin, destination))
        outcome = self.outcomes.pop(0) if self.outcomes else _route(destination)
        if isinstance(outcome, RouteError):
            raise outcome
        return outcome


class _GatedProvider:
    """Blocks every call until the test resolves its future.

    With ``abortable=False`` the provider ignores cancellation and still
    returns the late response, like a transport that cannot abort.
    """

    def __init__(self, *, abortable: bool = True) -> None:
        self.abortable = abortable
        self.pending: list[asyncio.Future[Route]] = []

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        future: asyncio.Future[Route] = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        if self.abortable:
            return await future
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            return await future


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_second_request_within_ttl_is_served_from_cache() -> None:
    clock = _Clock()
    provider = _ScriptedProvider()
    resolver = RouteResolver(provider, cache=RouteCache(ttl=600, clock=clock))

    first = await resolver.resolve(ORIGIN, SELLER_A)
    clock.now += 599
    second = await resolver.resolve(ORIGIN, SELLER_A)

    assert isinstance(first, Route)
    assert second == first
    assert len(provider.calls) == 1

    clock.now += 2
    third = await resolver.resolve(ORIGIN, SELLER_A)
    assert third == first
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_nearly_identical_coordinates_share_a_cache_entry() -> None:
    provider = _ScriptedProvider()
    resolver = RouteResolver(provider)

    await resolver.resolve(ORIGIN, SELLER_A)
    await resolver.resolve(
        Coordinate(latitude=3.8500001, longitude=11.5000002),
        Coordinate(latitude=3.8480004, longitude=11.502),
    )

    assert len(provider.calls) == 1
    assert resolver.cache.keys() == ["3.850000,11.500000-3.848000,11.502000"]


@pytest.mark.asyncio
async def test_success_callback_receives_cached_and_fresh_routes() -> None:
    seen: list[Route] = []
    resolver = RouteResolver(_ScriptedProvider(), on_route=seen.append)

    fresh = await resolver.resolve(ORIGIN, SELLER_A)
    cached = await resolver.resolve(ORIGIN, SELLER_A)

    assert seen == [fresh, cached]


@pytest.mark.asyncio
async def test_newer_request_supersedes_in_flight_request() -> None:
    provider = _GatedProvider()
    seen: list[Route] = []
    resolver = RouteResolver(provider, on_route=seen.append)

    first = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_A))
    await _settle()
    assert resolver.in_flight
    second = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_B))
    await _settle()

    assert len(provider.pending) == 2
    assert provider.pending[0].cancelled()
    provider.pending[1].set_result(_route(SELLER_B))

    assert await first is None
    result_b = await second
    assert result_b == _route(SELLER_B)
    assert seen == [result_b]
    assert resolver.cache.get(resolver.cache_key(ORIGIN, SELLER_A)) is None
    assert resolver.cache.get(resolver.cache_key(ORIGIN, SELLER_B)) == result_b
    assert not resolver.in_flight


@pytest.mark.asyncio
async def test_late_response_of_superseded_request_has_no_effect() -> None:
    provider = _GatedProvider(abortable=False)
    seen: list[Route] = []
    resolver = RouteResolver(provider, on_route=seen.append)

    first = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_A))
    await _settle()
    second = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_B))
    await _settle()

    # The first response arrives after the second request started.
    provider.pending[0].set_result(_route(SELLER_A))
    assert await first is None
    provider.pending[1].set_result(_route(SELLER_B))
    assert await second == _route(SELLER_B)

    assert seen == [_route(SELLER_B)]
    assert resolver.cache.keys() == [resolver.cache_key(ORIGIN, SELLER_B)]


@pytest.mark.asyncio
async def test_cache_hit_also_supersedes_in_flight_request() -> None:
    provider = _GatedProvider()
    cache = RouteCache()
    cache.put("3.850000,11.500000-4.051000,9.768000", _route(SELLER_B))
    resolver = RouteResolver(provider, cache=cache)

    first = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_A))
    await _settle()
    cached = await resolver.resolve(ORIGIN, SELLER_B)

    assert cached == _route(SELLER_B)
    assert await first is None
    assert len(provider.pending) == 1


@pytest.mark.asyncio
async def test_not_found_is_returned_as_failure_and_not_cached() -> None:
    failures: list[RouteFailure] = []
    provider = _ScriptedProvider(RouteNotFoundError("no route"), RouteNotFoundError("still no route"))
    resolver = RouteResolver(
        provider,
        on_failure=failures.append,
        on_route=lambda route: pytest.fail("no success"),
    )

    first = await resolver.resolve(ORIGIN, SELLER_B)
    second = await resolver.resolve(ORIGIN, SELLER_B)

    assert isinstance(first, RouteFailure)
    assert first.cause is RouteFailureCause.NOT_FOUND
    assert isinstance(second, RouteFailure)
    assert len(provider.calls) == 2
    assert len(resolver.cache) == 0
    assert failures == [first, second]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "cause"),
    [
        (RouteProviderError("HTTP 500", status_code=500), RouteFailureCause.PROVIDER_ERROR),
        (RouteRateLimitError("HTTP 429", status_code=429), RouteFailureCause.RATE_LIMITED),
    ],
)
async def test_provider_errors_become_typed_failures(error: RouteError, cause: RouteFailureCause) -> None:
    resolver = RouteResolver(_ScriptedProvider(error))

    result = await resolver.resolve(ORIGIN, SELLER_A)

    assert isinstance(result, RouteFailure)
    assert result.cause is cause
    assert result.error is error
    assert len(resolver.cache) == 0


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_resolution() -> None:
    def _boom(_route: Route) -> None:
        raise RuntimeError("listener bug")

    resolver = RouteResolver(_ScriptedProvider(), on_route=_boom)
    assert isinstance(await resolver.resolve(ORIGIN, SELLER_A), Route)
    assert len(resolver.cache) == 1


@pytest.mark.asyncio
async def test_resolve_or_raise() -> None:
    resolver = RouteResolver(_ScriptedProvider(_route(SELLER_A), RouteNotFoundError("nothing")))

    assert await resolver.resolve_or_raise(ORIGIN, SELLER_A) == _route(SELLER_A)
    with pytest.raises(RouteNotFoundError):
        await resolver.resolve_or_raise(ORIGIN, SELLER_B)


@pytest.mark.asyncio
async def test_resolve_or_raise_reports_supersession() -> None:
    provider = _GatedProvider()
    resolver = RouteResolver(provider)

    first = asyncio.create_task(resolver.resolve_or_raise(ORIGIN, SELLER_A))
    await _settle()
    resolver.cancel()

    with pytest.raises(RouteCancelledError):
        await first


@pytest.mark.asyncio
async def test_caller_cancellation_propagates() -> None:
    provider = _GatedProvider()
    resolver = RouteResolver(provider)

    task = asyncio.create_task(resolver.resolve(ORIGIN, SELLER_A))
    await _settle()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert not resolver.in_flight
    assert len(resolver.cache) == 0


@pytest.mark.asyncio
async def test_provider_calls_are_measured() -> None:
    monitor = PerformanceMonitor()
    resolver = RouteResolver(_ScriptedProvider(RouteNotFoundError("x")), monitor=monitor)

    await resolver.resolve(ORIGIN, SELLER_A)
    await resolver.resolve(ORIGIN, SELLER_B)
    await resolver.resolve(ORIGIN, SELLER_B)

    assert len(monitor.samples(ROUTE_CALCULATION)) == 2
