from __future__ import annotations

import pytest

from pyallogas.catalog import SellerCatalog
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import AllogasConfigError, AllogasError, RouteNotFoundError
from pyallogas.finder import GasFinder
from pyallogas.location.sources import StaticPositionSource
from pyallogas.metrics import LOCATION_LOAD, ROUTE_CALCULATION, SELLER_FILTER
from pyallogas.models import Coordinate, FilterCriteria, LocationState, PermissionState, Route, RouteFailure

ORIGIN = Coordinate(latitude=3.850, longitude=11.500)

CATALOG = SellerCatalog.from_records(
    [
        {"id": "douala", "brand": "TRADEX", "bottleType": "12kg", "latitude": 4.051, "longitude": 9.768},
        {"id": "yaounde", "brand": "TOTAL", "bottleType": "6kg", "latitude": 3.848, "longitude": 11.502},
        {"id": "essos", "brand": "SCTM", "bottleType": "12kg", "latitude": 3.870, "longitude": 11.530},
    ]
)


class _FakeProvider:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        self.calls.append((origin, destination))
        if self.fail:
            raise RouteNotFoundError("no road")
        return Route(geometry=(origin, destination), distance_meters=900.0, duration_seconds=120.0)


@pytest.mark.asyncio
async def test_locate_rank_and_route() -> None:
    provider = _FakeProvider()
    locations: list[LocationState] = []
    routes: list[Route] = []
    finder = GasFinder(
        AllogasConfig(),
        CATALOG,
        position_source=StaticPositionSource(ORIGIN, accuracy_meters=15.0),
        route_provider=provider,
        on_location=locations.append,
        on_route=routes.append,
    )

    async with finder:
        state = await finder.locate()
        assert state.coordinate == ORIGIN
        assert state.permission is PermissionState.GRANTED

        ranked = finder.nearby()
        assert [item.id for item in ranked] == ["yaounde", "essos", "douala"]
        assert [item.id for item in finder.nearby(FilterCriteria(size_class="big"))] == ["essos", "douala"]

        route = await finder.route_to(ranked[0].seller)
        again = await finder.route_to(ranked[0].seller)

    assert isinstance(route, Route)
    assert again == route
    assert provider.calls == [(ORIGIN, ranked[0].seller.coordinate)]
    assert routes == [route, again]
    assert locations[-1] == state
    assert finder.monitor.samples(LOCATION_LOAD)
    assert finder.monitor.samples(SELLER_FILTER)
    assert len(finder.monitor.samples(ROUTE_CALCULATION)) == 1


@pytest.mark.asyncio
async def test_watch_moves_the_ranking_origin() -> None:
    source = StaticPositionSource(ORIGIN)

    async with GasFinder(AllogasConfig(), CATALOG, position_source=source, route_provider=_FakeProvider()) as finder:
        await finder.locate()
        finder.start_watching()
        source.set_position(Coordinate(latitude=4.05, longitude=9.77))
        assert finder.nearby()[0].id == "douala"

        finder.stop_watching()
        source.set_position(ORIGIN)
        assert finder.nearby()[0].id == "douala"
        assert not finder.location.is_watching


@pytest.mark.asyncio
async def test_without_position_source_everything_runs_on_fallback() -> None:
    provider = _FakeProvider()
    config = AllogasConfig(fallback_latitude=4.051, fallback_longitude=9.768)

    async with GasFinder(config, CATALOG, route_provider=provider) as finder:
        assert finder.nearby() == []
        # Routing before any acquisition starts from the fallback.
        await finder.route_to(CATALOG.sellers[1])
        assert provider.calls[0][0] == config.fallback_coordinate

        state = await finder.locate()
        assert state.coordinate == config.fallback_coordinate
        assert state.error is not None
        assert finder.nearby()[0].id == "douala"


@pytest.mark.asyncio
async def test_route_failures_are_returned_and_reported() -> None:
    failures: list[RouteFailure] = []
    async with GasFinder(
        AllogasConfig(),
        CATALOG,
        position_source=StaticPositionSource(ORIGIN),
        route_provider=_FakeProvider(fail=True),
        on_route_failure=failures.append,
    ) as finder:
        await finder.locate()
        result = await finder.route_to(CATALOG.sellers[0])

    assert isinstance(result, RouteFailure)
    assert failures == [result]


@pytest.mark.asyncio
async def test_finder_requires_context_manager_and_valid_config() -> None:
    finder = GasFinder(AllogasConfig(), CATALOG)
    with pytest.raises(AllogasError):
        finder.nearby()

    # OpenRouteService without an API key and no injected provider.
    with pytest.raises(AllogasConfigError):
        async with finder:
            pass
