from __future__ import annotations

import pytest

from pyallogas.models import Coordinate, Route
from pyallogas.routing.cache import RouteCache


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _route(meters: float) -> Route:
    return Route(
        geometry=(Coordinate(latitude=3.85, longitude=11.5), Coordinate(latitude=3.86, longitude=11.51)),
        distance_meters=meters,
        duration_seconds=meters / 10,
    )


def test_entry_is_served_until_ttl_then_dropped() -> None:
    clock = _Clock()
    cache = RouteCache(ttl=600, clock=clock)
    cache.put("k", _route(1200))

    clock.now += 600
    assert cache.get("k") == _route(1200)

    clock.now += 0.001
    assert cache.get("k") is None
    assert len(cache) == 0


def test_oldest_insertion_is_evicted_beyond_cap() -> None:
    cache = RouteCache(max_entries=3, clock=_Clock())
    for index in range(4):
        cache.put(f"k{index}", _route(index))

    assert cache.keys() == ["k1", "k2", "k3"]
    assert cache.get("k0") is None


def test_reinsert_moves_key_to_newest() -> None:
    clock = _Clock()
    cache = RouteCache(max_entries=2, clock=clock)
    cache.put("a", _route(1))
    cache.put("b", _route(2))
    clock.now += 5
    cache.put("a", _route(3))
    cache.put("c", _route(4))

    assert cache.keys() == ["a", "c"]
    entry = cache.entry("a")
    assert entry is not None
    assert entry.inserted_at == 1005.0
    assert entry.distance_meters == 3


def test_reads_do_not_refresh_eviction_order() -> None:
    cache = RouteCache(max_entries=2, clock=_Clock())
    cache.put("a", _route(1))
    cache.put("b", _route(2))
    assert cache.get("a") is not None
    cache.put("c", _route(3))

    assert cache.keys() == ["b", "c"]


def test_purge_expired_and_clear() -> None:
    clock = _Clock()
    cache = RouteCache(ttl=10, clock=clock)
    cache.put("old", _route(1))
    clock.now += 8
    cache.put("new", _route(2))
    clock.now += 5

    assert cache.purge_expired() == 1
    assert cache.keys() == ["new"]

    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize(("ttl", "max_entries"), [(0, 50), (-1, 50), (600, 0)])
def test_invalid_limits_are_rejected(ttl: float, max_entries: int) -> None:
    with pytest.raises(ValueError):
        RouteCache(ttl=ttl, max_entries=max_entries)
