from __future__ import annotations

import pytest

from pyallogas.geo import from_lon_lat, haversine_km, route_cache_key, to_lon_lat
from pyallogas.models.coordinate import Coordinate

YAOUNDE = Coordinate(latitude=3.848, longitude=11.502)
DOUALA = Coordinate(latitude=4.051, longitude=9.768)


@pytest.mark.parametrize(
    ("a", "b"),
    [
        (YAOUNDE, DOUALA),
        (Coordinate(latitude=0.0, longitude=0.0), Coordinate(latitude=-45.5, longitude=179.9)),
        (Coordinate(latitude=89.9, longitude=-180.0), Coordinate(latitude=-89.9, longitude=180.0)),
    ],
)
def test_haversine_is_symmetric(a: Coordinate, b: Coordinate) -> None:
    assert haversine_km(a, b) == pytest.approx(haversine_km(b, a), abs=1e-9)


def test_haversine_of_identical_points_is_zero() -> None:
    assert haversine_km(DOUALA, DOUALA) == 0.0


def test_haversine_known_distances() -> None:
    origin = Coordinate(latitude=3.850, longitude=11.500)
    assert haversine_km(origin, YAOUNDE) == pytest.approx(0.314, abs=0.005)
    assert haversine_km(origin, DOUALA) == pytest.approx(193.4, abs=0.5)


def test_haversine_antipodal_points_do_not_overflow() -> None:
    a = Coordinate(latitude=0.0, longitude=0.0)
    b = Coordinate(latitude=0.0, longitude=180.0)
    assert haversine_km(a, b) == pytest.approx(3.141592653589793 * 6371.0, rel=1e-9)


def test_lon_lat_conversion_swaps_axis_order() -> None:
    assert to_lon_lat(YAOUNDE) == (11.502, 3.848)
    assert from_lon_lat([11.502, 3.848]) == YAOUNDE
    assert from_lon_lat(to_lon_lat(DOUALA)) == DOUALA


def test_from_lon_lat_rejects_short_pairs() -> None:
    with pytest.raises(ValueError):
        from_lon_lat([11.5])


def test_route_cache_key_rounds_to_precision() -> None:
    origin = Coordinate(latitude=3.8500001, longitude=11.5)
    destination = Coordinate(latitude=4.051, longitude=9.768)
    assert route_cache_key(origin, destination) == "3.850000,11.500000-4.051000,9.768000"
    nudged = Coordinate(latitude=3.8500004, longitude=11.5000002)
    assert route_cache_key(nudged, destination) == route_cache_key(origin, destination)
    assert route_cache_key(origin, destination, precision=2) == "3.85,11.50-4.05,9.77"
