"""Great-circle distance and coordinate-order conversion helpers."""

from __future__ import annotations

import math
from collections.abc import Sequence

from pyallogas._constants import EARTH_RADIUS_KM, ROUTE_KEY_PRECISION
from pyallogas.models.coordinate import Coordinate

LonLat = tuple[float, float]


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres on a sphere of radius 6371 km."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    h = min(1.0, h)
    return 2.0 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def to_lon_lat(coordinate: Coordinate) -> LonLat:
    """Convert an internal coordinate to the ``[lon, lat]`` order routing providers expect."""
    return (coordinate.longitude, coordinate.latitude)


def from_lon_lat(pair: Sequence[float]) -> Coordinate:
    """Convert a provider ``[lon, lat]`` pair back to an internal coordinate."""
    if len(pair) < 2:
        raise ValueError(f"expected a [lon, lat] pair, got {pair!r}")
    return Coordinate(latitude=float(pair[1]), longitude=float(pair[0]))


def route_cache_key(origin: Coordinate, destination: Coordinate, precision: int = ROUTE_KEY_PRECISION) -> str:
    """Key a route by origin and destination rounded to *precision* decimals.

    Near-duplicate requests that round to the same digits share a key.
    """
    p = precision
    return (
        f"{origin.latitude:.{p}f},{origin.longitude:.{p}f}"
        f"-{destination.latitude:.{p}f},{destination.longitude:.{p}f}"
    )
