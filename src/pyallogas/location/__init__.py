"""User location: position sources and the resolver built on them."""

from pyallogas.location.platform import PositionError, PositionErrorCode, PositionSource
from pyallogas.location.resolver import LocationResolver, classify_position_error
from pyallogas.location.sources import GeoIpPositionSource, StaticPositionSource

__all__ = [
    "GeoIpPositionSource",
    "LocationResolver",
    "PositionError",
    "PositionErrorCode",
    "PositionSource",
    "StaticPositionSource",
    "classify_position_error",
]
