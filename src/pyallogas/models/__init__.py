"""Record models used across pyallogas."""

from pyallogas.models.coordinate import Coordinate
from pyallogas.models.location import LocationState, PermissionState, Position, PositionOptions
from pyallogas.models.route import Route, RouteCacheEntry, RouteFailure, RouteFailureCause
from pyallogas.models.seller import FilterCriteria, RankedSeller, Seller, SizeClass, size_class_from_bottle_type

__all__ = [
    "Coordinate",
    "FilterCriteria",
    "LocationState",
    "PermissionState",
    "Position",
    "PositionOptions",
    "RankedSeller",
    "Route",
    "RouteCacheEntry",
    "RouteFailure",
    "RouteFailureCause",
    "Seller",
    "SizeClass",
    "size_class_from_bottle_type",
]
