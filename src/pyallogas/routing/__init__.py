"""Route resolution: providers, cache and the resolver."""

from pyallogas.routing.cache import RouteCache
from pyallogas.routing.providers import (
    OpenRouteServiceProvider,
    OsrmRouteProvider,
    RouteProvider,
    build_route_provider,
)
from pyallogas.routing.resolver import RouteRequest, RouteResolver

__all__ = [
    "OpenRouteServiceProvider",
    "OsrmRouteProvider",
    "RouteCache",
    "RouteProvider",
    "RouteRequest",
    "RouteResolver",
    "build_route_provider",
]
