"""pyallogas - Async Python library to find nearby gas bottle sellers and route to them."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyallogas")
except PackageNotFoundError:
    __version__ = "0+local"
from pyallogas.catalog import SellerCatalog
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import (
    AllogasConfigError,
    AllogasError,
    LocationError,
    LocationTimeoutError,
    LocationUnavailableError,
    PermissionDeniedError,
    RouteCancelledError,
    RouteError,
    RouteNotFoundError,
    RouteProviderError,
    RouteRateLimitError,
    RouteTimeoutError,
)
from pyallogas.finder import GasFinder
from pyallogas.geo import from_lon_lat, haversine_km, route_cache_key, to_lon_lat
from pyallogas.location import (
    GeoIpPositionSource,
    LocationResolver,
    PositionError,
    PositionErrorCode,
    PositionSource,
    StaticPositionSource,
)
from pyallogas.metrics import PerformanceMonitor
from pyallogas.models import (
    Coordinate,
    FilterCriteria,
    LocationState,
    PermissionState,
    Position,
    PositionOptions,
    RankedSeller,
    Route,
    RouteCacheEntry,
    RouteFailure,
    RouteFailureCause,
    Seller,
    SizeClass,
)
from pyallogas.ranking import ProximityRanker, rank_sellers
from pyallogas.routing import (
    OpenRouteServiceProvider,
    OsrmRouteProvider,
    RouteCache,
    RouteProvider,
    RouteResolver,
    build_route_provider,
)

__all__ = [
    "__version__",
    "AllogasConfig",
    "AllogasConfigError",
    "AllogasError",
    "Coordinate",
    "FilterCriteria",
    "GasFinder",
    "GeoIpPositionSource",
    "LocationError",
    "LocationResolver",
    "LocationState",
    "LocationTimeoutError",
    "LocationUnavailableError",
    "OpenRouteServiceProvider",
    "OsrmRouteProvider",
    "PerformanceMonitor",
    "PermissionDeniedError",
    "PermissionState",
    "Position",
    "PositionError",
    "PositionErrorCode",
    "PositionOptions",
    "PositionSource",
    "ProximityRanker",
    "RankedSeller",
    "Route",
    "RouteCache",
    "RouteCacheEntry",
    "RouteCancelledError",
    "RouteError",
    "RouteFailure",
    "RouteFailureCause",
    "RouteNotFoundError",
    "RouteProvider",
    "RouteProviderError",
    "RouteRateLimitError",
    "RouteResolver",
    "RouteTimeoutError",
    "Seller",
    "SellerCatalog",
    "SizeClass",
    "StaticPositionSource",
    "build_route_provider",
    "from_lon_lat",
    "haversine_km",
    "rank_sellers",
    "route_cache_key",
    "to_lon_lat",
]
