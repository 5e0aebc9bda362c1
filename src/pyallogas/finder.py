"""High-level async facade composing location, ranking and routing."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyallogas.catalog import SellerCatalog
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import AllogasError
from pyallogas.location.platform import PositionSource
from pyallogas.location.resolver import LocationResolver
from pyallogas.location.sources import GeoIpPositionSource
from pyallogas.metrics import PerformanceMonitor
from pyallogas.models.location import LocationState
from pyallogas.models.route import Route, RouteFailure
from pyallogas.models.seller import FilterCriteria, RankedSeller, Seller
from pyallogas.ranking import ProximityRanker
from pyallogas.routing.providers import RouteProvider, build_route_provider
from pyallogas.routing.resolver import RouteResolver

_logger = logging.getLogger(__name__)


class GasFinder:
    """Async facade for the seller finder.

    Usage::

        async with GasFinder(config, catalog) as finder:
            await finder.locate()
            ranked = finder.nearby(FilterCriteria(brand_substring="total"))
            route = await finder.route_to(ranked[0].seller)

    The three components are pulled, never pushed: ``nearby`` reads the
    resolver's current coordinate on every call, and ``route_to`` uses
    the coordinate current at the time of the call. A watch update that
    arrives while a route is in flight does not invalidate it.
    """

    def __init__(
        self,
        config: AllogasConfig,
        catalog: SellerCatalog,
        *,
        session: aiohttp.ClientSession | None = None,
        position_source: PositionSource | None = None,
        route_provider: RouteProvider | None = None,
        monitor: PerformanceMonitor | None = None,
        on_location: Callable[[LocationState], None] | None = None,
        on_route: Callable[[Route], None] | None = None,
        on_route_failure: Callable[[RouteFailure], None] | None = None,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._external_session = session is not None
        self._http_session = session
        self._position_source = position_source
        self._route_provider = route_provider
        self._monitor = monitor or PerformanceMonitor()
        self._on_location = on_location
        self._on_route = on_route
        self._on_route_failure = on_route_failure
        self._ranker = ProximityRanker(monitor=self._monitor)
        self._location: LocationResolver | None = None
        self._routes: RouteResolver | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GasFinder:
        if self._route_provider is None:
            self._config.validate()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        source = self._position_source
        if source is None and self._config.geoip_url:
            source = GeoIpPositionSource(self._http_session, self._config.geoip_url)
        self._location = LocationResolver.from_config(
            self._config,
            source,
            on_change=self._on_location,
            monitor=self._monitor,
        )

        provider = self._route_provider or build_route_provider(self._config, self._http_session)
        self._routes = RouteResolver.from_config(
            self._config,
            provider,
            on_route=self._on_route,
            on_failure=self._on_route_failure,
            monitor=self._monitor,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._location is not None:
            self._location.cancel_watch()
        if self._routes is not None:
            self._routes.cancel()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._location = None
        self._routes = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_location(self) -> LocationResolver:
        if self._location is None:
            raise AllogasError("Finder not initialized. Use 'async with GasFinder(...) as finder:'")
        return self._location

    def _require_routes(self) -> RouteResolver:
        if self._routes is None:
            raise AllogasError("Finder not initialized. Use 'async with GasFinder(...) as finder:'")
        return self._routes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> SellerCatalog:
        return self._catalog

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    @property
    def location(self) -> LocationResolver:
        return self._require_location()

    @property
    def routes(self) -> RouteResolver:
        return self._require_routes()

    async def locate(self) -> LocationState:
        """Run the permission-aware initial acquisition."""
        return await self._require_location().initialize()

    def start_watching(self) -> None:
        self._require_location().watch()

    def stop_watching(self) -> None:
        self._require_location().cancel_watch()

    def nearby(self, criteria: FilterCriteria | None = None) -> list[RankedSeller]:
        """Rank the catalog around the current coordinate.

        Empty until :meth:`locate` has produced a coordinate (live or fallback).
        """
        origin = self._require_location().coordinate
        return self._ranker.rank(origin, self._catalog, criteria)

    async def route_to(self, seller: Seller) -> Route | RouteFailure | None:
        """Resolve a route from the current coordinate to *seller*.

        Without any coordinate yet, the configured fallback is used as the
        origin, matching what ranking would show.
        """
        origin = self._require_location().coordinate or self._config.fallback_coordinate
        _logger.debug("Resolving route to seller %s from %s", seller.id, origin)
        return await self._require_routes().resolve(origin, seller.coordinate)
