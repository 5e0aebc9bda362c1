"""Route resolution with caching and supersession.

At most one provider call matters at a time per resolver. Every call to
:meth:`RouteResolver.resolve` is a new request: it cancels the request
still in flight, and the cancelled request can no longer write to the
cache or reach the success callback, even if its response arrives later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pyallogas._constants import ROUTE_KEY_PRECISION
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import RouteCancelledError, RouteError
from pyallogas.geo import route_cache_key
from pyallogas.metrics import ROUTE_CALCULATION, PerformanceMonitor
from pyallogas.models.coordinate import Coordinate
from pyallogas.models.route import Route, RouteFailure
from pyallogas.routing.cache import RouteCache
from pyallogas.routing.providers import RouteProvider

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RouteRequest:
    """Cancellation handle for one provider call.

    ``superseded`` is the token checked right before any side effect;
    cancelling the task additionally asks the transport to abort.
    """

    sequence: int
    key: str
    task: asyncio.Future[Route] | None = None
    superseded: bool = field(default=False)

    def cancel(self) -> None:
        self.superseded = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class RouteResolver:
    """Resolve drivable routes between two coordinates.

    Parameters
    ----------
    provider : RouteProvider
        External routing service adapter.
    cache : RouteCache, optional
        Cache owned by this resolver. A fresh one is created if omitted.
    key_precision : int
        Decimal digits kept when building cache keys.
    on_route : callable, optional
        Success callback, invoked only for non-superseded results.
    on_failure : callable, optional
        Failure callback, invoked only for non-superseded failures.
    monitor : PerformanceMonitor, optional
        Receives ``route_calculation`` samples for provider calls.
    """

    def __init__(
        self,
        provider: RouteProvider,
        *,
        cache: RouteCache | None = None,
        key_precision: int = ROUTE_KEY_PRECISION,
        on_route: Callable[[Route], None] | None = None,
        on_failure: Callable[[RouteFailure], None] | None = None,
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache if cache is not None else RouteCache()
        self._key_precision = key_precision
        self._on_route = on_route
        self._on_failure = on_failure
        self._monitor = monitor
        self._sequence = 0
        self._current: RouteRequest | None = None

    @classmethod
    def from_config(cls, config: AllogasConfig, provider: RouteProvider, **kwargs: Any) -> RouteResolver:
        cache = RouteCache(ttl=config.route_cache_ttl, max_entries=config.route_cache_max_entries)
        return cls(provider, cache=cache, key_precision=config.route_key_precision, **kwargs)

    @property
    def cache(self) -> RouteCache:
        return self._cache

    @property
    def in_flight(self) -> bool:
        return self._current is not None and self._current.task is not None and not self._current.task.done()

    def cache_key(self, origin: Coordinate, destination: Coordinate) -> str:
        return route_cache_key(origin, destination, self._key_precision)

    def cancel(self) -> None:
        """Cancel the in-flight request, if any."""
        current = self._current
        self._current = None
        if current is not None:
            _logger.debug("Cancelling route request #%d (%s)", current.sequence, current.key)
            current.cancel()

    def _notify(self, callback: Callable[[Any], None] | None, value: Any) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            _logger.exception("Route callback failed")

    async def _call_provider(self, origin: Coordinate, destination: Coordinate) -> Route:
        if self._monitor is None:
            return await self._provider.fetch_route(origin, destination)
        with self._monitor.measure(ROUTE_CALCULATION):
            return await self._provider.fetch_route(origin, destination)

    async def resolve(self, origin: Coordinate, destination: Coordinate) -> Route | RouteFailure | None:
        """Resolve a route from *origin* to *destination*.

        Returns
        -------
        Route
            On success, from the cache or the provider.
        RouteFailure
            When the provider fails or finds no route. Failures are not cached.
        None
            When a newer request superseded this one.
        """
        key = self.cache_key(origin, destination)
        self.cancel()
        self._sequence += 1
        request = RouteRequest(sequence=self._sequence, key=key)
        self._current = request

        cached = self._cache.get(key)
        if cached is not None:
            _logger.debug("Route cache hit: %s", key)
            self._current = None
            self._notify(self._on_route, cached)
            return cached

        request.task = asyncio.ensure_future(self._call_provider(origin, destination))
        try:
            route = await request.task
        except asyncio.CancelledError:
            if request.superseded:
                _logger.debug("Route request #%d superseded before completion", request.sequence)
                return None
            # The caller itself was cancelled.
            self._release(request)
            raise
        except RouteError as error:
            if request.superseded:
                _logger.debug("Dropping failure of superseded route request #%d: %s", request.sequence, error)
                return None
            self._release(request)
            failure = RouteFailure.from_error(error)
            _logger.warning("Route resolution failed (%s) for %s: %s", failure.cause.value, key, error)
            self._notify(self._on_failure, failure)
            return failure

        if request.superseded:
            _logger.debug("Dropping late result of superseded route request #%d", request.sequence)
            return None
        self._release(request)
        self._cache.put(key, route)
        self._notify(self._on_route, route)
        return route

    def _release(self, request: RouteRequest) -> None:
        if self._current is request:
            self._current = None

    async def resolve_or_raise(self, origin: Coordinate, destination: Coordinate) -> Route:
        """Like :meth:`resolve` but raising instead of returning failures.

        Raises
        ------
        RouteNotFoundError, RouteProviderError
            Whatever the provider raised.
        RouteCancelledError
            When a newer request superseded this one.
        """
        result = await self.resolve(origin, destination)
        if result is None:
            raise RouteCancelledError(f"Route request to {destination} was superseded")
        if isinstance(result, RouteFailure):
            raise result.error
        return result
