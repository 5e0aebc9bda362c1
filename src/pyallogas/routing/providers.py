"""Routing provider adapters.

Providers talk HTTP and return a normalized :class:`Route`. They raise
:class:`RouteError` subclasses; turning those into typed failures, caching
and supersession are the resolver's job.

Both providers expect coordinates as ``[lon, lat]``. The swap happens in
:func:`pyallogas.geo.to_lon_lat` and nowhere else.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp
import polyline

from pyallogas._constants import POLYLINE_PRECISION, USER_AGENT
from pyallogas._redact import redact_for_log, redact_url
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import (
    AllogasConfigError,
    RouteNotFoundError,
    RouteProviderError,
    RouteRateLimitError,
    RouteTimeoutError,
)
from pyallogas.geo import to_lon_lat
from pyallogas.models.coordinate import Coordinate
from pyallogas.models.route import Route

_logger = logging.getLogger(__name__)

#: OpenRouteService error codes meaning "no route between these points".
_ORS_NO_ROUTE_CODES: frozenset[int] = frozenset({2009, 2010})
#: OSRM response codes meaning "no route between these points".
_OSRM_NO_ROUTE_CODES: frozenset[str] = frozenset({"NoRoute", "NoSegment"})


class RouteProvider(Protocol):
    """Structural routing provider interface used by :class:`RouteResolver`."""

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        ...


def decode_geometry(encoded: Any, *, endpoint: str = "") -> tuple[Coordinate, ...]:
    """Decode an encoded polyline into latitude-first coordinates."""
    if not isinstance(encoded, str):
        raise RouteProviderError("Route geometry missing or not an encoded polyline", endpoint=endpoint)
    try:
        points = polyline.decode(encoded, POLYLINE_PRECISION)
        return tuple(Coordinate(latitude=lat, longitude=lon) for lat, lon in points)
    except (ValueError, IndexError) as exc:
        raise RouteProviderError(f"Invalid route geometry: {exc}", endpoint=endpoint) from exc


def _safe_metric(value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if result != result or result < 0:  # NaN or negative
        return 0.0
    return result


class _HttpRouteProvider:
    """Shared aiohttp plumbing: timeout, status handling and JSON decoding."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str,
        profile: str,
        timeout: float,
    ) -> None:
        self._http = session
        self._base_url = base_url.rstrip("/")
        self._profile = profile
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> tuple[int, Any, str]:
        """Send one request; return ``(status, decoded_json_or_None, text)``."""
        url = f"{self._base_url}{endpoint}"
        _logger.debug(
            "%s %s headers=%s params=%s body=%s",
            method,
            redact_url(url),
            redact_for_log(headers),
            redact_for_log(params),
            redact_for_log(body),
        )
        data = json.dumps(body, separators=(",", ":")) if body is not None else None
        try:
            async with self._http.request(
                method,
                url,
                headers=headers,
                params=params,
                data=data,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except TimeoutError as exc:
            raise RouteTimeoutError(
                f"Request to {endpoint} timed out after {self._timeout.total}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise RouteProviderError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        if status == 429:
            raise RouteRateLimitError(
                f"Rate limited by routing provider at {endpoint}",
                status_code=status,
                endpoint=endpoint,
            )
        try:
            payload = json.loads(text) if text else None
        except json.JSONDecodeError:
            payload = None
        return status, payload, text


class OpenRouteServiceProvider(_HttpRouteProvider):
    """OpenRouteService directions API (``POST /v2/directions/{profile}``)."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        *,
        base_url: str,
        profile: str,
        timeout: float,
    ) -> None:
        super().__init__(session, base_url=base_url, profile=profile, timeout=timeout)
        self._api_key = api_key

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        endpoint = f"/v2/directions/{self._profile}"
        headers = {
            "authorization": self._api_key,
            "accept": "application/json, application/geo+json",
            "content-type": "application/json; charset=utf-8",
            "user-agent": USER_AGENT,
        }
        body = {"coordinates": [list(to_lon_lat(origin)), list(to_lon_lat(destination))]}
        status, payload, text = await self._send("POST", endpoint, headers=headers, body=body)

        if status != 200:
            error = payload.get("error") if isinstance(payload, dict) else None
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else (error or text[:200])
            if code in _ORS_NO_ROUTE_CODES:
                raise RouteNotFoundError(f"No route between {origin} and {destination}: {message}")
            raise RouteProviderError(
                f"HTTP {status} from {endpoint}: {message}",
                status_code=status,
                endpoint=endpoint,
            )
        if not isinstance(payload, dict):
            raise RouteProviderError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes:
            raise RouteNotFoundError(f"No route between {origin} and {destination}")

        route = routes[0]
        summary = route.get("summary") if isinstance(route, dict) else None
        summary = summary if isinstance(summary, dict) else {}
        return Route(
            geometry=decode_geometry(route.get("geometry"), endpoint=endpoint),
            # ORS omits zero-valued summary fields.
            distance_meters=_safe_metric(summary.get("distance", 0.0)),
            duration_seconds=_safe_metric(summary.get("duration", 0.0)),
        )


class OsrmRouteProvider(_HttpRouteProvider):
    """OSRM route service (``GET /route/v1/{profile}/{lon,lat;lon,lat}``)."""

    @staticmethod
    def format_coordinates(coords: list[Coordinate]) -> str:
        """Format coordinates as OSRM's ``lon,lat;lon,lat`` path segment."""
        return ";".join(f"{lon},{lat}" for lon, lat in (to_lon_lat(c) for c in coords))

    async def fetch_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        endpoint = f"/route/v1/{self._profile}/{self.format_coordinates([origin, destination])}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        params = {"overview": "full", "geometries": "polyline"}
        status, payload, text = await self._send("GET", endpoint, headers=headers, params=params)

        if not isinstance(payload, dict):
            raise RouteProviderError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )
        code = payload.get("code")
        if code in _OSRM_NO_ROUTE_CODES:
            raise RouteNotFoundError(f"No route between {origin} and {destination}: {payload.get('message', code)}")
        if status != 200 or code != "Ok":
            raise RouteProviderError(
                f"OSRM error from {endpoint}: code={code} message={payload.get('message', '')}",
                status_code=status,
                endpoint=endpoint,
            )

        routes = payload.get("routes")
        if not isinstance(routes, list) or not routes:
            raise RouteNotFoundError(f"No route between {origin} and {destination}")

        route = routes[0]
        if not isinstance(route, dict):
            raise RouteProviderError(f"Malformed route in response from {endpoint}", endpoint=endpoint)
        return Route(
            geometry=decode_geometry(route.get("geometry"), endpoint=endpoint),
            distance_meters=_safe_metric(route.get("distance")),
            duration_seconds=_safe_metric(route.get("duration")),
        )


def build_route_provider(config: AllogasConfig, session: aiohttp.ClientSession) -> RouteProvider:
    """Create the provider selected by ``config.routing_provider``."""
    if config.routing_provider == "osrm":
        return OsrmRouteProvider(
            session,
            base_url=config.resolved_base_url,
            profile=config.resolved_profile,
            timeout=config.route_timeout,
        )
    if config.routing_provider == "openrouteservice":
        if not config.routing_api_key:
            raise AllogasConfigError("OpenRouteService requires routing_api_key (ALLOGAS_ROUTING_API_KEY)")
        return OpenRouteServiceProvider(
            session,
            config.routing_api_key,
            base_url=config.resolved_base_url,
            profile=config.resolved_profile,
            timeout=config.route_timeout,
        )
    raise AllogasConfigError(f"Unknown routing provider: {config.routing_provider!r}")
