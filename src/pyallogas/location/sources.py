"""Concrete position sources.

* :class:`StaticPositionSource` serves fixes pushed by the presentation
  layer (e.g. coordinates forwarded from a browser or mobile app).
* :class:`GeoIpPositionSource` approximates the user's position from an
  IP geolocation JSON endpoint; watching is implemented by polling.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from pyallogas._constants import USER_AGENT
from pyallogas._redact import redact_url
from pyallogas.location.platform import (
    PositionCallback,
    PositionError,
    PositionErrorCallback,
    PositionErrorCode,
)
from pyallogas.models.coordinate import Coordinate
from pyallogas.models.location import PermissionState, Position, PositionOptions

_logger = logging.getLogger(__name__)

#: City-level accuracy typically achieved by IP geolocation.
GEOIP_ACCURACY_M = 5000.0


class StaticPositionSource:
    """Position source fed explicitly through :meth:`set_position`.

    Parameters
    ----------
    coordinate : Coordinate or None
        Initial fix. ``None`` makes requests fail with
        ``position-unavailable`` until a fix is pushed.
    accuracy_meters : float or None
        Accuracy reported alongside the fix.
    permission : PermissionState or None
        Value returned by :meth:`query_permission`. ``denied`` also makes
        position requests fail with ``permission-denied``.
    """

    def __init__(
        self,
        coordinate: Coordinate | None = None,
        *,
        accuracy_meters: float | None = None,
        permission: PermissionState | None = PermissionState.GRANTED,
    ) -> None:
        self._position = Position(coordinate=coordinate, accuracy_meters=accuracy_meters) if coordinate else None
        self.permission = permission
        self._watchers: dict[int, tuple[PositionCallback, PositionErrorCallback]] = {}
        self._ids = itertools.count(1)

    async def query_permission(self) -> PermissionState | None:
        return self.permission

    def _check(self) -> Position:
        if self.permission is PermissionState.DENIED:
            raise PositionError(PositionErrorCode.PERMISSION_DENIED, "Permission denied by user")
        if self._position is None:
            raise PositionError(PositionErrorCode.POSITION_UNAVAILABLE, "No position has been supplied")
        return self._position

    async def current_position(self, options: PositionOptions) -> Position:
        return self._check()

    def set_position(self, coordinate: Coordinate, accuracy_meters: float | None = None) -> None:
        """Replace the current fix and deliver it to every active watcher."""
        self._position = Position(coordinate=coordinate, accuracy_meters=accuracy_meters)
        for on_update, _on_error in list(self._watchers.values()):
            on_update(self._position)

    def watch_position(
        self,
        options: PositionOptions,
        on_update: PositionCallback,
        on_error: PositionErrorCallback,
    ) -> int:
        handle = next(self._ids)
        self._watchers[handle] = (on_update, on_error)
        try:
            position = self._check()
        except PositionError as exc:
            on_error(exc)
        else:
            on_update(position)
        return handle

    def clear_watch(self, handle: int) -> None:
        self._watchers.pop(handle, None)


def _deliver(callback: Callable[[Any], None], value: Any) -> None:
    try:
        callback(value)
    except Exception:
        _logger.exception("Position watch callback failed")


def _parse_geoip_payload(payload: Any) -> Position:
    """Accept the common ``lat``/``lon`` and ``latitude``/``longitude`` shapes."""
    if not isinstance(payload, dict):
        raise PositionError(PositionErrorCode.POSITION_UNAVAILABLE, "Geolocation response is not an object")
    if payload.get("status") == "fail" or payload.get("error") is True:
        reason = payload.get("message") or payload.get("reason") or "lookup failed"
        raise PositionError(PositionErrorCode.POSITION_UNAVAILABLE, f"Geolocation lookup failed: {reason}")

    lat = payload.get("lat", payload.get("latitude"))
    lon = payload.get("lon", payload.get("lng", payload.get("longitude")))
    try:
        coordinate = Coordinate(latitude=lat, longitude=lon)
    except ValueError as exc:
        raise PositionError(
            PositionErrorCode.POSITION_UNAVAILABLE,
            f"Geolocation response has no usable coordinate: lat={lat!r} lon={lon!r}",
        ) from exc
    return Position(coordinate=coordinate, accuracy_meters=GEOIP_ACCURACY_M)


class GeoIpPositionSource:
    """Approximate the user's position from their public IP address.

    IP lookups need no user consent, so :meth:`query_permission` always
    reports ``granted``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        poll_interval: float = 60.0,
    ) -> None:
        self._http = session
        self._url = url
        self._poll_interval = poll_interval

    async def query_permission(self) -> PermissionState | None:
        return PermissionState.GRANTED

    async def current_position(self, options: PositionOptions) -> Position:
        _logger.debug("GET %s", redact_url(self._url))
        timeout = aiohttp.ClientTimeout(total=options.timeout)
        try:
            async with self._http.get(self._url, headers={"user-agent": USER_AGENT}, timeout=timeout) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise PositionError(
                        PositionErrorCode.POSITION_UNAVAILABLE,
                        f"HTTP {resp.status} from geolocation service: {text[:200]}",
                    )
                payload = await resp.json(content_type=None)
        except TimeoutError as exc:
            raise PositionError(PositionErrorCode.TIMEOUT, "Geolocation service timed out") from exc
        except aiohttp.ClientError as exc:
            raise PositionError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                f"Geolocation request failed: {exc}",
            ) from exc
        except ValueError as exc:
            raise PositionError(
                PositionErrorCode.POSITION_UNAVAILABLE,
                "Invalid JSON from geolocation service",
            ) from exc
        return _parse_geoip_payload(payload)

    async def _poll(
        self,
        options: PositionOptions,
        on_update: PositionCallback,
        on_error: PositionErrorCallback,
    ) -> None:
        while True:
            try:
                position = await self.current_position(options)
            except PositionError as exc:
                _deliver(on_error, exc)
            except Exception as exc:
                _logger.warning("Geolocation poll failed unexpectedly: %r", exc)
                _deliver(
                    on_error,
                    PositionError(PositionErrorCode.POSITION_UNAVAILABLE, f"Geolocation request failed: {exc}"),
                )
            else:
                _deliver(on_update, position)
            await asyncio.sleep(self._poll_interval)

    def watch_position(
        self,
        options: PositionOptions,
        on_update: PositionCallback,
        on_error: PositionErrorCallback,
    ) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._poll(options, on_update, on_error))

    def clear_watch(self, handle: asyncio.Task[None]) -> None:
        handle.cancel()
