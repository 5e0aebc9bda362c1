"""User location resolution with permission tracking and a fallback coordinate.

Permission moves ``unknown -> prompt -> granted | denied``. A transient
failure while ``granted`` keeps the permission and only records an error;
``denied`` is never retried automatically, the caller has to go through
:meth:`LocationResolver.request_permission_explicitly`.

No public method raises. Every failure path leaves a :class:`LocationState`
carrying the fallback coordinate and a readable error, so ranking keeps
working against the fallback instead of stalling.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from pyallogas._constants import (
    MSG_NOT_SUPPORTED,
    MSG_PERMISSION_DENIED,
    MSG_POSITION_UNAVAILABLE,
    MSG_TIMEOUT,
)
from pyallogas.config import AllogasConfig
from pyallogas.exceptions import (
    LocationError,
    LocationTimeoutError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from pyallogas.location.platform import PositionError, PositionErrorCode, PositionSource, WatchHandle
from pyallogas.metrics import LOCATION_LOAD, PerformanceMonitor
from pyallogas.models.coordinate import Coordinate
from pyallogas.models.location import LocationState, PermissionState, Position, PositionOptions

_logger = logging.getLogger(__name__)

#: Maximum age accepted for the fix requested only to surface the permission prompt.
_PROMPT_MAXIMUM_AGE_S = 24 * 3600.0


def classify_position_error(error: PositionError) -> LocationError:
    """Map a position source error onto the library's location taxonomy."""
    if error.code is PositionErrorCode.PERMISSION_DENIED:
        return PermissionDeniedError(MSG_PERMISSION_DENIED)
    if error.code is PositionErrorCode.TIMEOUT:
        return LocationTimeoutError(MSG_TIMEOUT)
    return LocationUnavailableError(MSG_POSITION_UNAVAILABLE)


class LocationResolver:
    """Produce one authoritative coordinate for the session.

    Parameters
    ----------
    source : PositionSource or None
        Where fixes come from. ``None`` means the platform has no location
        capability; every acquisition then resolves to the fallback.
    fallback : Coordinate
        Coordinate substituted when no live fix is available.
    high_accuracy, timeout, maximum_age : bool, float, float
        Defaults for :meth:`acquire_once` and :meth:`watch`.
    prompt_timeout : float
        Timeout of the low-accuracy request used to surface the prompt.
    on_change : callable, optional
        Called with every new :class:`LocationState`.
    monitor : PerformanceMonitor, optional
        Receives ``location_load`` samples.
    """

    def __init__(
        self,
        source: PositionSource | None,
        *,
        fallback: Coordinate,
        high_accuracy: bool = True,
        timeout: float = 15.0,
        maximum_age: float = 300.0,
        prompt_timeout: float = 10.0,
        on_change: Callable[[LocationState], None] | None = None,
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        self._source = source
        self._fallback = fallback
        self._high_accuracy = high_accuracy
        self._timeout = timeout
        self._maximum_age = maximum_age
        self._prompt_timeout = prompt_timeout
        self._on_change = on_change
        self._monitor = monitor
        self._state = LocationState()
        self._last_error: LocationError | None = None
        self._last_allowed_permission = PermissionState.UNKNOWN
        # Bumped by every acquire_once call; a result whose sequence is no
        # longer current is discarded.
        self._acquire_seq = 0
        # Bumped by every coordinate write from a live fix.
        self._fix_generation = 0
        self._watching = False
        self._watch_handle: WatchHandle | None = None

    @classmethod
    def from_config(
        cls,
        config: AllogasConfig,
        source: PositionSource | None,
        **kwargs: Any,
    ) -> LocationResolver:
        return cls(
            source,
            fallback=config.fallback_coordinate,
            high_accuracy=config.location_high_accuracy,
            timeout=config.location_timeout,
            maximum_age=config.location_maximum_age,
            prompt_timeout=config.permission_prompt_timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> LocationState:
        return self._state

    @property
    def coordinate(self) -> Coordinate | None:
        return self._state.coordinate

    @property
    def last_error(self) -> LocationError | None:
        """Typed error behind ``state.error``, ``None`` after a successful fix."""
        return self._last_error

    @property
    def is_watching(self) -> bool:
        return self._watching

    def _set_state(self, **changes: Any) -> LocationState:
        permission = changes.get("permission")
        if permission is not None and permission is not PermissionState.DENIED:
            self._last_allowed_permission = permission
        self._state = self._state.model_copy(update=changes)
        if self._on_change is not None:
            try:
                self._on_change(self._state)
            except Exception:
                _logger.exception("Location change callback failed")
        return self._state

    def _options(
        self,
        high_accuracy: bool | None,
        timeout: float | None,
        maximum_age: float | None,
    ) -> PositionOptions:
        return PositionOptions(
            high_accuracy=self._high_accuracy if high_accuracy is None else high_accuracy,
            timeout=self._timeout if timeout is None else timeout,
            maximum_age=self._maximum_age if maximum_age is None else maximum_age,
        )

    @contextmanager
    def _measure(self) -> Iterator[None]:
        if self._monitor is None:
            yield
            return
        with self._monitor.measure(LOCATION_LOAD):
            yield

    # ------------------------------------------------------------------
    # Failure / success application
    # ------------------------------------------------------------------

    def _apply_failure(self, error: LocationError, *, log: bool = True) -> LocationState:
        if log:
            _logger.warning("Location acquisition failed (%s): %s", type(error).__name__, error)
        self._last_error = error
        if isinstance(error, PermissionDeniedError):
            permission = PermissionState.DENIED
        else:
            permission = self._last_allowed_permission
        return self._set_state(
            coordinate=self._fallback,
            accuracy_meters=None,
            permission=permission,
            loading=False,
            error=str(error),
        )

    def _apply_fix(self, position: Position, seq: int, generation: int) -> LocationState:
        if seq != self._acquire_seq:
            _logger.debug("Discarding fix from superseded acquisition #%d", seq)
            return self._state
        self._last_error = None
        if generation != self._fix_generation:
            # A watch update landed while this request was pending; it is newer.
            _logger.debug("Keeping newer watched coordinate over acquisition #%d", seq)
            return self._set_state(permission=PermissionState.GRANTED, loading=False, error=None)
        self._fix_generation += 1
        return self._set_state(
            coordinate=position.coordinate,
            accuracy_meters=position.accuracy_meters,
            permission=PermissionState.GRANTED,
            loading=False,
            error=None,
        )

    async def _query_permission(self) -> PermissionState | None:
        assert self._source is not None  # noqa: S101
        try:
            return await self._source.query_permission()
        except Exception:
            _logger.debug("Permission query failed", exc_info=True)
            return None

    async def _request_position(self, options: PositionOptions) -> Position:
        """Request one fix; raises :class:`LocationError` on any failure."""
        assert self._source is not None  # noqa: S101
        try:
            return await asyncio.wait_for(self._source.current_position(options), timeout=options.timeout)
        except TimeoutError as exc:
            raise LocationTimeoutError(MSG_TIMEOUT) from exc
        except PositionError as exc:
            raise classify_position_error(exc) from exc
        except Exception as exc:
            _logger.debug("Position source raised unexpectedly", exc_info=True)
            raise LocationUnavailableError(MSG_POSITION_UNAVAILABLE) from exc

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def initialize(self) -> LocationState:
        """Check permission without prompting, then acquire accordingly.

        * ``granted``: one-shot fix straight away.
        * ``prompt``: low-accuracy request to surface the dialog, then a
          full-accuracy fix if the user accepted.
        * ``denied``: fallback without touching the position API.
        * no permission API: plain one-shot fix.
        """
        if self._source is None:
            return self._apply_failure(LocationUnavailableError(MSG_NOT_SUPPORTED))

        status = await self._query_permission()
        if status is PermissionState.GRANTED:
            self._set_state(permission=PermissionState.GRANTED)
            return await self.acquire_once()
        if status is PermissionState.DENIED:
            return self._apply_failure(PermissionDeniedError(MSG_PERMISSION_DENIED))
        if status is PermissionState.PROMPT:
            self._set_state(permission=PermissionState.PROMPT, loading=True)
            if await self.request_permission_explicitly():
                return await self.acquire_once(high_accuracy=True)
            error = self._last_error or PermissionDeniedError(MSG_PERMISSION_DENIED)
            # Already logged by request_permission_explicitly.
            return self._apply_failure(error, log=False)
        return await self.acquire_once()

    async def acquire_once(
        self,
        high_accuracy: bool | None = None,
        timeout: float | None = None,
        maximum_age: float | None = None,
    ) -> LocationState:
        """Request the current position once.

        On success the state carries the fix with ``permission=granted``.
        On failure the state carries the fallback coordinate and an error;
        only a permission-denied failure moves the permission to ``denied``.
        """
        if self._source is None:
            return self._apply_failure(LocationUnavailableError(MSG_NOT_SUPPORTED))

        if self._state.permission is PermissionState.UNKNOWN:
            status = await self._query_permission()
            if status is not None and status is not PermissionState.UNKNOWN:
                self._set_state(permission=status)

        if self._state.permission is PermissionState.DENIED:
            return self._apply_failure(PermissionDeniedError(MSG_PERMISSION_DENIED))

        options = self._options(high_accuracy, timeout, maximum_age)
        self._acquire_seq += 1
        seq = self._acquire_seq
        generation = self._fix_generation
        self._set_state(loading=True, error=None)

        try:
            with self._measure():
                position = await self._request_position(options)
        except LocationError as error:
            if seq != self._acquire_seq:
                _logger.debug("Discarding failure from superseded acquisition #%d: %s", seq, error)
                return self._state
            return self._apply_failure(error)
        return self._apply_fix(position, seq, generation)

    async def request_permission_explicitly(self) -> bool:
        """Ask the platform for permission, surfacing its dialog.

        Only the permission state is updated; the coordinate is left as is
        so a caller can retry after a denial and then call
        :meth:`acquire_once`.
        """
        if self._source is None:
            self._last_error = LocationUnavailableError(MSG_NOT_SUPPORTED)
            _logger.warning("Permission request failed: %s", self._last_error)
            return False

        options = PositionOptions(
            high_accuracy=False,
            timeout=self._prompt_timeout,
            maximum_age=_PROMPT_MAXIMUM_AGE_S,
        )
        try:
            await self._request_position(options)
        except PermissionDeniedError as error:
            _logger.warning("Location permission denied")
            self._last_error = error
            self._set_state(permission=PermissionState.DENIED)
            return False
        except LocationError as error:
            _logger.warning("Permission request did not produce a fix (%s): %s", type(error).__name__, error)
            self._last_error = error
            return False
        self._last_error = None
        self._set_state(permission=PermissionState.GRANTED)
        return True

    def watch(
        self,
        high_accuracy: bool | None = None,
        timeout: float | None = None,
        maximum_age: float | None = None,
    ) -> None:
        """Start continuous updates; a no-op when already watching.

        Updates overwrite coordinate and accuracy only. Watch failures are
        logged, never written to the state.
        """
        if self._watching:
            return
        if self._source is None:
            _logger.warning("Cannot watch position: no position source available")
            return
        options = self._options(high_accuracy, timeout, maximum_age)
        self._watching = True
        try:
            self._watch_handle = self._source.watch_position(options, self._on_watch_update, self._on_watch_error)
        except Exception:
            self._watching = False
            self._watch_handle = None
            _logger.warning("Failed to start position watch", exc_info=True)

    def cancel_watch(self) -> None:
        """Stop watching. Safe to call when not watching."""
        if not self._watching:
            return
        handle = self._watch_handle
        self._watching = False
        self._watch_handle = None
        if self._source is None or handle is None:
            return
        try:
            self._source.clear_watch(handle)
        except Exception:
            _logger.debug("clear_watch failed", exc_info=True)

    def _on_watch_update(self, position: Position) -> None:
        if not self._watching:
            return
        self._fix_generation += 1
        self._set_state(coordinate=position.coordinate, accuracy_meters=position.accuracy_meters)

    def _on_watch_error(self, error: PositionError) -> None:
        _logger.warning("Watch position error (%s): %s", error.code.value, error)
