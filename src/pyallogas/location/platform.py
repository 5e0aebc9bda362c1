"""Position source interface consumed by :class:`LocationResolver`.

A position source is whatever can tell where the user is: a browser
bridge, a mobile SDK callback, an IP lookup, or a fixed value supplied
by the presentation layer. The resolver only depends on this protocol.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

from pyallogas.models.location import PermissionState, Position, PositionOptions


class PositionErrorCode(StrEnum):
    PERMISSION_DENIED = "permission-denied"
    POSITION_UNAVAILABLE = "position-unavailable"
    TIMEOUT = "timeout"


class PositionError(Exception):
    """Failure reported by a position source."""

    def __init__(self, code: PositionErrorCode, message: str = "") -> None:
        self.code = code
        super().__init__(message or code.value)


#: Opaque handle returned by ``watch_position``.
WatchHandle = Any

PositionCallback = Callable[[Position], None]
PositionErrorCallback = Callable[[PositionError], None]


class PositionSource(Protocol):
    """Structural position source interface.

    Having a protocol here makes it easy to pass test doubles while keeping
    the shipped sources (:mod:`pyallogas.location.sources`) concrete.
    """

    async def query_permission(self) -> PermissionState | None:
        """Return the permission status without prompting.

        ``None`` means the platform has no permission query API.
        """
        ...

    async def current_position(self, options: PositionOptions) -> Position:
        """Return a single fix or raise :class:`PositionError`."""
        ...

    def watch_position(
        self,
        options: PositionOptions,
        on_update: PositionCallback,
        on_error: PositionErrorCallback,
    ) -> WatchHandle:
        """Start continuous updates delivered in arrival order."""
        ...

    def clear_watch(self, handle: WatchHandle) -> None:
        """Stop the updates started by ``watch_position``."""
        ...
