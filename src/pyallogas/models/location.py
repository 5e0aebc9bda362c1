"""Location state and position fix models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from pyallogas.models._base import AllogasBaseModel
from pyallogas.models.coordinate import Coordinate


class PermissionState(StrEnum):
    """Location permission as last observed by the resolver."""

    UNKNOWN = "unknown"
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


class PositionOptions(AllogasBaseModel):
    """Options forwarded to a position source.

    Parameters
    ----------
    high_accuracy : bool
        Prefer a precise fix (GPS) over a coarse one (network/IP).
    timeout : float
        Seconds the source may take before reporting a timeout.
    maximum_age : float
        Maximum age in seconds of a cached fix the source may return.
    """

    high_accuracy: bool = True
    timeout: float = Field(default=15.0, gt=0)
    maximum_age: float = Field(default=300.0, ge=0)


class Position(AllogasBaseModel):
    """A single fix produced by a position source."""

    coordinate: Coordinate
    accuracy_meters: float | None = Field(default=None, ge=0)


class LocationState(AllogasBaseModel):
    """Snapshot of everything the resolver knows about the user's location.

    A resolver holds exactly one live snapshot and replaces it on every
    transition; snapshots themselves are immutable.

    Parameters
    ----------
    coordinate : Coordinate or None
        Live fix or the fallback coordinate; ``None`` only before the
        first acquisition attempt.
    permission : PermissionState
        Last observed permission state.
    loading : bool
        ``True`` while an acquisition is in flight.
    error : str or None
        Human-readable description of the last acquisition failure.
    accuracy_meters : float or None
        Accuracy radius of the live fix, ``None`` for the fallback.
    """

    coordinate: Coordinate | None = None
    permission: PermissionState = PermissionState.UNKNOWN
    loading: bool = False
    error: str | None = None
    accuracy_meters: float | None = None

    @property
    def is_fallback(self) -> bool:
        """Whether the coordinate is a substitute rather than a live fix."""
        return self.coordinate is not None and self.error is not None and self.accuracy_meters is None
