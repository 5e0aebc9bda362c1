"""Route, route cache entry and route failure models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import Field

from pyallogas.exceptions import (
    RouteError,
    RouteNotFoundError,
    RouteRateLimitError,
    RouteTimeoutError,
)
from pyallogas.models._base import AllogasBaseModel
from pyallogas.models.coordinate import Coordinate


class Route(AllogasBaseModel):
    """A drivable route and its trip cost.

    Parameters
    ----------
    geometry : tuple of Coordinate
        Ordered path from origin to destination, latitude first.
    distance_meters : float
        Driving distance reported by the provider.
    duration_seconds : float
        Driving duration reported by the provider.
    """

    geometry: tuple[Coordinate, ...] = ()
    distance_meters: float = Field(default=0.0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0)

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0


@dataclass(frozen=True, slots=True)
class RouteCacheEntry:
    """A cached provider answer keyed by rounded origin and destination."""

    key: str
    geometry: tuple[Coordinate, ...]
    distance_meters: float
    duration_seconds: float
    inserted_at: float

    @classmethod
    def from_route(cls, key: str, route: Route, inserted_at: float) -> RouteCacheEntry:
        return cls(
            key=key,
            geometry=route.geometry,
            distance_meters=route.distance_meters,
            duration_seconds=route.duration_seconds,
            inserted_at=inserted_at,
        )

    def to_route(self) -> Route:
        return Route(
            geometry=self.geometry,
            distance_meters=self.distance_meters,
            duration_seconds=self.duration_seconds,
        )


class RouteFailureCause(StrEnum):
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"


@dataclass(frozen=True, slots=True)
class RouteFailure:
    """Typed failure returned by :meth:`RouteResolver.resolve`."""

    cause: RouteFailureCause
    message: str
    error: RouteError

    @classmethod
    def from_error(cls, error: RouteError) -> RouteFailure:
        if isinstance(error, RouteNotFoundError):
            cause = RouteFailureCause.NOT_FOUND
        elif isinstance(error, RouteTimeoutError):
            cause = RouteFailureCause.TIMEOUT
        elif isinstance(error, RouteRateLimitError):
            cause = RouteFailureCause.RATE_LIMITED
        else:
            cause = RouteFailureCause.PROVIDER_ERROR
        return cls(cause=cause, message=str(error), error=error)
