"""Geographic coordinate model."""

from __future__ import annotations

from pydantic import Field

from pyallogas.models._base import AllogasBaseModel


class Coordinate(AllogasBaseModel):
    """A (latitude, longitude) pair in degrees.

    Latitude comes first everywhere inside the library. Routing providers
    expect longitude first; that conversion lives in
    :func:`pyallogas.geo.to_lon_lat` and nowhere else.
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def __str__(self) -> str:
        return f"({self.latitude:.6f}, {self.longitude:.6f})"
