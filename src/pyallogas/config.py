"""Library configuration for pyallogas."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyallogas._constants import (
    DEFAULT_LOCATION_MAXIMUM_AGE_S,
    DEFAULT_LOCATION_TIMEOUT_S,
    DEFAULT_PERMISSION_PROMPT_TIMEOUT_S,
    DEFAULT_ROUTE_TIMEOUT_S,
    FALLBACK_LATITUDE,
    FALLBACK_LONGITUDE,
    ORS_BASE_URL,
    ORS_DEFAULT_PROFILE,
    OSRM_BASE_URL,
    OSRM_DEFAULT_PROFILE,
    ROUTE_CACHE_MAX_ENTRIES,
    ROUTE_CACHE_TTL_S,
    ROUTE_KEY_PRECISION,
)
from pyallogas.exceptions import AllogasConfigError
from pyallogas.models.coordinate import Coordinate

ROUTING_PROVIDERS: frozenset[str] = frozenset({"openrouteservice", "osrm"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class AllogasConfig:
    """Library configuration.

    Parameters
    ----------
    routing_provider : str
        ``"openrouteservice"`` or ``"osrm"``.
    routing_base_url : str or None
        Provider base URL. ``None`` selects the public endpoint of the
        chosen provider.
    routing_api_key : str or None
        API key sent as the ``Authorization`` header. Required by
        OpenRouteService, ignored by OSRM.
    routing_profile : str or None
        Travel profile. ``None`` selects the provider's driving profile.
    route_timeout : float
        Seconds to wait for a routing response before giving up.
    route_cache_ttl : float
        Seconds a cached route stays valid after insertion.
    route_cache_max_entries : int
        Hard cap on cached routes; the oldest insertion is evicted first.
    route_key_precision : int
        Decimal digits kept when rounding coordinates into a cache key.
    location_high_accuracy : bool
        Ask the position source for a high-accuracy fix.
    location_timeout : float
        Seconds to wait for a position fix.
    location_maximum_age : float
        Maximum age in seconds of a platform-cached fix that may be reused.
    permission_prompt_timeout : float
        Timeout for the low-accuracy request used only to surface the
        permission prompt.
    fallback_latitude : float
        Latitude substituted when no live fix is available.
    fallback_longitude : float
        Longitude substituted when no live fix is available.
    geoip_url : str or None
        IP geolocation JSON endpoint. When set, the facade uses it as its
        default position source.
    """

    routing_provider: str = "openrouteservice"
    routing_base_url: str | None = None
    routing_api_key: str | None = None
    routing_profile: str | None = None
    route_timeout: float = DEFAULT_ROUTE_TIMEOUT_S
    route_cache_ttl: float = ROUTE_CACHE_TTL_S
    route_cache_max_entries: int = ROUTE_CACHE_MAX_ENTRIES
    route_key_precision: int = ROUTE_KEY_PRECISION
    location_high_accuracy: bool = True
    location_timeout: float = DEFAULT_LOCATION_TIMEOUT_S
    location_maximum_age: float = DEFAULT_LOCATION_MAXIMUM_AGE_S
    permission_prompt_timeout: float = DEFAULT_PERMISSION_PROMPT_TIMEOUT_S
    fallback_latitude: float = FALLBACK_LATITUDE
    fallback_longitude: float = FALLBACK_LONGITUDE
    geoip_url: str | None = None

    @property
    def fallback_coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.fallback_latitude, longitude=self.fallback_longitude)

    @property
    def resolved_base_url(self) -> str:
        if self.routing_base_url:
            return self.routing_base_url.rstrip("/")
        return OSRM_BASE_URL if self.routing_provider == "osrm" else ORS_BASE_URL

    @property
    def resolved_profile(self) -> str:
        if self.routing_profile:
            return self.routing_profile
        return OSRM_DEFAULT_PROFILE if self.routing_provider == "osrm" else ORS_DEFAULT_PROFILE

    def validate(self) -> None:
        """Raise :class:`AllogasConfigError` if the configuration is unusable."""
        if self.routing_provider not in ROUTING_PROVIDERS:
            raise AllogasConfigError(
                f"routing_provider must be one of {sorted(ROUTING_PROVIDERS)}, got {self.routing_provider!r}"
            )
        if self.routing_provider == "openrouteservice" and not self.routing_api_key:
            raise AllogasConfigError("OpenRouteService requires routing_api_key (ALLOGAS_ROUTING_API_KEY)")
        for name in ("route_timeout", "route_cache_ttl", "location_timeout", "permission_prompt_timeout"):
            if getattr(self, name) <= 0:
                raise AllogasConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.route_cache_max_entries < 1:
            raise AllogasConfigError(f"route_cache_max_entries must be >= 1, got {self.route_cache_max_entries}")
        if self.route_key_precision < 0:
            raise AllogasConfigError(f"route_key_precision must be >= 0, got {self.route_key_precision}")
        try:
            self.fallback_coordinate
        except ValueError as exc:
            raise AllogasConfigError(f"Invalid fallback coordinate: {exc}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> AllogasConfig:
        """Create configuration from environment variables.

        Reads ``ALLOGAS_ROUTING_PROVIDER``, ``ALLOGAS_ROUTING_BASE_URL``,
        ``ALLOGAS_ROUTING_API_KEY``, ``ALLOGAS_ROUTING_PROFILE``,
        ``ALLOGAS_GEOIP_URL`` and the numeric/boolean ``ALLOGAS_*``
        variables named after each field. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        AllogasConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "ALLOGAS_ROUTING_PROVIDER": "routing_provider",
            "ALLOGAS_ROUTING_BASE_URL": "routing_base_url",
            "ALLOGAS_ROUTING_API_KEY": "routing_api_key",
            "ALLOGAS_ROUTING_PROFILE": "routing_profile",
            "ALLOGAS_GEOIP_URL": "geoip_url",
        }
        _ENV_FLOAT_MAP = {
            "ALLOGAS_ROUTE_TIMEOUT": "route_timeout",
            "ALLOGAS_ROUTE_CACHE_TTL": "route_cache_ttl",
            "ALLOGAS_LOCATION_TIMEOUT": "location_timeout",
            "ALLOGAS_LOCATION_MAXIMUM_AGE": "location_maximum_age",
            "ALLOGAS_PERMISSION_PROMPT_TIMEOUT": "permission_prompt_timeout",
            "ALLOGAS_FALLBACK_LATITUDE": "fallback_latitude",
            "ALLOGAS_FALLBACK_LONGITUDE": "fallback_longitude",
        }
        _ENV_INT_MAP = {
            "ALLOGAS_ROUTE_CACHE_MAX_ENTRIES": "route_cache_max_entries",
            "ALLOGAS_ROUTE_KEY_PRECISION": "route_key_precision",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = float(val)
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = int(val)
        except ValueError as exc:
            raise AllogasConfigError(f"Invalid numeric ALLOGAS_* variable: {exc}") from exc

        if "location_high_accuracy" not in overrides:
            config_kwargs["location_high_accuracy"] = _env_bool(env.get("ALLOGAS_LOCATION_HIGH_ACCURACY"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
