from __future__ import annotations

import pytest

from pyallogas.config import AllogasConfig
from pyallogas.exceptions import AllogasConfigError
from pyallogas.models import Coordinate


def test_defaults_match_documented_values() -> None:
    config = AllogasConfig()

    assert config.fallback_coordinate == Coordinate(latitude=3.848, longitude=11.502)
    assert config.route_cache_ttl == 600
    assert config.route_cache_max_entries == 50
    assert config.location_timeout == 15
    assert config.location_maximum_age == 300
    assert config.resolved_base_url == "https://api.openrouteservice.org"
    assert config.resolved_profile == "driving-car"


def test_osrm_resolves_its_own_endpoint_and_profile() -> None:
    config = AllogasConfig(routing_provider="osrm", routing_base_url="http://localhost:5000/")
    assert config.resolved_base_url == "http://localhost:5000"
    assert config.resolved_profile == "driving"
    config.validate()


def test_from_env_reads_allogas_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOGAS_ROUTING_PROVIDER", "osrm")
    monkeypatch.setenv("ALLOGAS_ROUTE_CACHE_TTL", "120")
    monkeypatch.setenv("ALLOGAS_ROUTE_CACHE_MAX_ENTRIES", "5")
    monkeypatch.setenv("ALLOGAS_FALLBACK_LATITUDE", "4.051")
    monkeypatch.setenv("ALLOGAS_FALLBACK_LONGITUDE", "9.768")
    monkeypatch.setenv("ALLOGAS_LOCATION_HIGH_ACCURACY", "off")

    config = AllogasConfig.from_env()

    assert config.routing_provider == "osrm"
    assert config.route_cache_ttl == 120.0
    assert config.route_cache_max_entries == 5
    assert config.fallback_coordinate == Coordinate(latitude=4.051, longitude=9.768)
    assert config.location_high_accuracy is False


def test_from_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOGAS_ROUTING_API_KEY", "from-env")
    monkeypatch.setenv("ALLOGAS_ROUTE_TIMEOUT", "30")
    monkeypatch.setenv("ALLOGAS_LOCATION_HIGH_ACCURACY", "false")

    config = AllogasConfig.from_env(routing_api_key="explicit", route_timeout=2.5, location_high_accuracy=True)

    assert config.routing_api_key == "explicit"
    assert config.route_timeout == 2.5
    assert config.location_high_accuracy is True


def test_from_env_rejects_non_numeric_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOGAS_ROUTE_CACHE_MAX_ENTRIES", "fifty")
    with pytest.raises(AllogasConfigError):
        AllogasConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"routing_provider": "graphhopper"},
        {"routing_provider": "openrouteservice"},
        {"routing_provider": "osrm", "route_timeout": 0},
        {"routing_provider": "osrm", "route_cache_ttl": -1},
        {"routing_provider": "osrm", "route_cache_max_entries": 0},
        {"routing_provider": "osrm", "route_key_precision": -1},
        {"routing_provider": "osrm", "fallback_latitude": 91.0},
    ],
)
def test_validate_rejects_unusable_values(kwargs: dict) -> None:
    with pytest.raises(AllogasConfigError):
        AllogasConfig(**kwargs).validate()
