"""Custom exception hierarchy for pyallogas."""

from __future__ import annotations


class AllogasError(Exception):
    """Base exception for all pyallogas errors."""


class AllogasConfigError(AllogasError):
    """Invalid or missing configuration."""


class LocationError(AllogasError):
    """The user's position could not be obtained."""


class LocationUnavailableError(LocationError):
    """No location capability, or the platform could not produce a fix."""


class PermissionDeniedError(LocationError):
    """The user or the platform refused access to the position."""


class LocationTimeoutError(LocationError):
    """No fix arrived before the acquisition timeout."""


class RouteError(AllogasError):
    """Base for route resolution failures."""


class RouteNotFoundError(RouteError):
    """The routing provider answered but returned zero routes."""


class RouteProviderError(RouteError):
    """Routing provider failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RouteTimeoutError(RouteProviderError):
    """The routing provider did not answer within the request timeout."""


class RouteRateLimitError(RouteProviderError):
    """The routing provider rejected the request with HTTP 429.

    The core never retries; callers decide whether to re-invoke ``resolve``.
    """


class RouteCancelledError(RouteError):
    """A route request was superseded by a newer one.

    Only raised by :meth:`RouteResolver.resolve_or_raise`; the default
    ``resolve`` path swallows supersession and returns ``None``.
    """
