"""Redaction of routing and geolocation secrets for debug logs.

Routing providers take their API key in the ``Authorization`` header
(OpenRouteService) or, for self-hosted and IP geolocation services, in the
query string (``?api_key=...``, ``?token=...``). Both places are scrubbed
before anything reaches a DEBUG log.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "api_key",
        "apikey",
        "x_api_key",
        "key",
        "token",
        "access_token",
        "cookie",
    }
)


def is_sensitive_key(key: object) -> bool:
    return str(key).lower().replace("-", "_") in _SENSITIVE_KEYS


def redact_url(url: str) -> str:
    """Replace the values of sensitive query parameters in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [(k, REDACTED if is_sensitive_key(k) else v) for k, v in parse_qsl(parts.query, keep_blank_values=True)]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))


def _redact_string(value: str, max_string: int) -> str:
    if value.startswith(("http://", "https://")) and "?" in value:
        value = redact_url(value)
    if len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a copy of *value* safe to log.

    Mapping entries with a sensitive key are replaced wholesale, URLs keep
    their path but lose sensitive query values, long strings are truncated
    and coordinate lists pass through unchanged.
    """
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _redact_string(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(k): REDACTED if is_sensitive_key(k) else redact_for_log(v, max_string=max_string)
            for k, v in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string) for v in value]
    return repr(value)
