"""Bounded time-to-live cache for resolved routes.

One cache belongs to one :class:`RouteResolver`; nothing here is
process-global. Entries expire a fixed time after insertion (checked
lazily on read) and the oldest insertion is evicted once the entry cap is
exceeded.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from pyallogas._constants import ROUTE_CACHE_MAX_ENTRIES, ROUTE_CACHE_TTL_S
from pyallogas.models.route import Route, RouteCacheEntry

_logger = logging.getLogger(__name__)


class RouteCache:
    """Route results keyed by rounded origin and destination.

    Parameters
    ----------
    ttl : float
        Seconds an entry stays valid after insertion.
    max_entries : int
        Maximum number of entries kept.
    clock : callable
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        *,
        ttl: float = ROUTE_CACHE_TTL_S,
        max_entries: int = ROUTE_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, RouteCacheEntry] = OrderedDict()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: RouteCacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self._ttl

    def get(self, key: str) -> Route | None:
        """Return the cached route, dropping it first if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            _logger.debug("Route cache entry expired: %s", key)
            del self._entries[key]
            return None
        return entry.to_route()

    def put(self, key: str, route: Route) -> None:
        """Insert *route*, then evict oldest insertions beyond the cap."""
        self._entries.pop(key, None)
        self._entries[key] = RouteCacheEntry.from_route(key, route, self._clock())
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            _logger.debug("Route cache full, evicted oldest entry: %s", evicted)

    def entry(self, key: str) -> RouteCacheEntry | None:
        """Raw entry lookup without expiry handling."""
        return self._entries.get(key)

    def keys(self) -> list[str]:
        return list(self._entries)

    def purge_expired(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
