"""Distance ranking of sellers around an origin."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pyallogas.geo import haversine_km
from pyallogas.metrics import SELLER_FILTER, PerformanceMonitor
from pyallogas.models.coordinate import Coordinate
from pyallogas.models.seller import FilterCriteria, RankedSeller, Seller

_logger = logging.getLogger(__name__)

_EMPTY_CRITERIA = FilterCriteria()


def rank_sellers(
    origin: Coordinate | None,
    sellers: Iterable[Seller],
    criteria: FilterCriteria | None = None,
) -> list[RankedSeller]:
    """Filter *sellers* by *criteria* and sort them by distance from *origin*.

    Sorting is stable on distance alone: sellers at exactly the same
    distance keep their input order. An absent origin yields an empty
    list; so does a filter that matches nothing.
    """
    if origin is None:
        return []
    criteria = criteria or _EMPTY_CRITERIA
    ranked = [
        RankedSeller(seller=seller, distance_km=haversine_km(origin, seller.coordinate))
        for seller in sellers
        if criteria.matches(seller)
    ]
    ranked.sort(key=lambda item: item.distance_km)
    return ranked


class ProximityRanker:
    """Stateless ranking with memoisation of the last call.

    Re-ranking with identical origin, sellers and criteria (common when a
    UI re-renders without a filter change) returns the previous result
    without recomputing distances.
    """

    def __init__(self, *, monitor: PerformanceMonitor | None = None) -> None:
        self._monitor = monitor
        self._last_key: tuple[Coordinate | None, tuple[Seller, ...], FilterCriteria] | None = None
        self._last_result: tuple[RankedSeller, ...] = ()

    def rank(
        self,
        origin: Coordinate | None,
        sellers: Iterable[Seller],
        criteria: FilterCriteria | None = None,
    ) -> list[RankedSeller]:
        seller_tuple = tuple(sellers)
        key = (origin, seller_tuple, criteria or _EMPTY_CRITERIA)
        if key == self._last_key:
            return list(self._last_result)

        if self._monitor is not None:
            with self._monitor.measure(SELLER_FILTER):
                result = rank_sellers(origin, seller_tuple, key[2])
        else:
            result = rank_sellers(origin, seller_tuple, key[2])

        _logger.debug(
            "Ranked %d of %d sellers around %s (criteria=%s)",
            len(result),
            len(seller_tuple),
            origin,
            key[2],
        )
        self._last_key = key
        self._last_result = tuple(result)
        return result

    def reset(self) -> None:
        """Forget the memoised inputs."""
        self._last_key = None
        self._last_result = ()
