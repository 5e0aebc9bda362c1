"""Named timing samples for the location, ranking and routing paths."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager

LOCATION_LOAD = "location_load"
SELLER_FILTER = "seller_filter"
ROUTE_CALCULATION = "route_calculation"

#: Samples kept per measurement name; older ones are dropped first.
DEFAULT_MAX_SAMPLES = 100


class PerformanceMonitor:
    """Collect wall-clock durations (milliseconds) per measurement name.

    Only the most recent ``max_samples`` durations are kept for each name,
    so a long-lived session does not accumulate samples without bound.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.perf_counter,
        max_samples: int = DEFAULT_MAX_SAMPLES,
    ) -> None:
        if max_samples < 1:
            raise ValueError(f"max_samples must be >= 1, got {max_samples}")
        self._clock = clock
        self._max_samples = max_samples
        self._samples: dict[str, deque[float]] = {}

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Record the duration of the ``with`` block under *name*.

        A sample is recorded even when the block raises.
        """
        start = self._clock()
        try:
            yield
        finally:
            self.record(name, (self._clock() - start) * 1000.0)

    def record(self, name: str, duration_ms: float) -> None:
        samples = self._samples.get(name)
        if samples is None:
            samples = self._samples[name] = deque(maxlen=self._max_samples)
        samples.append(duration_ms)

    def samples(self, name: str) -> list[float]:
        return list(self._samples.get(name, ()))

    def average(self, name: str) -> float:
        """Mean of the retained samples, ``0.0`` when there are none."""
        times = self._samples.get(name)
        if not times:
            return 0.0
        return sum(times) / len(times)

    def clear(self) -> None:
        self._samples.clear()
