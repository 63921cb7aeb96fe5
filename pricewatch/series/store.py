from __future__ import annotations

import math
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, Iterable, List, Tuple

from pricewatch.models.market import Observation


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoundedSeriesStore:
    """
    In-memory, thread-safe price history per instrument.

    series[instrument] -> the latest `capacity` observations, oldest first

    - a series is created on the first observation for an instrument
    - when a series is full the oldest observation is dropped (FIFO)
    - every read returns an immutable copy, never the live deque

    One lock guards the whole mapping. Work done under it is an append
    or a copy of at most `capacity` items.
    """

    def __init__(self, capacity: int = 100, clock: Callable[[], datetime] = utcnow) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._clock = clock
        self._lock = threading.Lock()
        self._series: Dict[str, Deque[Observation]] = {}

    def record_observation(self, instrument: str, price: float) -> Observation:
        """Append one price for `instrument`, stamped with the capture time."""
        if not instrument:
            raise ValueError("instrument must be a non-empty string")
        # Text parsing belongs to the ingestor; only numbers get this far
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise TypeError(f"price must be int or float, got {type(price).__name__}")
        price = float(price)
        if not math.isfinite(price) or price < 0:
            raise ValueError(f"price must be finite and non-negative, got {price!r}")

        with self._lock:
            obs = Observation(instrument=instrument, price=price, observed_at=self._clock())
            series = self._series.get(instrument)
            if series is None:
                series = deque(maxlen=self.capacity)
                self._series[instrument] = series
            # deque(maxlen=...) drops the head when full
            series.append(obs)
        return obs

    def snapshot(self, instrument: str) -> Tuple[Observation, ...]:
        """Oldest-first copy of the series; empty if never observed."""
        with self._lock:
            return tuple(self._series.get(instrument, ()))

    def snapshot_many(self, instruments: Iterable[str]) -> Dict[str, Tuple[Observation, ...]]:
        """Copies of several series taken at the same instant."""
        with self._lock:
            return {name: tuple(self._series.get(name, ())) for name in instruments}

    def latest_price(self, instrument: str) -> Tuple[float, bool]:
        """
        Returns (price, found).
        found is False exactly when nothing was ever recorded for `instrument`.
        """
        with self._lock:
            series = self._series.get(instrument)
            if not series:
                return 0.0, False
            return series[-1].price, True

    def instruments(self) -> List[str]:
        with self._lock:
            return sorted(self._series)

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
