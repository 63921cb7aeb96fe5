from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional, Sequence

from pydantic import BaseModel

from pricewatch.models.market import Observation


class SeriesStats(BaseModel):
    """
    Summary of one instrument's retained history.

    current: newest price
    high/low: extremes over the retained window
    sma: mean of the last `sma_period` prices
    volatility: population std-dev over the retained window
    change/change_percent: newest vs previous price (None with < 2 points)
    """

    instrument: str
    count: int
    current: float
    high: float
    low: float
    sma: float
    sma_period: int
    volatility: float
    change: Optional[float] = None
    change_percent: Optional[float] = None
    first_at: datetime
    last_at: datetime


# -------------------------
# Basic helpers
# -------------------------
def mean(values: List[float]) -> float:
    return sum(values) / len(values)


def population_stdev(values: List[float]) -> float:
    if len(values) < 2:
        return 0.0
    m = mean(values)
    return math.sqrt(sum((v - m) ** 2 for v in values) / len(values))


def simple_moving_average(values: List[float], period: int) -> float:
    tail = values[-period:]
    return mean(tail)


def compute_series_stats(
    observations: Sequence[Observation],
    sma_period: int = 10,
) -> Optional[SeriesStats]:
    if not observations:
        return None
    if sma_period < 1:
        raise ValueError(f"sma_period must be >= 1, got {sma_period}")

    prices = [o.price for o in observations]
    first = observations[0]
    last = observations[-1]

    change = None
    change_percent = None
    if len(prices) >= 2 and prices[-2] != 0:
        previous = prices[-2]
        change = last.price - previous
        change_percent = change / previous * 100.0

    return SeriesStats(
        instrument=last.instrument,
        count=len(prices),
        current=last.price,
        high=max(prices),
        low=min(prices),
        sma=simple_moving_average(prices, sma_period),
        sma_period=sma_period,
        volatility=population_stdev(prices),
        change=change,
        change_percent=change_percent,
        first_at=first.observed_at,
        last_at=last.observed_at,
    )
