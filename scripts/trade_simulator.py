from __future__ import annotations

import random

from pricewatch.series.stats import compute_series_stats
from pricewatch.series.store import BoundedSeriesStore


def run(product: str = "BTC-USD", trades: int = 250, capacity: int = 100) -> None:
    """
    Generates fake trades and feeds them into a BoundedSeriesStore.

    - Price does a random walk (moves up/down a bit each trade).
    - The store keeps only the latest `capacity` observations.
    - At the end we print what was retained plus summary stats.
    """
    store = BoundedSeriesStore(capacity=capacity)

    price = 60_000.0

    print(f"Simulating {trades} trades for {product} (capacity={capacity})...\n")

    for _ in range(trades):
        price = max(0.0, price + random.uniform(-25.0, 25.0))
        store.record_observation(product, round(price, 2))

    series = store.snapshot(product)
    stats = compute_series_stats(series)

    print(f"Retained observations: {len(series)}")
    print(f"Oldest: {series[0].price} @ {series[0].observed_at.isoformat()}")
    print(f"Newest: {series[-1].price} @ {series[-1].observed_at.isoformat()}")
    if stats is not None:
        print(
            f"High={stats.high:.2f} Low={stats.low:.2f} "
            f"SMA{stats.sma_period}={stats.sma:.2f} Vol={stats.volatility:.2f}"
        )


if __name__ == "__main__":
    run()
