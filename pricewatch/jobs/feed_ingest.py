from __future__ import annotations

import logging
import math
from typing import Optional

from pricewatch.feed.base import TradeFeed
from pricewatch.models.market import Observation, TradeMessage
from pricewatch.series.store import BoundedSeriesStore

log = logging.getLogger("feed_ingest")


def parse_price(text: str) -> Optional[float]:
    """
    Strict text -> price conversion.
    Returns None for empty, non-numeric, NaN/inf or negative input.
    """
    if text is None:
        return None
    s = str(text).strip()
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def ingest_message(store: BoundedSeriesStore, msg: TradeMessage) -> Optional[Observation]:
    """Record one trade into the store. Returns None if the message was dropped."""
    price = parse_price(msg.price_text)
    if price is None:
        log.warning("Dropping trade with bad price product=%s price=%r", msg.product_id, msg.price_text)
        return None

    obs = store.record_observation(msg.product_id, price)
    log.debug("Recorded product=%s price=%.2f side=%s", obs.instrument, obs.price, msg.side)
    return obs


async def feed_ingest_loop(
    feed: TradeFeed,
    store: BoundedSeriesStore,
    products: list[str],
) -> None:
    """
    Background loop:
    - reads TradeMessages from feed.stream_trades()
    - parses the price text
    - records the observation into the store
    """
    seen: set[str] = set()

    async for msg in feed.stream_trades(products):
        try:
            obs = ingest_message(store, msg)
        except Exception:
            # Keep ingesting even if one message is bad
            log.exception("Failed to ingest trade product=%s", msg.product_id)
            continue

        if obs is not None and obs.instrument not in seen:
            seen.add(obs.instrument)
            log.info("First trade product=%s price=%s", obs.instrument, obs.price)

    log.warning("Feed stream ended products=%s", products)
