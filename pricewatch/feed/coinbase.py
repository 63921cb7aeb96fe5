from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Optional

import websockets

from pricewatch.config import COINBASE_WS_URL
from pricewatch.feed.base import TradeFeed
from pricewatch.models.market import TradeMessage

log = logging.getLogger("coinbase_feed")

TRADE_TYPES = ("match", "last_match")


def build_subscription(products: list[str]) -> dict:
    return {
        "type": "subscribe",
        "product_ids": products,
        "channels": ["matches"],
    }


def decode_trade(raw: Any) -> Optional[TradeMessage]:
    """
    Decode one WS frame into a TradeMessage.

    Returns None for anything that is not a completed trade with a price:
    non-JSON frames, non-object payloads, subscriptions/heartbeats/errors,
    and matches with an empty price.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        log.debug("Coinbase WS non-JSON frame dropped: %r", raw)
        return None

    if not isinstance(data, dict):
        return None

    msg_type = data.get("type")
    if msg_type == "error":
        log.warning("Coinbase WS error message=%s reason=%s", data.get("message"), data.get("reason"))
        return None
    if msg_type not in TRADE_TYPES:
        return None

    product_id = data.get("product_id")
    price = data.get("price")
    if not product_id or price in (None, ""):
        return None

    trade_id = data.get("trade_id")
    return TradeMessage(
        product_id=str(product_id),
        price_text=str(price),
        side=str(data.get("side") or ""),
        size_text=str(data.get("size") or ""),
        time_text=str(data.get("time") or ""),
        trade_id=trade_id if isinstance(trade_id, int) else None,
    )


class CoinbaseFeed(TradeFeed):
    """
    Coinbase Exchange feed (WS, public `matches` channel).

    Yields one TradeMessage per completed trade and reconnects with
    exponential backoff whenever the connection fails.
    """

    def __init__(self, ws_url: str = COINBASE_WS_URL, reconnect_max_seconds: float = 30.0) -> None:
        self.ws_url = ws_url
        self.reconnect_max_seconds = reconnect_max_seconds
        self._closed = False

    def close(self) -> None:
        self._closed = True

    async def stream_trades(self, products: list[str]) -> AsyncIterator[TradeMessage]:
        products = [p.strip().upper() for p in products if p.strip()]
        if not products:
            log.warning("Coinbase WS: no products provided")
            return

        backoff = 1.0

        while not self._closed:
            try:
                async with websockets.connect(self.ws_url, ping_interval=20, ping_timeout=20) as ws:
                    await ws.send(json.dumps(build_subscription(products)))
                    log.info("Coinbase WS subscribed products=%s", products)
                    backoff = 1.0

                    async for raw in ws:
                        trade = decode_trade(raw)
                        if trade is not None:
                            yield trade
                        if self._closed:
                            return

                log.warning("Coinbase WS closed by server (retry in %.0fs)", backoff)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.warning("Coinbase WS error: %s (retry in %.0fs)", e, backoff)

            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self.reconnect_max_seconds)
