from pricewatch.config import Settings
from pricewatch.feed.base import TradeFeed
from pricewatch.feed.coinbase import CoinbaseFeed


def get_feed(settings: Settings) -> TradeFeed:
    """
    Feed loader / factory.

    Reads FEED_PROVIDER from config and returns an instance of the selected feed.
    This is the single place that knows about concrete feeds.
    """
    provider_name = settings.feed_provider.strip().upper()

    if provider_name == "COINBASE":
        return CoinbaseFeed(
            ws_url=settings.feed_ws_url,
            reconnect_max_seconds=settings.reconnect_max_seconds,
        )

    raise ValueError(f"Unknown FEED_PROVIDER='{settings.feed_provider}'. Expected: COINBASE")
