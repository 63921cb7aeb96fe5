from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from pricewatch.models.market import TradeMessage


class TradeFeed(ABC):
    """
    Feed contract (interface).

    Any feed must implement:
    - stream_trades(): completed trades via WebSocket (async iterator),
      reconnecting on its own when the connection drops
    """

    @abstractmethod
    def stream_trades(self, products: List[str]) -> AsyncIterator[TradeMessage]:
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources. Default: nothing to release."""
