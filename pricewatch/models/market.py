from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Observation:
    """
    Observation = one captured trade price for an instrument.

    instrument: which product (e.g., BTC-USD)
    price: traded price (finite, non-negative)
    observed_at: when WE captured it (UTC), not the venue's timestamp
    """
    instrument: str
    price: float
    observed_at: datetime

    def to_wire(self) -> dict:
        """Serialize with the field names the chart client reads."""
        return {
            "Timestamp": self.observed_at.isoformat(),
            "Price": self.price,
            "ProductID": self.instrument,
        }


@dataclass(frozen=True)
class TradeMessage:
    """
    TradeMessage = one completed trade ("match") as decoded from the feed.

    Numeric fields stay as the text the venue sent; parsing them is the
    ingestor's job.
    """
    product_id: str
    price_text: str
    side: str = ""
    size_text: str = ""
    time_text: str = ""
    trade_id: int | None = None
