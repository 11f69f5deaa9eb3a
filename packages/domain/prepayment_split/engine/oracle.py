"""Price oracle interface and an in-memory implementation."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from ..schemas.oracle import PriceQuote


class PriceOracle(ABC):
    """Read-only source of the latest quote per feed."""

    @abstractmethod
    def latest_price(self, feed_id: str) -> PriceQuote:
        """Latest quote for `feed_id`.

        Raises:
            KeyError: If the oracle has no such feed
        """
        pass


class InMemoryPriceOracle(PriceOracle):
    """Oracle whose quotes are published by the embedding application.

    Example:
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", 1000 * 10**8)          # 1000 USD, 8 decimals
        oracle.latest_price("eth-usd").normalized()      # 1000 * 10**18
    """

    def __init__(self):
        self._quotes: Dict[str, PriceQuote] = {}

    def publish(
        self,
        feed_id: str,
        price: int,
        decimals: int = 8,
        timestamp: Optional[datetime] = None,
    ) -> PriceQuote:
        previous = self._quotes.get(feed_id)
        quote = PriceQuote(
            price=price,
            decimals=decimals,
            timestamp=timestamp or datetime.now(timezone.utc),
            round_id=previous.round_id + 1 if previous else 1,
        )
        self._quotes[feed_id] = quote
        return quote

    def latest_price(self, feed_id: str) -> PriceQuote:
        if feed_id not in self._quotes:
            raise KeyError(f"Unknown price feed '{feed_id}'")
        return self._quotes[feed_id]
