"""Conversion between an incoming asset and the investor's unit of account.

Two modes share one implementation and differ only in which feed prices an
asset:

- DirectConverter: the unit of account is the native currency. The native
  asset converts 1:1 without a lookup; every token needs a feed quoting it
  in native units.
- UsdBridgedConverter: the unit of account is USD. The native asset is priced
  by a dedicated native/USD feed, each token by its own token/USD feed.

Quotes are normalized to 18 fractional digits and all arithmetic multiplies
before it divides, so

    to_unit_of_account(asset, x)   == x * price // 10**18
    from_unit_of_account(asset, u) == u * 10**18 // price
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from ..schemas.base import NATIVE, PRICE_DECIMALS, is_null
from .errors import MissingPriceOracle, InvalidPrice
from .oracle import PriceOracle

logger = logging.getLogger(__name__)

ONE = 10 ** PRICE_DECIMALS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CurrencyConverter(ABC):
    """Converts amounts using the latest oracle quote.

    Args:
        oracle: Quote source
        price_feeds: Initial asset -> feed bindings
        max_price_age: Reject quotes older than this. None (default) accepts
            any age.
        clock: Current time, for the age check
    """

    unit_of_account: str = ""

    def __init__(
        self,
        oracle: PriceOracle,
        price_feeds: Optional[Dict[str, str]] = None,
        max_price_age: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.oracle = oracle
        self.max_price_age = max_price_age
        self.clock = clock
        self._feeds: Dict[str, str] = {}
        for asset, feed in (price_feeds or {}).items():
            self.set_price_feed(asset, feed)

    @abstractmethod
    def _feed_for(self, asset: str) -> Optional[str]:
        """Feed pricing `asset`, or None when `asset` is the unit of account.

        Raises:
            MissingPriceOracle: If conversion is needed but no feed is bound
        """
        pass

    # -------------------------------------------------------------------------
    # Feed bindings
    # -------------------------------------------------------------------------

    def price_feed(self, asset: str) -> Optional[str]:
        return self._feeds.get(asset)

    def set_price_feed(self, asset: str, feed: Optional[str]) -> Optional[str]:
        """Bind, rebind or (with None / null) unbind a feed. Returns the old feed."""
        previous = self._feeds.get(asset)
        if is_null(feed):
            self._feeds.pop(asset, None)
        else:
            self._feeds[asset] = feed
        return previous

    def require_feed(self, asset: str) -> None:
        self._feed_for(asset)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def price_of(self, asset: str) -> int:
        """Price of one whole unit of `asset` in the unit of account, 18 decimals."""
        feed = self._feed_for(asset)
        if feed is None:
            return ONE
        return self._quote(asset, feed)

    def to_unit_of_account(self, asset: str, amount: int) -> int:
        feed = self._feed_for(asset)
        if feed is None:
            return amount
        return amount * self._quote(asset, feed) // ONE

    def from_unit_of_account(self, asset: str, amount: int) -> int:
        feed = self._feed_for(asset)
        if feed is None:
            return amount
        return amount * ONE // self._quote(asset, feed)

    def _quote(self, asset: str, feed: str) -> int:
        try:
            quote = self.oracle.latest_price(feed)
        except KeyError as exc:
            raise MissingPriceOracle(asset) from exc

        price = quote.normalized(PRICE_DECIMALS)
        if price <= 0:
            raise InvalidPrice(f"Feed '{feed}' answered a non-positive price ({quote.price})")
        if self.max_price_age is not None:
            age = self.clock() - quote.timestamp
            if age > self.max_price_age:
                raise InvalidPrice(f"Feed '{feed}' quote is {age} old (limit {self.max_price_age})")
        logger.debug(f"Quote {feed} round {quote.round_id}: {price}")
        return price


class DirectConverter(CurrencyConverter):
    """Unit of account is the native currency; tokens are quoted in native units."""

    unit_of_account = NATIVE

    def set_price_feed(self, asset: str, feed: Optional[str]) -> Optional[str]:
        if asset == NATIVE:
            raise ValueError("The native currency is the unit of account and takes no feed")
        return super().set_price_feed(asset, feed)

    def _feed_for(self, asset: str) -> Optional[str]:
        if asset == NATIVE:
            return None
        feed = self._feeds.get(asset)
        if feed is None:
            raise MissingPriceOracle(asset)
        return feed


class UsdBridgedConverter(CurrencyConverter):
    """Unit of account is USD; native and every token each have a USD feed."""

    unit_of_account = "USD"

    def __init__(
        self,
        oracle: PriceOracle,
        native_feed: Optional[str] = None,
        price_feeds: Optional[Dict[str, str]] = None,
        max_price_age: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.native_feed = None if is_null(native_feed) else native_feed
        super().__init__(oracle, price_feeds, max_price_age, clock)

    def set_native_price_feed(self, feed: Optional[str]) -> Optional[str]:
        previous = self.native_feed
        self.native_feed = None if is_null(feed) else feed
        return previous

    def set_price_feed(self, asset: str, feed: Optional[str]) -> Optional[str]:
        if asset == NATIVE:
            return self.set_native_price_feed(feed)
        return super().set_price_feed(asset, feed)

    def price_feed(self, asset: str) -> Optional[str]:
        if asset == NATIVE:
            return self.native_feed
        return super().price_feed(asset)

    def _feed_for(self, asset: str) -> Optional[str]:
        feed = self.native_feed if asset == NATIVE else self._feeds.get(asset)
        if feed is None:
            raise MissingPriceOracle(asset)
        return feed
