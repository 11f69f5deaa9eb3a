"""Tests for oracle quotes and currency conversion.

Tests cover:
1. Quote normalization to 18 decimals
2. Direct mode: native is the unit of account, tokens need a feed
3. USD-bridged mode: native and tokens each priced by a USD feed
4. Missing feeds and rejected prices
"""

from datetime import datetime, timedelta, timezone

import pytest

from prepayment_split.engine import (
    DirectConverter,
    InMemoryPriceOracle,
    InvalidPrice,
    MissingPriceOracle,
    UsdBridgedConverter,
)
from prepayment_split.schemas import NATIVE, NULL_ADDRESS, PriceQuote

E = 10**18
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestPriceQuote:
    """Test fixed-point normalization of oracle answers."""

    def test_normalize_from_8_decimals(self):
        quote = PriceQuote(price=1000 * 10**8, decimals=8, timestamp=NOW)
        assert quote.normalized() == 1000 * E

    def test_normalize_from_more_decimals_truncates(self):
        quote = PriceQuote(price=123_456_789, decimals=20, timestamp=NOW)
        assert quote.normalized() == 1_234_567

    def test_publish_increments_round(self):
        oracle = InMemoryPriceOracle()
        first = oracle.publish("eth-usd", 1000 * 10**8)
        second = oracle.publish("eth-usd", 1100 * 10**8)

        assert (first.round_id, second.round_id) == (1, 2)
        assert oracle.latest_price("eth-usd").price == 1100 * 10**8

    def test_unknown_feed_raises_key_error(self):
        with pytest.raises(KeyError):
            InMemoryPriceOracle().latest_price("nope")


class TestDirectConverter:
    """Test direct mode (unit of account = native currency)."""

    def test_native_converts_one_to_one_without_feed(self, oracle):
        converter = DirectConverter(oracle)
        assert converter.to_unit_of_account(NATIVE, 7 * E) == 7 * E
        assert converter.from_unit_of_account(NATIVE, 7 * E) == 7 * E
        assert converter.price_of(NATIVE) == E

    def test_token_uses_its_feed(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("token-eth", 5 * 10**7)  # 0.5 native per token
        converter = DirectConverter(oracle, price_feeds={"token": "token-eth"})

        assert converter.to_unit_of_account("token", 10 * E) == 5 * E
        assert converter.from_unit_of_account("token", 5 * E) == 10 * E

    def test_token_without_feed(self, oracle):
        converter = DirectConverter(oracle)
        with pytest.raises(MissingPriceOracle) as exc_info:
            converter.to_unit_of_account("token", E)
        assert exc_info.value.asset == "token"

    def test_native_takes_no_feed(self, oracle):
        with pytest.raises(ValueError):
            DirectConverter(oracle).set_price_feed(NATIVE, "eth-usd")


class TestUsdBridgedConverter:
    """Test USD-bridged mode."""

    def test_native_priced_in_usd(self, oracle):
        converter = UsdBridgedConverter(oracle, native_feed="eth-usd")
        assert converter.to_unit_of_account(NATIVE, 50 * E) == 50_000 * E
        assert converter.from_unit_of_account(NATIVE, 30_000 * E) == 30 * E

    def test_token_priced_in_usd(self, oracle):
        converter = UsdBridgedConverter(oracle, native_feed="eth-usd", price_feeds={"token": "token-usd"})
        assert converter.to_unit_of_account("token", 130 * E) == 130_000 * E

    def test_from_unit_rounds_down(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", 3 * 10**8)
        converter = UsdBridgedConverter(oracle, native_feed="eth-usd")
        assert converter.from_unit_of_account(NATIVE, 10) == 3

    def test_feed_decimals_do_not_change_result(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd-8", 1000 * 10**8, decimals=8)
        oracle.publish("eth-usd-18", 1000 * E, decimals=18)

        eight = UsdBridgedConverter(oracle, native_feed="eth-usd-8")
        eighteen = UsdBridgedConverter(oracle, native_feed="eth-usd-18")
        assert eight.to_unit_of_account(NATIVE, 3 * E) == eighteen.to_unit_of_account(NATIVE, 3 * E)

    def test_missing_native_feed(self, oracle):
        converter = UsdBridgedConverter(oracle)
        with pytest.raises(MissingPriceOracle) as exc_info:
            converter.to_unit_of_account(NATIVE, E)
        assert exc_info.value.asset == NATIVE

    def test_feed_unknown_to_oracle(self, oracle):
        converter = UsdBridgedConverter(oracle, native_feed="btc-usd")
        with pytest.raises(MissingPriceOracle):
            converter.price_of(NATIVE)

    def test_set_price_feed_native_routes_to_native_feed(self, oracle):
        converter = UsdBridgedConverter(oracle)
        assert converter.set_price_feed(NATIVE, "eth-usd") is None
        assert converter.native_feed == "eth-usd"
        assert converter.price_feed(NATIVE) == "eth-usd"

    def test_unbind_with_null_address(self, oracle):
        converter = UsdBridgedConverter(oracle, native_feed="eth-usd", price_feeds={"token": "token-usd"})
        assert converter.set_price_feed("token", NULL_ADDRESS) == "token-usd"
        assert converter.price_feed("token") is None
        with pytest.raises(MissingPriceOracle):
            converter.require_feed("token")


class TestPriceHardening:
    """Test rejection of unusable oracle answers."""

    def test_zero_price_rejected(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", 0)
        with pytest.raises(InvalidPrice):
            UsdBridgedConverter(oracle, native_feed="eth-usd").from_unit_of_account(NATIVE, E)

    def test_negative_price_rejected(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", -1)
        with pytest.raises(InvalidPrice):
            UsdBridgedConverter(oracle, native_feed="eth-usd").to_unit_of_account(NATIVE, E)

    def test_stale_quote_rejected_when_age_limit_set(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", 1000 * 10**8, timestamp=NOW)
        converter = UsdBridgedConverter(
            oracle,
            native_feed="eth-usd",
            max_price_age=timedelta(hours=1),
            clock=lambda: NOW + timedelta(hours=2),
        )
        with pytest.raises(InvalidPrice):
            converter.to_unit_of_account(NATIVE, E)

    def test_any_age_accepted_by_default(self):
        oracle = InMemoryPriceOracle()
        oracle.publish("eth-usd", 1000 * 10**8, timestamp=NOW - timedelta(days=365))
        converter = UsdBridgedConverter(oracle, native_feed="eth-usd")
        assert converter.to_unit_of_account(NATIVE, E) == 1000 * E
