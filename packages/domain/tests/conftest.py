"""Shared fixtures: a fresh ledger, an oracle quoting 1000 USD, engine builders."""

import pytest

from prepayment_split.engine import (
    DirectConverter,
    InMemoryPriceOracle,
    Ledger,
    UsdBridgedConverter,
    WaterfallEngine,
)
from prepayment_split.schemas import EngineSettings

# One whole unit of an 18-decimal asset.
E = 10**18


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def oracle():
    oracle = InMemoryPriceOracle()
    oracle.publish("eth-usd", 1000 * 10**8)
    oracle.publish("token-usd", 1000 * 10**8)
    return oracle


@pytest.fixture
def make_engine(ledger, oracle):
    """Build and initialize an engine.

    Defaults describe the reference deal: USD-bridged at 1000 USD per native
    unit, 100,000 USD invested at 30% (target 130,000 USD), 5% residual,
    recipients label 80% / artist 20%, owner is the only distributor.
    """

    def _make(
        address="split",
        *,
        usd=True,
        investor="investor",
        invested_amount=100_000 * E,
        interest_rate=3_000_000,
        residual_interest_rate=500_000,
        recipients=("label", "artist"),
        percentages=(8_000_000, 2_000_000),
        owner="owner",
        controller="owner",
        distributors=("owner",),
        immutable_controller=False,
        auto=True,
        min_auto=0,
        supported_assets=(),
        asset_price_feeds=(),
        native_feed="eth-usd",
        percentage_scale=10_000_000,
        fee_policy=None,
        target_ledger=None,
    ):
        host = target_ledger or ledger
        converter = UsdBridgedConverter(oracle) if usd else DirectConverter(oracle)
        settings = EngineSettings(
            owner=owner,
            controller=controller,
            distributors=list(distributors),
            immutable_controller=immutable_controller,
            auto_native_distribution=auto,
            min_auto_distribution_amount=min_auto,
            supported_assets=list(supported_assets),
            asset_price_feeds=list(asset_price_feeds),
            native_price_feed=native_feed if usd else None,
            percentage_scale=percentage_scale,
        )
        engine = WaterfallEngine(host, address, converter, fee_policy=fee_policy)
        engine.initialize(
            settings,
            investor=investor,
            invested_amount=invested_amount,
            interest_rate=interest_rate,
            residual_interest_rate=residual_interest_rate,
            recipients=list(recipients),
            percentages=list(percentages),
        )
        return engine

    return _make


@pytest.fixture
def passthrough(make_engine):
    """Build a fulfilled engine that forwards everything to its recipients.

    Nothing is owed to its investor and the residual rate is 0, so every
    distribution is pure apportionment.
    """

    def _make(address, recipients, percentages=None, **kwargs):
        if percentages is None:
            percentages = [10_000_000 // len(recipients)] * len(recipients)
        kwargs.setdefault("usd", False)
        return make_engine(
            address,
            investor=kwargs.pop("investor", f"{address}_investor"),
            invested_amount=0,
            interest_rate=0,
            residual_interest_rate=0,
            recipients=recipients,
            percentages=percentages,
            **kwargs,
        )

    return _make
