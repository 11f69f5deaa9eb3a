"""Engine settings and investor terms.

EngineSettings is the structural configuration of one engine instance (roles,
auto-distribution, price feeds). InvestorTerms describes the single
privileged claim that is recouped before recipients are paid.

Both are consumed once by WaterfallEngine.initialize() and are immutable in
effect afterwards; later changes go through the engine's gated setters.
"""

from typing import List, Optional
from pydantic import ConfigDict, Field, model_validator

from .base import (
    DomainModel,
    Address,
    Amount,
    AssetId,
    FeedId,
    Rate,
    Scale,
    PERCENTAGE_SCALE,
)


# =============================================================================
# Engine Settings
# =============================================================================

class EngineSettings(DomainModel):
    """Structural configuration for a revenue-split engine.

    Roles:
        - owner: manages structure (distributors, controller, feeds, auto-distribution)
        - controller: may replace the recipient set. A null controller together
          with immutable_controller=True freezes the recipient set forever.
        - distributors: identities allowed to trigger a distribution

    Example:
        EngineSettings(
            owner="treasury",
            controller="treasury",
            distributors=["treasury"],
            auto_native_distribution=True,
            min_auto_distribution_amount=10**18,
            supported_assets=["usdc"],
            asset_price_feeds=["usdc-usd"],
            native_price_feed="eth-usd",
        )
    """

    owner: Address = Field(
        description="Owner identity (structural configuration rights)"
    )

    controller: Optional[str] = Field(
        default=None,
        description="Controller identity allowed to replace recipients (None = no controller)"
    )

    distributors: List[Address] = Field(
        default_factory=list,
        description="Identities allowed to trigger distributions"
    )

    immutable_controller: bool = Field(
        default=False,
        description="If True, the controller can never be changed"
    )

    auto_native_distribution: bool = Field(
        default=True,
        description="Distribute the native balance automatically when native value is received"
    )

    min_auto_distribution_amount: Amount = Field(
        default=0,
        description="Native balance required before an automatic distribution is triggered"
    )

    supported_assets: List[AssetId] = Field(
        default_factory=list,
        description="Token assets with a price feed bound at initialization"
    )

    asset_price_feeds: List[FeedId] = Field(
        default_factory=list,
        description="Feed ids, parallel to supported_assets"
    )

    native_price_feed: Optional[FeedId] = Field(
        default=None,
        description="Native-currency feed (USD-bridged engines only)"
    )

    percentage_scale: Scale = Field(
        default=PERCENTAGE_SCALE,
        description="Denominator for 100% used by recipients, fee and interest rates"
    )

    @model_validator(mode='after')
    def validate_price_feeds(self):
        """Supported assets and their feeds must line up one to one."""
        if len(self.supported_assets) != len(self.asset_price_feeds):
            raise ValueError(
                f"supported_assets ({len(self.supported_assets)}) and "
                f"asset_price_feeds ({len(self.asset_price_feeds)}) must have the same length"
            )
        return self

    def price_feed_bindings(self) -> dict:
        return dict(zip(self.supported_assets, self.asset_price_feeds))


# =============================================================================
# Investor Terms
# =============================================================================

class InvestorTerms(DomainModel):
    """The investor's prepayment claim.

    The investor advanced `invested_amount` (in the unit of account) and is
    owed that principal plus `interest_rate` on it before any recipient is
    paid. After the claim is satisfied the investor keeps receiving
    `residual_interest_rate` of every further distribution.

    Example:
        Invested 100,000 USD at 30% interest (3_000_000 / 10_000_000):
            amount_to_receive = 100,000 + 30,000 = 130,000 USD
        Residual rate 5% (500_000): after recoupment the investor receives
        5% of every incoming payment as a standing royalty.

    Terms are fixed once the engine is initialized.
    """

    model_config = ConfigDict(frozen=True)

    investor: str = Field(
        description="Investor payee identity"
    )

    invested_amount: Amount = Field(
        description="Principal advanced, in the unit of account"
    )

    interest_rate: Rate = Field(
        description="Interest on the principal, in units of 1/percentage_scale"
    )

    residual_interest_rate: Rate = Field(
        description="Royalty on every distribution once the claim is satisfied"
    )

    percentage_scale: Scale = Field(
        default=PERCENTAGE_SCALE,
        description="Denominator used by interest_rate and residual_interest_rate"
    )

    @property
    def amount_to_receive(self) -> int:
        """Principal plus interest, in the unit of account."""
        return self.invested_amount + self.invested_amount * self.interest_rate // self.percentage_scale
