"""Deposit schedules for projecting payouts.

A DepositSchedule is an ordered list of incoming payments. The
DistributionBlock replays it against an engine to show who gets paid what,
deposit by deposit.
"""

from typing import List, Optional
from pydantic import Field, field_validator

from .base import DomainModel, Amount, AssetId, NATIVE


class Deposit(DomainModel):
    """One incoming payment.

    Example:
        Deposit(amount=50 * 10**18, label="Q1 streaming royalties")
        Deposit(asset="usdc", amount=1_000 * 10**18)
    """

    asset: AssetId = Field(
        default=NATIVE,
        description="Asset being paid in"
    )

    amount: Amount = Field(
        description="Amount paid in, in the asset's smallest unit"
    )

    label: Optional[str] = Field(
        default=None,
        description="Human-readable label for reports"
    )


class DepositSchedule(DomainModel):
    """Ordered deposits replayed one distribution call each."""

    deposits: List[Deposit] = Field(
        description="Deposits in the order they arrive"
    )

    @field_validator('deposits')
    @classmethod
    def require_deposits(cls, v: List[Deposit]) -> List[Deposit]:
        if not v:
            raise ValueError("DepositSchedule needs at least one deposit")
        return v

    @property
    def total_by_asset(self) -> dict:
        totals: dict = {}
        for deposit in self.deposits:
            totals[deposit.asset] = totals.get(deposit.asset, 0) + deposit.amount
        return totals
