"""Distribution results.

Every distribution call returns a DistributionResult describing exactly where
the incoming balance went. The numbers satisfy the conservation identity

    incoming == fee + investor_payout + sum(recipient payouts) + retained

where `retained` is the per-recipient floor-division dust left in the engine.
"""

from enum import Enum
from typing import List, Literal
from pydantic import Field

from .base import DomainModel, Amount


Phase = Literal["recoupment", "residual"]


class PropagationOutcome(str, Enum):
    """What happened when a payout was offered to a payee for propagation."""

    NOT_CONTRACT = "not_contract"          # plain account, never propagated into
    AUTO_DISTRIBUTES = "auto_distributes"  # payee self-distributes on receipt
    UNSUPPORTED = "unsupported"            # payee could not answer a probe
    NOT_AUTHORIZED = "not_authorized"      # this engine is not a distributor there
    PROPAGATED = "propagated"
    FAILED = "failed"                      # downstream distribution raised; undone


class RecipientPayout(DomainModel):
    address: str
    percentage: int = Field(ge=0)
    amount: Amount


class PropagationRecord(DomainModel):
    payee: str
    outcome: PropagationOutcome


class DistributionResult(DomainModel):
    """Breakdown of one distribution call.

    Example (native, no fee, investor owed 30 more, residual 5%):
        incoming=50, fee=0
        investor_payout=31 (30 recouped + 5% of the 20 excess)
        recipient_payouts=[15.2 to A (80%), 3.8 to B (20%)]
        phase_before="recoupment", phase_after="residual"
    """

    engine: str
    asset: str
    incoming: Amount = Field(description="Balance read at call time, before fee")
    fee: Amount = 0
    fee_recipient: str = ""
    investor: str
    investor_payout: Amount = 0
    amount_to_distribute: Amount = 0
    recipient_payouts: List[RecipientPayout] = Field(default_factory=list)
    phase_before: Phase
    phase_after: Phase
    amount_received_after: Amount = Field(
        default=0,
        description="Investor accumulator after the call, in the unit of account"
    )
    propagation: List[PropagationRecord] = Field(default_factory=list)

    @property
    def recipients_total(self) -> int:
        return sum(p.amount for p in self.recipient_payouts)

    @property
    def retained(self) -> int:
        """Rounding dust kept by the engine for the next call."""
        return self.incoming - self.fee - self.investor_payout - self.recipients_total
