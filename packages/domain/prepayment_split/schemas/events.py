"""Notifications emitted by engines.

Notifications are immutable records of what an engine did. They are appended
to the host ledger's log and discarded together with the rest of the state
when a call is rolled back, so the log only ever shows effects of calls that
completed.

Nothing inside the engine consumes them; they exist for observers (UIs,
indexers, tests).
"""

from typing import List, Literal, Optional
from pydantic import Field

from .base import DomainModel


# =============================================================================
# Notification Base Class
# =============================================================================

class EngineNotification(DomainModel):
    """Base class for all engine notifications."""

    kind: str = Field(
        description="Discriminator naming the notification type"
    )

    engine: str = Field(
        description="Address of the engine that emitted the notification"
    )


# =============================================================================
# Concrete Notifications
# =============================================================================

class RecipientsChanged(EngineNotification):
    """The recipient set was replaced."""

    kind: Literal["recipients_changed"] = "recipients_changed"

    recipients: List[str] = Field(default_factory=list)
    percentages: List[int] = Field(default_factory=list)


class AssetDistributed(EngineNotification):
    """An asset balance was run through the waterfall."""

    kind: Literal["asset_distributed"] = "asset_distributed"

    asset: str
    amount: int = Field(ge=0, description="Balance distributed, before fee")


class DistributorChanged(EngineNotification):
    """A distributor role was granted or revoked."""

    kind: Literal["distributor_changed"] = "distributor_changed"

    distributor: str
    is_distributor: bool


class ControllerChanged(EngineNotification):
    """The controller role moved to a new identity."""

    kind: Literal["controller_changed"] = "controller_changed"

    old_controller: Optional[str] = None
    new_controller: str


class PriceFeedChanged(EngineNotification):
    """A conversion feed was bound, rebound or unbound (new_feed=None)."""

    kind: Literal["price_feed_changed"] = "price_feed_changed"

    asset: str
    old_feed: Optional[str] = None
    new_feed: Optional[str] = None


class AutoDistributionChanged(EngineNotification):
    """Auto native distribution was switched on or off."""

    kind: Literal["auto_distribution_changed"] = "auto_distribution_changed"

    enabled: bool


class MinAutoDistributionAmountChanged(EngineNotification):
    kind: Literal["min_auto_distribution_amount_changed"] = "min_auto_distribution_amount_changed"

    amount: int = Field(ge=0)


class OwnershipTransferred(EngineNotification):
    kind: Literal["ownership_transferred"] = "ownership_transferred"

    previous_owner: str
    new_owner: str
