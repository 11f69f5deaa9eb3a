"""Revenue-split domain schemas.

This package contains all Pydantic models for the revenue-split domain layer:
- Base types, constants and conventions
- Engine settings and investor terms
- Recipients
- Oracle price quotes
- Notifications emitted by engines
- Distribution results
- Deposit schedules for projections

Usage:
    from prepayment_split.schemas import (
        EngineSettings, InvestorTerms, Recipient,
        PriceQuote, DistributionResult, DepositSchedule,
    )
"""

# Base types
from .base import (
    DomainModel,
    Amount,
    Rate,
    Scale,
    Address,
    AssetId,
    FeedId,
    PERCENTAGE_SCALE,
    PRICE_DECIMALS,
    NULL_ADDRESS,
    NATIVE,
    is_null,
)

# Settings
from .settings import (
    EngineSettings,
    InvestorTerms,
)

# Recipients
from .recipients import Recipient

# Oracle
from .oracle import PriceQuote

# Notifications
from .events import (
    EngineNotification,
    RecipientsChanged,
    AssetDistributed,
    DistributorChanged,
    ControllerChanged,
    PriceFeedChanged,
    AutoDistributionChanged,
    MinAutoDistributionAmountChanged,
    OwnershipTransferred,
)

# Results
from .results import (
    Phase,
    PropagationOutcome,
    RecipientPayout,
    PropagationRecord,
    DistributionResult,
)

# Schedules
from .schedule import (
    Deposit,
    DepositSchedule,
)

__all__ = [
    # Base types
    "DomainModel",
    "Amount",
    "Rate",
    "Scale",
    "Address",
    "AssetId",
    "FeedId",
    "PERCENTAGE_SCALE",
    "PRICE_DECIMALS",
    "NULL_ADDRESS",
    "NATIVE",
    "is_null",
    # Settings
    "EngineSettings",
    "InvestorTerms",
    # Recipients
    "Recipient",
    # Oracle
    "PriceQuote",
    # Notifications
    "EngineNotification",
    "RecipientsChanged",
    "AssetDistributed",
    "DistributorChanged",
    "ControllerChanged",
    "PriceFeedChanged",
    "AutoDistributionChanged",
    "MinAutoDistributionAmountChanged",
    "OwnershipTransferred",
    # Results
    "Phase",
    "PropagationOutcome",
    "RecipientPayout",
    "PropagationRecord",
    "DistributionResult",
    # Schedules
    "Deposit",
    "DepositSchedule",
]
