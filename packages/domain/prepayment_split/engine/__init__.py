"""Revenue-split engine runtime.

Components, leaf-first:
- RecipientRegistry: weighted recipient set, replaced atomically
- CurrencyConverter: DirectConverter / UsdBridgedConverter over a PriceOracle
- WaterfallEngine: fee, investor recoupment, residual phase, recipient split
- RecursivePropagator: pushes payouts through downstream engines

Supporting collaborators:
- Ledger: host balances, deployed accounts, notifications, savepoints
- AccessControl: owner / controller / distributor roles
- FeePolicy: platform fee rate and wallet

Usage:
    from prepayment_split.engine import (
        Ledger, InMemoryPriceOracle, UsdBridgedConverter, WaterfallEngine,
    )

    ledger = Ledger()
    oracle = InMemoryPriceOracle()
    oracle.publish("eth-usd", 1000 * 10**8)
    engine = WaterfallEngine(ledger, "split_1", UsdBridgedConverter(oracle))
"""

from .errors import (
    RevenueShareError,
    OnlyOwner,
    OnlyController,
    OnlyDistributor,
    DistributorAlreadyConfigured,
    ControllerAlreadyConfigured,
    ImmutableController,
    AlreadyInitialized,
    NotInitialized,
    InvestorAddressZero,
    InvalidFeePercentage,
    MissingPriceOracle,
    InvalidPrice,
    InconsistentDataLength,
    NullAddressRecipient,
    DuplicateRecipient,
    InvalidPercentage,
    TransferFailed,
    CallBudgetExhausted,
)
from .access import AccessControl
from .ledger import Account, Ledger, DEFAULT_MAX_CALL_DEPTH, EXTERNAL
from .oracle import PriceOracle, InMemoryPriceOracle
from .converter import CurrencyConverter, DirectConverter, UsdBridgedConverter
from .fees import FeePolicy
from .registry import RecipientRegistry
from .propagation import ProbeStatus, ProbeResult, probe, RecursivePropagator
from .waterfall import WaterfallEngine

__all__ = [
    # Errors
    "RevenueShareError",
    "OnlyOwner",
    "OnlyController",
    "OnlyDistributor",
    "DistributorAlreadyConfigured",
    "ControllerAlreadyConfigured",
    "ImmutableController",
    "AlreadyInitialized",
    "NotInitialized",
    "InvestorAddressZero",
    "InvalidFeePercentage",
    "MissingPriceOracle",
    "InvalidPrice",
    "InconsistentDataLength",
    "NullAddressRecipient",
    "DuplicateRecipient",
    "InvalidPercentage",
    "TransferFailed",
    "CallBudgetExhausted",
    # Components
    "AccessControl",
    "Account",
    "Ledger",
    "DEFAULT_MAX_CALL_DEPTH",
    "EXTERNAL",
    "PriceOracle",
    "InMemoryPriceOracle",
    "CurrencyConverter",
    "DirectConverter",
    "UsdBridgedConverter",
    "FeePolicy",
    "RecipientRegistry",
    "ProbeStatus",
    "ProbeResult",
    "probe",
    "RecursivePropagator",
    "WaterfallEngine",
]
