"""Typed errors surfaced at the engine boundary.

Every failure here aborts the whole call; the host ledger rolls back all
balances, notifications and engine state touched by it.
"""


class RevenueShareError(Exception):
    """Base class for all engine errors."""
    pass


# =============================================================================
# Access control
# =============================================================================

class OnlyOwner(RevenueShareError):
    """Caller is not the owner."""
    pass


class OnlyController(RevenueShareError):
    """Caller is not the controller."""
    pass


class OnlyDistributor(RevenueShareError):
    """Caller is not a registered distributor."""
    pass


class DistributorAlreadyConfigured(RevenueShareError):
    """Distributor flag already has the requested value."""
    pass


class ControllerAlreadyConfigured(RevenueShareError):
    """New controller equals the current one."""
    pass


class ImmutableController(RevenueShareError):
    """Controller is immutable or was never set."""
    pass


# =============================================================================
# Configuration
# =============================================================================

class AlreadyInitialized(RevenueShareError):
    pass


class NotInitialized(RevenueShareError):
    pass


class InvestorAddressZero(RevenueShareError):
    pass


class InvalidFeePercentage(RevenueShareError):
    pass


class MissingPriceOracle(RevenueShareError):
    """No price feed is bound for an asset that needs conversion."""

    def __init__(self, asset: str):
        super().__init__(f"No price feed bound for asset '{asset}'")
        self.asset = asset


class InvalidPrice(RevenueShareError):
    """Oracle answer is non-positive or older than the converter accepts."""
    pass


# =============================================================================
# Recipients
# =============================================================================

class InconsistentDataLength(RevenueShareError):
    pass


class NullAddressRecipient(RevenueShareError):
    pass


class DuplicateRecipient(RevenueShareError):
    def __init__(self, address: str):
        super().__init__(f"Recipient '{address}' appears more than once")
        self.address = address


class InvalidPercentage(RevenueShareError):
    pass


# =============================================================================
# Host
# =============================================================================

class TransferFailed(RevenueShareError):
    pass


class CallBudgetExhausted(RevenueShareError):
    """Nested distribution calls went deeper than the host allows.

    Never swallowed by propagation: it aborts the outermost call.
    """
    pass
