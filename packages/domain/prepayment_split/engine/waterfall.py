"""Prepayment waterfall engine.

An engine holds incoming value and splits it between a single investor claim
and a weighted set of recipients:

1. Platform fee, taken off the top of every distribution
2. Recoupment: while the investor is owed principal + interest, incoming value
   goes to the investor. The call that completes the claim also pays the
   investor the residual rate on the excess.
3. Residual: once the claim is satisfied (permanently), the investor receives
   the residual rate of every distribution
4. Whatever remains is apportioned across recipients by weight, in insertion
   order, rounding each share down. The dust stays in the engine and is part
   of the next distribution.

After every investor or recipient payout the RecursivePropagator may trigger
the payee's own distribution when the payee is another engine.

The claim is denominated in the converter's unit of account, which can differ
from the asset being distributed; the converter (direct or USD-bridged) is
injected, so one engine class covers both variants.
"""

import logging
from typing import List, Optional, Sequence

from ..schemas.base import NATIVE, PERCENTAGE_SCALE, is_null
from ..schemas.events import (
    RecipientsChanged,
    AssetDistributed,
    DistributorChanged,
    ControllerChanged,
    PriceFeedChanged,
    AutoDistributionChanged,
    MinAutoDistributionAmountChanged,
    OwnershipTransferred,
)
from ..schemas.recipients import Recipient
from ..schemas.results import (
    Phase,
    DistributionResult,
    PropagationRecord,
    RecipientPayout,
)
from ..schemas.settings import EngineSettings, InvestorTerms
from .access import AccessControl
from .converter import CurrencyConverter, UsdBridgedConverter
from .errors import (
    AlreadyInitialized,
    NotInitialized,
    InvestorAddressZero,
    InvalidPercentage,
    InvalidFeePercentage,
)
from .fees import FeePolicy
from .ledger import Account, Ledger
from .propagation import RecursivePropagator
from .registry import RecipientRegistry

logger = logging.getLogger(__name__)


class WaterfallEngine(Account):
    """Revenue-split engine deployed at `address` on `ledger`.

    Args:
        ledger: Host holding balances and deployed code
        address: Where this engine lives (and holds its balances)
        converter: DirectConverter or UsdBridgedConverter
        fee_policy: Optional platform fee collaborator
        access: Optional pre-built access control component. If it already
            has an owner, initialize keeps its roles and ignores the role
            fields of EngineSettings.

    Example:
        engine = WaterfallEngine(ledger, "split_1", UsdBridgedConverter(oracle))
        engine.initialize(
            EngineSettings(owner="owner", controller="owner", distributors=["owner"],
                           native_price_feed="eth-usd"),
            investor="investor",
            invested_amount=100_000 * 10**18,   # USD
            interest_rate=3_000_000,            # 30%
            residual_interest_rate=500_000,     # 5%
            recipients=["label", "artist"],
            percentages=[8_000_000, 2_000_000],
        )
        ledger.send_native("split_1", 50 * 10**18)   # auto-distributes
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        converter: CurrencyConverter,
        fee_policy: Optional[FeePolicy] = None,
        access: Optional[AccessControl] = None,
    ):
        self.ledger = ledger
        self.address = address
        self.converter = converter
        self.fee_policy = fee_policy
        self.access = access or AccessControl()

        self.scale = PERCENTAGE_SCALE
        self.registry = RecipientRegistry(self.scale)
        self.terms: Optional[InvestorTerms] = None
        self.amount_received = 0
        self.platform_fee = 0
        self._auto_native_distribution = False
        self.min_auto_distribution_amount = 0
        self._initialized = False

        self._propagator = RecursivePropagator(ledger, address)
        ledger.deploy(address, self)

    # =========================================================================
    # Initialization
    # =========================================================================

    def initialize(
        self,
        settings: EngineSettings,
        investor: str,
        invested_amount: int,
        interest_rate: int,
        residual_interest_rate: int,
        recipients: Sequence[str],
        percentages: Sequence[int],
        price_feeds: Optional[dict] = None,
    ) -> None:
        """Configure the engine. Can only run once.

        Raises:
            AlreadyInitialized: If called a second time
            InvestorAddressZero: If the investor is the null identity
            InvalidPercentage: If the residual rate exceeds 100% or the
                recipient weights do not sum to 100%
            InvalidFeePercentage: If the fee policy uses another scale
            ValueError: If a native feed is given to a direct-mode engine
            (plus every RecipientRegistry.set_recipients error)
        """
        if self._initialized:
            raise AlreadyInitialized(f"Engine '{self.address}' is already initialized")
        if is_null(investor):
            raise InvestorAddressZero("Investor is the null address")

        scale = settings.percentage_scale
        if residual_interest_rate > scale:
            raise InvalidPercentage(
                f"Residual interest rate {residual_interest_rate} exceeds {scale}"
            )
        platform_fee = 0
        if self.fee_policy is not None:
            if self.fee_policy.scale != scale:
                raise InvalidFeePercentage(
                    f"Fee policy scale {self.fee_policy.scale} differs from engine scale {scale}"
                )
            platform_fee = self.fee_policy.platform_fee

        feeds = settings.price_feed_bindings()
        feeds.update(price_feeds or {})
        if settings.native_price_feed:
            feeds[NATIVE] = settings.native_price_feed
        if NATIVE in feeds and not isinstance(self.converter, UsdBridgedConverter):
            raise ValueError("A native price feed is only meaningful for USD-bridged engines")

        terms = InvestorTerms(
            investor=investor,
            invested_amount=invested_amount,
            interest_rate=interest_rate,
            residual_interest_rate=residual_interest_rate,
            percentage_scale=scale,
        )
        registry = RecipientRegistry(scale)
        committed = registry.set_recipients(recipients, percentages)

        for asset, feed in feeds.items():
            self.converter.set_price_feed(asset, feed)
        if self.access.owner is None:
            self.access.setup(
                owner=settings.owner,
                controller=settings.controller,
                distributors=settings.distributors,
                immutable_controller=settings.immutable_controller,
            )
        self.scale = scale
        self.terms = terms
        self.registry = registry
        self.platform_fee = platform_fee
        self._auto_native_distribution = settings.auto_native_distribution
        self.min_auto_distribution_amount = settings.min_auto_distribution_amount
        self._initialized = True

        self._emit_recipients(committed)
        logger.info(
            f"Engine {self.address} initialized: investor={investor}, "
            f"amount_to_receive={terms.amount_to_receive} {self.converter.unit_of_account}, "
            f"recipients={len(committed)}, platform_fee={platform_fee}/{scale}"
        )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized(f"Engine '{self.address}' is not initialized")

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def investor(self) -> Optional[str]:
        return self.terms.investor if self.terms else None

    @property
    def amount_to_receive(self) -> int:
        return self.terms.amount_to_receive if self.terms else 0

    @property
    def is_fulfilled(self) -> bool:
        return self._initialized and self.amount_received >= self.amount_to_receive

    @property
    def phase(self) -> Phase:
        return "residual" if self.is_fulfilled else "recoupment"

    @property
    def auto_native_distribution(self) -> bool:
        return self._auto_native_distribution

    @property
    def owner(self) -> Optional[str]:
        return self.access.owner

    @property
    def controller(self) -> Optional[str]:
        return self.access.controller

    def is_distributor(self, address: str) -> bool:
        return self.access.is_distributor(address)

    def recipients(self) -> List[str]:
        return self.registry.addresses()

    def recipient_percentage(self, address: str) -> int:
        return self.registry.percentage_of(address)

    def number_of_recipients(self) -> int:
        return len(self.registry)

    def balance(self, asset: str = NATIVE) -> int:
        return self.ledger.balance_of(self.address, asset)

    # =========================================================================
    # Host hooks
    # =========================================================================

    def receive_native(self, sender: str, amount: int) -> None:
        """Runs when native value arrives; auto-distributes above the threshold."""
        if not self._initialized or not self._auto_native_distribution:
            return
        if self.balance(NATIVE) >= self.min_auto_distribution_amount:
            self._distribute(NATIVE)

    def checkpoint(self):
        return self.amount_received

    def restore(self, state) -> None:
        self.amount_received = state

    # =========================================================================
    # Distribution entry points
    # =========================================================================

    def distribute_native(self, caller: str) -> DistributionResult:
        """Distribute the whole native balance. Distributor only."""
        self._require_initialized()
        self.access.require_distributor(caller)
        with self.ledger.atomic():
            return self._distribute(NATIVE)

    def distribute_asset(self, asset: str, caller: str) -> Optional[DistributionResult]:
        """Distribute the whole balance of `asset`. Distributor only.

        A zero token balance is a no-op and returns None.

        Raises:
            MissingPriceOracle: If no feed is bound for the token, whatever
                the phase
        """
        if asset == NATIVE:
            return self.distribute_native(caller)
        self._require_initialized()
        self.access.require_distributor(caller)
        if self.balance(asset) == 0:
            return None
        self.converter.require_feed(asset)
        with self.ledger.atomic():
            return self._distribute(asset)

    # =========================================================================
    # Waterfall
    # =========================================================================

    def _distribute(self, asset: str) -> DistributionResult:
        with self.ledger.call_frame():
            incoming = self.balance(asset)
            phase_before = self.phase
            propagation: List[PropagationRecord] = []

            # 1. Fee off the top
            fee = incoming * self.platform_fee // self.scale
            fee_recipient = ""
            if fee > 0:
                fee_recipient = self.fee_policy.platform_wallet
                self.ledger.transfer(self.address, fee_recipient, asset, fee)
            value = incoming - fee

            # 2/3. Investor
            investor = self.terms.investor
            residual_rate = self.terms.residual_interest_rate
            apportion = True
            if self.is_fulfilled:
                investor_payout = residual_rate * value // self.scale
            else:
                target = self.terms.amount_to_receive
                remaining = target - self.amount_received
                remaining_in_asset = self.converter.from_unit_of_account(asset, remaining)
                if value <= remaining_in_asset:
                    investor_payout = value
                    apportion = False
                    received = self.amount_received + self.converter.to_unit_of_account(asset, value)
                    self.amount_received = min(received, target)
                else:
                    bonus = (value - remaining_in_asset) * residual_rate // self.scale
                    investor_payout = remaining_in_asset + bonus
                    self.amount_received = target
            amount_to_distribute = value - investor_payout

            self.ledger.transfer(self.address, investor, asset, investor_payout)
            propagation.append(self._propagate(investor, asset))

            # 4. Recipients
            payouts: List[RecipientPayout] = []
            if apportion:
                for recipient in self.registry.recipients():
                    share = amount_to_distribute * recipient.percentage // self.scale
                    self.ledger.transfer(self.address, recipient.address, asset, share)
                    payouts.append(RecipientPayout(
                        address=recipient.address,
                        percentage=recipient.percentage,
                        amount=share,
                    ))
                    propagation.append(self._propagate(recipient.address, asset))

            self.ledger.emit(AssetDistributed(engine=self.address, asset=asset, amount=incoming))

            result = DistributionResult(
                engine=self.address,
                asset=asset,
                incoming=incoming,
                fee=fee,
                fee_recipient=fee_recipient or "",
                investor=investor,
                investor_payout=investor_payout,
                amount_to_distribute=amount_to_distribute if apportion else 0,
                recipient_payouts=payouts,
                phase_before=phase_before,
                phase_after=self.phase,
                amount_received_after=self.amount_received,
                propagation=propagation,
            )
            logger.info(
                f"Engine {self.address} distributed {incoming} {asset}: fee={fee}, "
                f"investor={investor_payout} ({phase_before}->{result.phase_after}), "
                f"recipients={result.recipients_total}, retained={result.retained}"
            )
            return result

    def _propagate(self, payee: str, asset: str) -> PropagationRecord:
        outcome = self._propagator.propagate(payee, asset)
        return PropagationRecord(payee=payee, outcome=outcome)

    # =========================================================================
    # Controller-gated
    # =========================================================================

    def set_recipients(
        self,
        caller: str,
        addresses: Sequence[str],
        percentages: Sequence[int],
    ) -> List[Recipient]:
        """Replace the recipient set atomically. Controller only."""
        self._require_initialized()
        self.access.require_controller(caller)
        with self.ledger.atomic():
            committed = self.registry.set_recipients(addresses, percentages)
            self._emit_recipients(committed)
        logger.info(f"Engine {self.address} recipients set: {self.registry.as_dict()}")
        return committed

    def _emit_recipients(self, committed: List[Recipient]) -> None:
        self.ledger.emit(RecipientsChanged(
            engine=self.address,
            recipients=[r.address for r in committed],
            percentages=[r.percentage for r in committed],
        ))

    # =========================================================================
    # Owner-gated
    # =========================================================================

    def set_distributor(self, caller: str, distributor: str, is_distributor: bool) -> None:
        self._require_initialized()
        self.access.set_distributor(caller, distributor, is_distributor)
        self.ledger.emit(DistributorChanged(
            engine=self.address, distributor=distributor, is_distributor=is_distributor,
        ))
        logger.info(f"Engine {self.address} distributor {distributor} -> {is_distributor}")

    def set_controller(self, caller: str, controller: str) -> None:
        self._require_initialized()
        previous = self.access.set_controller(caller, controller)
        self.ledger.emit(ControllerChanged(
            engine=self.address, old_controller=previous, new_controller=controller,
        ))
        logger.info(f"Engine {self.address} controller {previous} -> {controller}")

    def set_price_feed(self, caller: str, asset: str, feed: Optional[str]) -> None:
        """Bind, rebind or (with None / the null address) unbind an asset's feed."""
        self._require_initialized()
        self.access.require_owner(caller)
        previous = self.converter.set_price_feed(asset, feed)
        self.ledger.emit(PriceFeedChanged(
            engine=self.address,
            asset=asset,
            old_feed=previous,
            new_feed=None if is_null(feed) else feed,
        ))
        logger.info(f"Engine {self.address} price feed for {asset}: {previous} -> {feed}")

    def set_native_price_feed(self, caller: str, feed: Optional[str]) -> None:
        self.set_price_feed(caller, NATIVE, feed)

    def set_auto_native_distribution(self, caller: str, enabled: bool) -> None:
        self._require_initialized()
        self.access.require_owner(caller)
        self._auto_native_distribution = enabled
        self.ledger.emit(AutoDistributionChanged(engine=self.address, enabled=enabled))

    def set_min_auto_distribution_amount(self, caller: str, amount: int) -> None:
        self._require_initialized()
        self.access.require_owner(caller)
        if amount < 0:
            raise ValueError(f"Minimum auto distribution amount cannot be negative: {amount}")
        self.min_auto_distribution_amount = amount
        self.ledger.emit(MinAutoDistributionAmountChanged(engine=self.address, amount=amount))

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_initialized()
        previous = self.access.transfer_ownership(caller, new_owner)
        self.ledger.emit(OwnershipTransferred(
            engine=self.address, previous_owner=previous, new_owner=new_owner,
        ))
