"""Host ledger: balances, deployed accounts, notifications and atomicity.

Engines assume a host that moves value, runs nested calls synchronously and
makes every call all-or-nothing. The Ledger is that host:

- balances keyed by (address, asset) in smallest units
- "code" at an address: a deployed Account object (engines are accounts)
- native transfers to code run the receiver's receive_native hook
- atomic() savepoints that restore balances, the notification log and the
  checkpointed state of every deployed account when the block raises
- call_frame() enforcing a nested-call budget

Everything is single-threaded; concurrent use of one Ledger is not supported.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..schemas.base import NATIVE, is_null
from ..schemas.events import EngineNotification
from .errors import TransferFailed, CallBudgetExhausted

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALL_DEPTH = 32

# Sender recorded for value entering the system from outside.
EXTERNAL = "external"


class Account:
    """Executable code deployed at a ledger address.

    Subclasses override receive_native to react to incoming native value
    (raising rejects the transfer) and checkpoint/restore to have their
    private state rolled back together with balances.
    """

    def receive_native(self, sender: str, amount: int) -> None:
        pass

    def checkpoint(self) -> Any:
        return None

    def restore(self, state: Any) -> None:
        pass


class Ledger:
    """In-memory host for engines and plain accounts.

    Example:
        ledger = Ledger()
        ledger.mint("alice", NATIVE, 100)
        ledger.transfer("alice", "bob", NATIVE, 40)
        ledger.balance_of("bob")  # 40
    """

    def __init__(self, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        if max_call_depth < 1:
            raise ValueError("max_call_depth must be at least 1")
        self.max_call_depth = max_call_depth
        self._balances: Dict[Tuple[str, str], int] = {}
        self._accounts: Dict[str, Account] = {}
        self._notifications: List[EngineNotification] = []
        self._depth = 0

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def deploy(self, address: str, account: Account) -> None:
        if is_null(address):
            raise ValueError("Cannot deploy code at the null address")
        if address in self._accounts:
            raise ValueError(f"Address '{address}' already has code")
        self._accounts[address] = account

    def code_at(self, address: str) -> Optional[Account]:
        return self._accounts.get(address)

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def balance_of(self, address: str, asset: str = NATIVE) -> int:
        return self._balances.get((address, asset), 0)

    def mint(self, address: str, asset: str, amount: int) -> None:
        """Credit value entering from outside the system. No hooks run."""
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        key = (address, asset)
        self._balances[key] = self._balances.get(key, 0) + amount

    def send_native(self, to: str, amount: int, sender: str = EXTERNAL) -> None:
        """Pay native value from outside, running the receiver's hook.

        This is how a payment "arrives" at an engine; with auto distribution
        enabled the engine distributes inside this call.
        """
        with self.atomic():
            self.mint(sender, NATIVE, amount)
            self.transfer(sender, to, NATIVE, amount)

    def transfer(self, sender: str, to: str, asset: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot transfer a negative amount: {amount}")
        if is_null(to):
            raise TransferFailed(f"Transfer of {amount} {asset} to the null address")
        available = self.balance_of(sender, asset)
        if available < amount:
            raise TransferFailed(
                f"'{sender}' holds {available} {asset}, cannot send {amount} to '{to}'"
            )
        self._balances[(sender, asset)] = available - amount
        self._balances[(to, asset)] = self.balance_of(to, asset) + amount

        receiver = self._accounts.get(to)
        if asset == NATIVE and receiver is not None:
            try:
                receiver.receive_native(sender, amount)
            except CallBudgetExhausted:
                raise
            except Exception as exc:
                raise TransferFailed(f"'{to}' rejected {amount} {asset}: {exc}") from exc

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def emit(self, notification: EngineNotification) -> None:
        self._notifications.append(notification)

    def notifications(self, engine: Optional[str] = None, kind: Optional[str] = None) -> List[EngineNotification]:
        """Notifications in emission order, optionally filtered."""
        return [
            n for n in self._notifications
            if (engine is None or n.engine == engine) and (kind is None or n.kind == kind)
        ]

    # -------------------------------------------------------------------------
    # Atomicity and call budget
    # -------------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Savepoint: undo every effect of the block if it raises.

        Savepoints nest; an inner failure caught by the caller only undoes the
        inner block.
        """
        balances = dict(self._balances)
        notification_count = len(self._notifications)
        states = {address: account.checkpoint() for address, account in self._accounts.items()}
        try:
            yield
        except BaseException:
            self._balances = balances
            del self._notifications[notification_count:]
            for address, account in self._accounts.items():
                if address in states:
                    account.restore(states[address])
            raise

    @contextmanager
    def call_frame(self) -> Iterator[int]:
        """Enter one level of nested distribution; yields the new depth."""
        if self._depth >= self.max_call_depth:
            logger.warning(f"Call budget exhausted at depth {self._depth}")
            raise CallBudgetExhausted(
                f"Nested calls exceeded max_call_depth={self.max_call_depth}"
            )
        self._depth += 1
        try:
            yield self._depth
        finally:
            self._depth -= 1

    @property
    def depth(self) -> int:
        return self._depth
