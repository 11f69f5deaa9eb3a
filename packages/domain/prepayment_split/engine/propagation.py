"""Recursive propagation of payouts into downstream engines.

After an engine pays an address, the address may itself be an engine holding
the payout. If it is safe to do so the paying engine triggers the payee's own
distribution in the same call, so value flows through a tree of engines in
one go.

Downstream code is untrusted. Every question asked of it goes through
probe(), which returns a tagged ProbeResult instead of raising, and the
downstream distribution runs inside its own ledger savepoint: whatever goes
wrong there is undone and reported as FAILED, while the outer distribution
keeps the payouts it already made.

The only exception that escapes is CallBudgetExhausted. A cyclic
configuration keeps recursing until the host's call budget runs out, and that
aborts the outermost call as a whole.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..schemas.base import NATIVE
from ..schemas.results import PropagationOutcome
from .errors import CallBudgetExhausted
from .ledger import Ledger

logger = logging.getLogger(__name__)


# =============================================================================
# Capability probes
# =============================================================================

class ProbeStatus(Enum):
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeResult:
    """Tagged answer of a capability probe.

    Callers must treat UNSUPPORTED and FAILED the same way: do not propagate.
    """

    status: ProbeStatus
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def supported(cls, value: Any) -> "ProbeResult":
        return cls(ProbeStatus.SUPPORTED, value=value)

    @classmethod
    def unsupported(cls) -> "ProbeResult":
        return cls(ProbeStatus.UNSUPPORTED)

    @classmethod
    def failed(cls, error: BaseException) -> "ProbeResult":
        return cls(ProbeStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is ProbeStatus.SUPPORTED


def probe(target: Any, name: str, *args: Any) -> ProbeResult:
    """Read attribute `name` of `target`, calling it with `args` if callable."""
    try:
        member = getattr(target, name)
    except AttributeError:
        return ProbeResult.unsupported()
    except CallBudgetExhausted:
        raise
    except Exception as exc:
        return ProbeResult.failed(exc)

    try:
        value = member(*args) if callable(member) else member
    except CallBudgetExhausted:
        raise
    except Exception as exc:
        return ProbeResult.failed(exc)
    return ProbeResult.supported(value)


def probe_flag(target: Any, name: str, *args: Any) -> ProbeResult:
    """probe() that only accepts a real bool answer."""
    result = probe(target, name, *args)
    if result.ok and not isinstance(result.value, bool):
        return ProbeResult.unsupported()
    return result


# =============================================================================
# Propagator
# =============================================================================

class RecursivePropagator:
    """Offers payouts made by the engine at `origin` to downstream engines.

    Native payouts:
        1. payee without code -> NOT_CONTRACT
        2. payee auto-distributes native value on receipt -> AUTO_DISTRIBUTES
           (it already ran inside the transfer). A probe failure here -> UNSUPPORTED
        3. origin not a distributor on the payee -> NOT_AUTHORIZED (probe failure -> UNSUPPORTED)
        4. otherwise call payee.distribute_native(caller=origin)

    Asset payouts skip step 2 (tokens have no receive hook) and call
    payee.distribute_asset(asset, caller=origin).
    """

    def __init__(self, ledger: Ledger, origin: str):
        self.ledger = ledger
        self.origin = origin

    def propagate(self, payee: str, asset: str) -> PropagationOutcome:
        if asset == NATIVE:
            return self.propagate_native(payee)
        return self.propagate_asset(payee, asset)

    def propagate_native(self, payee: str) -> PropagationOutcome:
        code = self.ledger.code_at(payee)
        if code is None:
            return PropagationOutcome.NOT_CONTRACT

        auto = probe_flag(code, "auto_native_distribution")
        if not auto.ok:
            logger.debug(f"{self.origin}: '{payee}' did not answer auto_native_distribution")
            return PropagationOutcome.UNSUPPORTED
        if auto.value:
            return PropagationOutcome.AUTO_DISTRIBUTES

        outcome = self._check_authorized(code, payee)
        if outcome is not None:
            return outcome
        return self._invoke(payee, code, "distribute_native")

    def propagate_asset(self, payee: str, asset: str) -> PropagationOutcome:
        code = self.ledger.code_at(payee)
        if code is None:
            return PropagationOutcome.NOT_CONTRACT

        outcome = self._check_authorized(code, payee)
        if outcome is not None:
            return outcome
        return self._invoke(payee, code, "distribute_asset", asset)

    def _check_authorized(self, code: Any, payee: str) -> Optional[PropagationOutcome]:
        registered = probe_flag(code, "is_distributor", self.origin)
        if not registered.ok:
            logger.debug(f"{self.origin}: '{payee}' did not answer is_distributor")
            return PropagationOutcome.UNSUPPORTED
        if not registered.value:
            return PropagationOutcome.NOT_AUTHORIZED
        return None

    def _invoke(self, payee: str, code: Any, entry_point: str, *args: Any) -> PropagationOutcome:
        try:
            entry = getattr(code, entry_point)
        except CallBudgetExhausted:
            raise
        except Exception:
            return PropagationOutcome.UNSUPPORTED
        if not callable(entry):
            return PropagationOutcome.UNSUPPORTED
        try:
            with self.ledger.atomic():
                entry(*args, caller=self.origin)
        except CallBudgetExhausted:
            raise
        except Exception as exc:
            logger.warning(
                f"{self.origin}: propagation into '{payee}' failed and was undone: "
                f"{type(exc).__name__}: {exc}"
            )
            return PropagationOutcome.FAILED
        logger.debug(f"{self.origin}: propagated into '{payee}'")
        return PropagationOutcome.PROPAGATED
