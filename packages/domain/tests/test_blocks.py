"""Tests for blocks architecture.

Tests cover:
- BlockContext get/set/has operations
- Topological sort and dependency resolution
- BlockExecutor validation and execution
- DistributionBlock and RecoupmentBlock projections
"""

from decimal import Decimal

import pandas as pd
import pytest

from prepayment_split.blocks import (
    Block,
    BlockContext,
    BlockExecutor,
    DistributionBlock,
    RecoupmentBlock,
)
from prepayment_split.blocks.base import topological_sort, CircularDependencyError
from prepayment_split.engine import FeePolicy
from prepayment_split.schemas import NATIVE, Deposit, DepositSchedule

E = 10**18


# =============================================================================
# BlockContext Tests
# =============================================================================

def test_block_context_roundtrip():
    """Values set are returned by get and listed by keys."""
    context = BlockContext()
    assert not context.has("engine")

    context.set("engine", "e")
    context.set("distributor", "owner")

    assert context.get("engine") == "e"
    assert context.has("engine")
    assert set(context.keys()) == {"engine", "distributor"}


def test_block_context_get_missing_key():
    context = BlockContext()
    with pytest.raises(KeyError, match="Key 'missing' not found"):
        context.get("missing")


# =============================================================================
# Dependency Resolution Tests
# =============================================================================

class StubBlock(Block):
    """Block that writes its name into each declared output."""

    def __init__(self, name, inputs, outputs):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs

    def inputs(self):
        return self._inputs

    def outputs(self):
        return self._outputs

    def execute(self, context):
        for key in self._outputs:
            context.set(key, self.name)

    def __repr__(self):
        return f"StubBlock({self.name})"


def test_topological_sort_orders_producers_first():
    """Schedule -> results -> summary, given in reverse."""
    replay = StubBlock("replay", ["deposit_schedule"], ["results"])
    summarize = StubBlock("summarize", ["results"], ["summary"])
    report = StubBlock("report", ["summary", "results"], ["report"])

    assert topological_sort([report, summarize, replay]) == [replay, summarize, report]


def test_topological_sort_circular_dependency():
    first = StubBlock("first", ["b"], ["a"])
    second = StubBlock("second", ["a"], ["b"])

    with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
        topological_sort([first, second])


def test_topological_sort_keeps_order_of_independent_blocks():
    first = StubBlock("first", ["engine"], ["a"])
    second = StubBlock("second", ["engine"], ["b"])
    joined = StubBlock("joined", ["b", "a"], ["c"])

    assert topological_sort([joined, second, first]) == [second, first, joined]


def test_topological_sort_self_dependency():
    with pytest.raises(CircularDependencyError):
        topological_sort([StubBlock("loop", ["a"], ["a"])])


def test_topological_sort_duplicate_output():
    with pytest.raises(ValueError, match="Multiple blocks produce"):
        topological_sort([StubBlock("a", [], ["x"]), StubBlock("b", [], ["x"])])


def test_block_executor_missing_input():
    executor = BlockExecutor([StubBlock("a", ["engine"], ["out"])])
    with pytest.raises(KeyError, match="requires input 'engine'"):
        executor.execute(BlockContext())


def test_block_executor_missing_output():

    class SilentBlock(Block):
        def inputs(self):
            return []

        def outputs(self):
            return ["output"]

        def execute(self, context):
            pass

    with pytest.raises(ValueError, match="declared output 'output' but didn't write"):
        BlockExecutor([SilentBlock()]).execute(BlockContext())


# =============================================================================
# Projection Blocks
# =============================================================================

@pytest.fixture
def projection(make_engine):
    """Context for the four-deposit reference deal, manual distribution."""
    engine = make_engine(auto=False)
    context = BlockContext()
    context.set("engine", engine)
    context.set("deposit_schedule", DepositSchedule(deposits=[
        Deposit(amount=50 * E, label=f"Q{quarter}") for quarter in range(1, 5)
    ]))
    context.set("distributor", "owner")
    return context


def test_distribution_block_steps(projection):
    DistributionBlock().execute(projection)

    steps = projection.get("distribution_steps")
    investor_rows = steps[steps["role"] == "investor"]
    assert list(investor_rows["amount"]) == [50 * E, 50 * E, 31 * E, 2_500 * 10**15]
    assert list(investor_rows["label"]) == ["Q1", "Q2", "Q3", "Q4"]

    # Deposits 1 and 2 are all-investor; 3 and 4 pay both recipients
    assert len(steps) == 1 + 1 + 3 + 3
    third = steps[steps["deposit"] == 3]
    assert third.iloc[0]["phase_before"] == "recoupment"
    assert third.iloc[0]["phase_after"] == "residual"

    assert len(projection.get("distribution_results")) == 4


def test_distribution_block_by_payee(projection):
    DistributionBlock().execute(projection)

    by_payee = projection.get("distribution_by_payee").set_index("payee")
    assert by_payee.loc["investor", "amount"] == 133_500 * 10**15
    assert by_payee.loc["investor", "deposits"] == 4
    assert by_payee.loc["label", "amount"] == 53_200 * 10**15
    assert by_payee.loc["artist", "amount"] == 13_300 * 10**15
    assert by_payee.loc["artist", "deposits"] == 2


def test_distribution_block_records_fee(make_engine):
    policy = FeePolicy(owner="platform", platform_fee=1_000_000, platform_wallet="fee_wallet")
    context = BlockContext()
    context.set("engine", make_engine(auto=False, fee_policy=policy))
    context.set("deposit_schedule", DepositSchedule(deposits=[Deposit(amount=10 * E)]))
    context.set("distributor", "owner")

    DistributionBlock().execute(context)

    steps = context.get("distribution_steps")
    fee_row = steps[steps["role"] == "fee"].iloc[0]
    assert fee_row["payee"] == "fee_wallet"
    assert fee_row["amount"] == E


def test_recoupment_block(projection):
    BlockExecutor([RecoupmentBlock(), DistributionBlock()]).execute(projection)

    summary = projection.get("recoupment_summary").iloc[0]
    assert summary["unit_of_account"] == "USD"
    assert summary["amount_to_receive"] == 130_000 * E
    assert summary["amount_received"] == 130_000 * E
    assert summary["recouped_pct"] == Decimal("100")
    assert summary["phase"] == "residual"
    assert summary["fulfilled_at_deposit"] == 3

    by_asset = projection.get("recoupment_by_asset").set_index("asset")
    assert by_asset.loc[NATIVE, "incoming"] == 200 * E
    assert by_asset.loc[NATIVE, "investor"] == 133_500 * 10**15
    assert by_asset.loc[NATIVE, "investor_residual"] == 2_500 * 10**15
    assert by_asset.loc[NATIVE, "recipients"] == 66_500 * 10**15
    assert by_asset.loc[NATIVE, "retained"] == 0


def test_recoupment_block_partial(make_engine):
    engine = make_engine(auto=False)
    context = BlockContext()
    context.set("engine", engine)
    context.set("deposit_schedule", DepositSchedule(deposits=[Deposit(amount=13 * E)]))
    context.set("distributor", "owner")

    BlockExecutor([DistributionBlock(), RecoupmentBlock()]).execute(context)

    summary = context.get("recoupment_summary").iloc[0]
    assert summary["recouped_pct"] == Decimal("10")
    assert summary["phase"] == "recoupment"
    assert pd.isna(summary["fulfilled_at_deposit"])
