"""Computation blocks for payout projections.

This package contains the computation layer that replays deposit schedules
through an engine and turns the results into DataFrames.

Architecture:
    Schemas (deposits) -> Engine (waterfall) -> Blocks (computation) -> DataFrames

Key concepts:
- Blocks are reusable computation units with explicit dependencies
- Each block declares its inputs and outputs
- Dependency graph enables topological execution
- Amount columns hold Python ints (object dtype): 18-decimal values do not
  fit in int64

Available blocks:
- DistributionBlock: Runs a DepositSchedule through an engine, one payout per row
- RecoupmentBlock: Investor recoupment progress and per-asset totals

Usage:
    from prepayment_split.blocks import BlockContext, BlockExecutor, DistributionBlock, RecoupmentBlock

    context = BlockContext()
    context.set("engine", engine)
    context.set("deposit_schedule", schedule)
    context.set("distributor", "treasury")

    BlockExecutor([DistributionBlock(), RecoupmentBlock()]).execute(context)
    summary_df = context.get("recoupment_summary")
"""

from .base import Block, BlockExecutor, BlockContext
from .distribution import DistributionBlock
from .recoupment import RecoupmentBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "DistributionBlock",
    "RecoupmentBlock",
]
