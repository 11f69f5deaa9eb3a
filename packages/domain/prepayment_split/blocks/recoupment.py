"""Recoupment computation block.

Summarizes how far the investor's claim has been recouped after a projection
and where each asset ended up.

Metrics:
- recouped_pct: amount_received / amount_to_receive, in percent
- per asset: deposited value split into fee, investor, recipients and the
  rounding dust retained by the engine
"""

from decimal import Decimal
from typing import Dict, List

import pandas as pd

from .base import Block, BlockContext
from ..engine import WaterfallEngine
from ..schemas import DistributionResult


class RecoupmentBlock(Block):
    """Computes investor recoupment metrics from distribution results.

    Inputs (from context):
        - engine: the WaterfallEngine the schedule ran against
        - distribution_results: list of DistributionResult (from DistributionBlock)

    Outputs (to context):
        - recoupment_summary: single-row DataFrame:
            * investor, unit_of_account
            * invested_amount, amount_to_receive, amount_received
            * recouped_pct: Decimal percentage, 100 once fulfilled
            * phase: "recoupment" or "residual"
            * fulfilled_at_deposit: first call that completed the claim (or None)

        - recoupment_by_asset: DataFrame with one row per asset:
            * asset, fee, investor, recipients
            * retained: dust still held after the last call
            * incoming: fee + investor + recipients + retained, so dust carried
              from one call into the next is counted once
            * investor_residual: part of `investor` paid at the residual rate
              by calls that started in the residual phase
    """

    def __init__(
        self,
        engine_key: str = "engine",
        results_key: str = "distribution_results",
    ):
        self.engine_key = engine_key
        self.results_key = results_key

    def inputs(self) -> List[str]:
        return [self.engine_key, self.results_key]

    def outputs(self) -> List[str]:
        return ["recoupment_summary", "recoupment_by_asset"]

    def execute(self, context: BlockContext) -> None:
        engine: WaterfallEngine = context.get(self.engine_key)
        results: List[DistributionResult] = context.get(self.results_key)

        context.set("recoupment_summary", self._compute_summary(engine, results))
        context.set("recoupment_by_asset", self._compute_by_asset(results))

    def _compute_summary(self, engine: WaterfallEngine, results: List[DistributionResult]) -> pd.DataFrame:
        terms = engine.terms
        target = terms.amount_to_receive
        if target > 0:
            recouped_pct = Decimal(engine.amount_received) / Decimal(target) * Decimal("100")
        else:
            recouped_pct = Decimal("100")

        fulfilled_at = next(
            (
                number for number, result in enumerate(results, start=1)
                if result.phase_before == "recoupment" and result.phase_after == "residual"
            ),
            None,
        )

        summary = pd.DataFrame([{
            "investor": terms.investor,
            "unit_of_account": engine.converter.unit_of_account,
            "invested_amount": terms.invested_amount,
            "amount_to_receive": target,
            "amount_received": engine.amount_received,
            "recouped_pct": recouped_pct,
            "phase": engine.phase,
            "fulfilled_at_deposit": fulfilled_at,
        }])
        for column in ("invested_amount", "amount_to_receive", "amount_received"):
            summary[column] = summary[column].astype(object)
        return summary

    def _compute_by_asset(self, results: List[DistributionResult]) -> pd.DataFrame:
        columns = ["asset", "incoming", "fee", "investor", "investor_residual", "recipients", "retained"]
        totals: Dict[str, Dict[str, int]] = {}
        for result in results:
            row = totals.setdefault(result.asset, {c: 0 for c in columns[1:]})
            row["fee"] += result.fee
            row["investor"] += result.investor_payout
            if result.phase_before == "residual":
                row["investor_residual"] += result.investor_payout
            row["recipients"] += result.recipients_total
            row["retained"] = result.retained
        for row in totals.values():
            row["incoming"] = row["fee"] + row["investor"] + row["recipients"] + row["retained"]

        by_asset = pd.DataFrame(
            [{"asset": asset, **values} for asset, values in totals.items()],
            columns=columns,
        )
        for column in columns[1:]:
            by_asset[column] = by_asset[column].astype(object)
        return by_asset
