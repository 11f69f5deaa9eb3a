"""Distribution projection block.

Replays a deposit schedule through an engine and tabulates every payout.
The engine and its ledger are mutated: run projections against an engine
built for the purpose, not one holding real balances.
"""

from typing import Dict, List, Tuple

import pandas as pd

from .base import Block, BlockContext
from ..engine import WaterfallEngine
from ..schemas import DepositSchedule, DistributionResult


STEP_COLUMNS = [
    "deposit",
    "label",
    "asset",
    "payee",
    "role",
    "amount",
    "phase_before",
    "phase_after",
]


class DistributionBlock(Block):
    """Runs each deposit of a schedule as one distribution call.

    Inputs (from context):
        - engine: initialized WaterfallEngine
        - deposit_schedule: DepositSchedule to replay
        - distributor: identity used to trigger each distribution

    Outputs (to context):
        - distribution_steps: DataFrame with one row per payout:
            * deposit: 1-based deposit number
            * label: deposit label (or None)
            * asset: asset paid out
            * payee: address receiving the payout
            * role: "fee", "investor" or "recipient"
            * amount: smallest-unit amount (Python int)
            * phase_before / phase_after: investor phase around the call

        - distribution_by_payee: DataFrame with totals:
            * payee, role, asset, amount, deposits (number of calls paying it)

        - distribution_results: list of DistributionResult, one per deposit

    Example:
        schedule = DepositSchedule(deposits=[Deposit(amount=50 * 10**18)] * 4)

        context = BlockContext()
        context.set("engine", engine)
        context.set("deposit_schedule", schedule)
        context.set("distributor", "owner")

        DistributionBlock().execute(context)
        context.get("distribution_by_payee")
    """

    def __init__(
        self,
        engine_key: str = "engine",
        schedule_key: str = "deposit_schedule",
        distributor_key: str = "distributor",
    ):
        self.engine_key = engine_key
        self.schedule_key = schedule_key
        self.distributor_key = distributor_key

    def inputs(self) -> List[str]:
        return [self.engine_key, self.schedule_key, self.distributor_key]

    def outputs(self) -> List[str]:
        return [
            "distribution_steps",
            "distribution_by_payee",
            "distribution_results",
        ]

    def execute(self, context: BlockContext) -> None:
        engine: WaterfallEngine = context.get(self.engine_key)
        schedule: DepositSchedule = context.get(self.schedule_key)
        distributor: str = context.get(self.distributor_key)

        rows: List[Dict] = []
        results: List[DistributionResult] = []
        for number, deposit in enumerate(schedule.deposits, start=1):
            engine.ledger.mint(engine.address, deposit.asset, deposit.amount)
            result = engine.distribute_asset(deposit.asset, caller=distributor)
            if result is None:
                continue
            results.append(result)
            rows.extend(self._payout_rows(number, deposit.label, result))

        steps_df = pd.DataFrame(rows, columns=STEP_COLUMNS)
        steps_df["amount"] = steps_df["amount"].astype(object)

        context.set("distribution_steps", steps_df)
        context.set("distribution_by_payee", self._compute_by_payee(rows))
        context.set("distribution_results", results)

    def _payout_rows(self, number: int, label, result: DistributionResult) -> List[Dict]:
        base = {
            "deposit": number,
            "label": label,
            "asset": result.asset,
            "phase_before": result.phase_before,
            "phase_after": result.phase_after,
        }
        rows = []
        if result.fee:
            rows.append({**base, "payee": result.fee_recipient, "role": "fee", "amount": result.fee})
        rows.append({**base, "payee": result.investor, "role": "investor", "amount": result.investor_payout})
        for payout in result.recipient_payouts:
            rows.append({**base, "payee": payout.address, "role": "recipient", "amount": payout.amount})
        return rows

    def _compute_by_payee(self, rows: List[Dict]) -> pd.DataFrame:
        """Totals per (payee, role, asset), in first-payout order.

        Summed in Python: 18-decimal amounts overflow int64 columns.
        """
        totals: Dict[Tuple[str, str, str], int] = {}
        calls: Dict[Tuple[str, str, str], set] = {}
        for row in rows:
            key = (row["payee"], row["role"], row["asset"])
            totals[key] = totals.get(key, 0) + row["amount"]
            calls.setdefault(key, set()).add(row["deposit"])

        by_payee = pd.DataFrame(
            [
                {
                    "payee": payee,
                    "role": role,
                    "asset": asset,
                    "amount": amount,
                    "deposits": len(calls[(payee, role, asset)]),
                }
                for (payee, role, asset), amount in totals.items()
            ],
            columns=["payee", "role", "asset", "amount", "deposits"],
        )
        by_payee["amount"] = by_payee["amount"].astype(object)
        return by_payee
