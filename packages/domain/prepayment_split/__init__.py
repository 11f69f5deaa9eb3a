"""Prepayment Split - revenue-split engine with investor prepayment recoupment.

This package provides:
- Pydantic schemas for engine settings, investor terms, recipients, price
  quotes, notifications and distribution results
- The engine runtime: recipient registry, currency conversion (direct or
  USD-bridged), the fee / recoupment / residual waterfall and recursive
  propagation through downstream engines, on top of an in-memory host ledger
- Computation blocks projecting deposit schedules into pandas DataFrames

The domain layer is designed to be:
- Framework-agnostic (no web or chain dependencies)
- Testable (pure Python with Pydantic validation)
- Exact (integer smallest-unit arithmetic, floor division everywhere)
"""

from .schemas import *  # noqa: F403, F401

__version__ = "0.1.0"
