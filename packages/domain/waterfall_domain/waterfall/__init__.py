"""Waterfall engine.

Distributes exit proceeds through carve-out, liquidation preferences and a
pro-rata catch-up, then aggregates per-shareholder payouts.

Usage:
    from waterfall_domain.waterfall import calculate_waterfall

    result = calculate_waterfall(cap_table, Decimal("50000000"), preferences, config)
    for payout in result.payouts:
        print(payout.shareholder_name, payout.total_payout, payout.multiple)
"""

from .engine import calculate_waterfall
from .summarizer import summarize_cap_table
from .strategies import (
    PreferencePayoutStrategy,
    SequentialPayout,
    ProRataPayout,
    strategy_for,
)
from .ledger import WaterfallLedger, display_class_order, scale_to_budget

__all__ = [
    "calculate_waterfall",
    "summarize_cap_table",
    "PreferencePayoutStrategy",
    "SequentialPayout",
    "ProRataPayout",
    "strategy_for",
    "WaterfallLedger",
    "display_class_order",
    "scale_to_budget",
]
