"""Waterfall engine entry point.

Runs the phases in fixed order against one ledger:

1. M&A adjustments (escrow, R&W reserve, NWC) -> effective proceeds
2. Carve-out
3. Conversion analysis for non-participating preferences
4. Preference stack (standard / pari passu / bypassed for common-only)
5. Pro-rata catch-up
6. Payout aggregation

The engine is a pure function: every call builds a fresh ledger, reads its
inputs without mutating them and returns a new WaterfallResult.
"""

import logging
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Union

from ..schemas import (
    CapTable,
    CapTableSummaryEntry,
    LiquidationPreference,
    WaterfallConfig,
    WaterfallResult,
)
from ..schemas.base import ZERO
from .carve_out import distribute_carve_out
from .catch_up import distribute_catch_up
from .conversion import analyse_conversions
from .ledger import WaterfallLedger, to_decimal
from .payouts import aggregate_payouts
from .preference_stack import build_round_claims, resolve_preference_stack
from .strategies import strategy_for
from .summarizer import summarize_cap_table

logger = logging.getLogger(__name__)

SummaryInput = Union[Sequence[CapTableSummaryEntry], Mapping[str, CapTableSummaryEntry]]


def calculate_waterfall(
    cap_table: CapTable,
    exit_valuation: Union[Decimal, int, float, str],
    preferences: Sequence[LiquidationPreference] = (),
    config: Optional[WaterfallConfig] = None,
    summary: Optional[SummaryInput] = None,
) -> WaterfallResult:
    """Distribute exit proceeds among shareholders.

    Args:
        cap_table: Cap table (read only)
        exit_valuation: Exit value before M&A adjustments (non-negative)
        preferences: Liquidation preference rules, any order
        config: Waterfall configuration (defaults: no carve-out, standard)
        summary: Per-shareholder capitalization summary, as a list or a
            mapping keyed by shareholder id. Computed with
            ``summarize_cap_table`` when omitted.

    Returns:
        WaterfallResult with the step trace, payouts, conversion decisions and
        diagnostics

    Raises:
        ValueError: If exit_valuation is negative

    Example:
        result = calculate_waterfall(
            cap_table,
            Decimal("2000000"),
            [LiquidationPreference(round_id="series_a", multiple=Decimal("1"),
                                   type="non_participating", seniority=1)],
        )
        founder = result.get_payout("founder")
    """
    exit_value = to_decimal(exit_valuation)
    if exit_value < 0:
        raise ValueError(f"exit_valuation must be non-negative, got {exit_value}")

    config = config or WaterfallConfig()
    entries = _summary_entries(cap_table, summary)
    preferences = [
        p if isinstance(p, LiquidationPreference) else LiquidationPreference.model_validate(p)
        for p in preferences
    ]

    effective_proceeds = config.calculate_effective_proceeds(exit_value)
    ledger = WaterfallLedger.open(entries, effective_proceeds)
    _record_adjustments(ledger, config, exit_value)

    logger.debug(
        "Waterfall for %s: exit %s, effective %s, %d preferences, structure %s",
        cap_table.company_name or "<unnamed>", exit_value, effective_proceeds,
        len(preferences), config.payout_structure,
    )

    distribute_carve_out(ledger, config.carve_out_percent, config.carve_out_beneficiary)

    strategy = strategy_for(config.payout_structure)
    round_claims = build_round_claims(cap_table, preferences, ledger)
    kept_claims, decisions = analyse_conversions(ledger, round_claims, strategy, config)
    if strategy is not None:
        resolve_preference_stack(ledger, kept_claims, strategy)

    distribute_catch_up(ledger)

    payouts = aggregate_payouts(ledger, cap_table, config.deduct_option_strike)

    return WaterfallResult(
        steps=ledger.steps,
        payouts=payouts,
        conversion_analysis=decisions,
        diagnostics=ledger.diagnostics,
        exit_value=exit_value,
        effective_proceeds=effective_proceeds,
        unallocated_proceeds=ledger.unallocated + max(ZERO, ledger.remaining),
    )


def _summary_entries(
    cap_table: CapTable,
    summary: Optional[SummaryInput],
) -> List[CapTableSummaryEntry]:
    if summary is None:
        return summarize_cap_table(cap_table)
    if isinstance(summary, Mapping):
        return list(summary.values())
    return list(summary)


def _record_adjustments(ledger: WaterfallLedger, config: WaterfallConfig, exit_value: Decimal) -> None:
    """Emit one step per active M&A adjustment, running from the exit value."""
    balance = exit_value
    for label, description, amount in config.adjustments(exit_value):
        balance += amount
        ledger.add_step(
            "adjustment",
            label,
            amount,
            remaining_balance=balance,
            description=description,
        )
    if balance < 0:
        ledger.diagnose(
            "negative_effective_proceeds",
            f"Adjustments bring proceeds to {balance}; floored at zero",
        )
