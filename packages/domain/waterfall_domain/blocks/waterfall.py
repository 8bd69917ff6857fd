"""Waterfall computation block.

Runs the waterfall engine for one exit value and flattens the result into
DataFrames for charts, exports or analysis.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..schemas import WaterfallResult
from ..waterfall import calculate_waterfall


STEP_COLUMNS = [
    "sequence",
    "phase",
    "label",
    "description",
    "share_class",
    "amount",
    "remaining_balance",
    "is_total",
    "is_participating",
]

PAYOUT_COLUMNS = [
    "shareholder_id",
    "shareholder_name",
    "role",
    "carve_out_payout",
    "preference_payout",
    "participation_payout",
    "option_strike_cost",
    "total_payout",
    "total_invested",
    "multiple",
    "equity_pct",
    "distribution_pct",
]

CONVERSION_COLUMNS = [
    "share_class",
    "round_id",
    "class_shares",
    "value_as_preference",
    "value_as_converted",
    "decision",
    "reason",
]


def steps_frame(result: WaterfallResult) -> pd.DataFrame:
    """One row per step, in trace order."""
    rows = [
        {
            "sequence": step.sequence,
            "phase": step.phase,
            "label": step.label,
            "description": step.description,
            "share_class": step.share_class,
            "amount": float(step.amount),
            "remaining_balance": float(step.remaining_balance),
            "is_total": step.is_total,
            "is_participating": step.is_participating,
        }
        for step in result.steps
    ]
    return pd.DataFrame(rows, columns=STEP_COLUMNS)


def payouts_frame(result: WaterfallResult) -> pd.DataFrame:
    """One row per shareholder, largest total payout first."""
    proceeds = result.effective_proceeds
    rows = [
        {
            "shareholder_id": p.shareholder_id,
            "shareholder_name": p.shareholder_name,
            "role": p.role,
            "carve_out_payout": float(p.carve_out_payout),
            "preference_payout": float(p.preference_payout),
            "participation_payout": float(p.participation_payout),
            "option_strike_cost": float(p.option_strike_cost),
            "total_payout": float(p.total_payout),
            "total_invested": float(p.total_invested),
            "multiple": float(p.multiple),
            "equity_pct": float(p.equity_percentage * 100),
            "distribution_pct": float(p.gross_payout / proceeds * 100) if proceeds > 0 else 0.0,
        }
        for p in result.payouts
    ]
    df = pd.DataFrame(rows, columns=PAYOUT_COLUMNS)
    if not df.empty:
        df = df.sort_values("total_payout", ascending=False).reset_index(drop=True)
    return df


def conversions_frame(result: WaterfallResult) -> pd.DataFrame:
    rows = [
        {
            "share_class": d.share_class,
            "round_id": d.round_id,
            "class_shares": float(d.class_shares),
            "value_as_preference": float(d.value_as_preference),
            "value_as_converted": float(d.value_as_converted),
            "decision": d.decision,
            "reason": d.reason,
        }
        for d in result.conversion_analysis
    ]
    return pd.DataFrame(rows, columns=CONVERSION_COLUMNS)


class WaterfallBlock(Block):
    """Computes the liquidation preference waterfall for one exit value.

    Inputs (from context):
        - cap_table: CapTable
        - cap_table_summary: list of CapTableSummaryEntry (from CapTableSummaryBlock)
        - exit_value: Exit value before M&A adjustments
        - preferences: list of LiquidationPreference
        - waterfall_config: WaterfallConfig

    Outputs (to context):
        - waterfall_result: WaterfallResult
        - waterfall_steps: DataFrame, one row per step (see STEP_COLUMNS)
        - waterfall_payouts: DataFrame, one row per shareholder (see PAYOUT_COLUMNS)
        - waterfall_conversions: DataFrame of keep/convert decisions

    Example:
        context = BlockContext()
        context.set("cap_table", cap_table)
        context.set("exit_value", Decimal("50000000"))
        context.set("preferences", preferences)
        context.set("waterfall_config", WaterfallConfig())

        BlockExecutor([CapTableSummaryBlock(), WaterfallBlock()]).execute(context)

        payouts_df = context.get("waterfall_payouts")
    """

    def __init__(
        self,
        cap_table_key: str = "cap_table",
        summary_key: str = "cap_table_summary",
        exit_value_key: str = "exit_value",
        preferences_key: str = "preferences",
        config_key: str = "waterfall_config",
    ):
        self.cap_table_key = cap_table_key
        self.summary_key = summary_key
        self.exit_value_key = exit_value_key
        self.preferences_key = preferences_key
        self.config_key = config_key

    def inputs(self) -> List[str]:
        return [
            self.cap_table_key,
            self.summary_key,
            self.exit_value_key,
            self.preferences_key,
            self.config_key,
        ]

    def outputs(self) -> List[str]:
        return [
            "waterfall_result",
            "waterfall_steps",
            "waterfall_payouts",
            "waterfall_conversions",
        ]

    def execute(self, context: BlockContext) -> None:
        result = calculate_waterfall(
            context.get(self.cap_table_key),
            context.get(self.exit_value_key),
            context.get(self.preferences_key),
            context.get(self.config_key),
            summary=context.get(self.summary_key),
        )

        context.set("waterfall_result", result)
        context.set("waterfall_steps", steps_frame(result))
        context.set("waterfall_payouts", payouts_frame(result))
        context.set("waterfall_conversions", conversions_frame(result))
