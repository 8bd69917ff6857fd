"""Sensitivity block.

Runs the waterfall once per exit scenario and compares shareholder groups
(Founders, Investors, Employees, Other) against the base scenario.
"""

from typing import List, Optional, Sequence
import pandas as pd

from .base import Block, BlockContext
from ..schemas import (
    ROLE_GROUPS,
    CapTable,
    CapTableSummaryEntry,
    LiquidationPreference,
    SensitivityCFG,
    WaterfallConfig,
)
from ..waterfall import calculate_waterfall


GROUPS = ["Founders", "Investors", "Employees", "Other"]

GROUP_COLUMNS = [
    "scenario_id",
    "scenario_label",
    "exit_value",
    "group",
    "total_payout",
    "delta_vs_base",
]

HOLDER_COLUMNS = [
    "scenario_id",
    "shareholder_id",
    "shareholder_name",
    "group",
    "total_payout",
    "multiple",
]


def run_sensitivity(
    cap_table: CapTable,
    preferences: Sequence[LiquidationPreference],
    config: WaterfallConfig,
    sensitivity_cfg: SensitivityCFG,
    summary: Optional[List[CapTableSummaryEntry]] = None,
) -> pd.DataFrame:
    """Per-holder payouts for every scenario (see HOLDER_COLUMNS)."""
    rows = []
    for scenario in sensitivity_cfg.scenarios:
        result = calculate_waterfall(
            cap_table, scenario.exit_value, preferences, config, summary=summary
        )
        for payout in result.payouts:
            rows.append({
                "scenario_id": scenario.id,
                "shareholder_id": payout.shareholder_id,
                "shareholder_name": payout.shareholder_name,
                "group": ROLE_GROUPS.get(payout.role, "Other"),
                "total_payout": float(payout.total_payout),
                "multiple": float(payout.multiple),
            })
    return pd.DataFrame(rows, columns=HOLDER_COLUMNS)


def aggregate_by_group(by_holder: pd.DataFrame, sensitivity_cfg: SensitivityCFG) -> pd.DataFrame:
    """Group totals per scenario with the delta against the base scenario.

    Every scenario gets a row for every group, zero when nobody is in it.
    """
    index = pd.MultiIndex.from_product(
        [[s.id for s in sensitivity_cfg.scenarios], GROUPS],
        names=["scenario_id", "group"],
    )
    totals = (
        by_holder.groupby(["scenario_id", "group"])["total_payout"].sum()
        if not by_holder.empty
        else pd.Series(dtype=float)
    )
    totals = totals.reindex(index, fill_value=0.0)

    base = totals.xs(sensitivity_cfg.base_scenario_id, level="scenario_id")
    scenarios = {s.id: s for s in sensitivity_cfg.scenarios}

    rows = []
    for (scenario_id, group), total in totals.items():
        scenario = scenarios[scenario_id]
        rows.append({
            "scenario_id": scenario_id,
            "scenario_label": scenario.label,
            "exit_value": float(scenario.exit_value),
            "group": group,
            "total_payout": float(total),
            "delta_vs_base": float(total - base[group]),
        })
    return pd.DataFrame(rows, columns=GROUP_COLUMNS)


class SensitivityBlock(Block):
    """Runs the waterfall across exit scenarios.

    Inputs (from context):
        - cap_table: CapTable
        - cap_table_summary: list of CapTableSummaryEntry
        - preferences: list of LiquidationPreference
        - waterfall_config: WaterfallConfig
        - sensitivity_cfg: SensitivityCFG

    Outputs (to context):
        - sensitivity_by_holder: DataFrame (see HOLDER_COLUMNS)
        - sensitivity_by_group: DataFrame (see GROUP_COLUMNS); delta_vs_base is
          negative where a group earns less than in the base scenario
    """

    def __init__(
        self,
        cap_table_key: str = "cap_table",
        summary_key: str = "cap_table_summary",
        preferences_key: str = "preferences",
        config_key: str = "waterfall_config",
        sensitivity_key: str = "sensitivity_cfg",
    ):
        self.cap_table_key = cap_table_key
        self.summary_key = summary_key
        self.preferences_key = preferences_key
        self.config_key = config_key
        self.sensitivity_key = sensitivity_key

    def inputs(self) -> List[str]:
        return [
            self.cap_table_key,
            self.summary_key,
            self.preferences_key,
            self.config_key,
            self.sensitivity_key,
        ]

    def outputs(self) -> List[str]:
        return ["sensitivity_by_holder", "sensitivity_by_group"]

    def execute(self, context: BlockContext) -> None:
        sensitivity_cfg: SensitivityCFG = context.get(self.sensitivity_key)

        by_holder = run_sensitivity(
            context.get(self.cap_table_key),
            context.get(self.preferences_key),
            context.get(self.config_key),
            sensitivity_cfg,
            summary=context.get(self.summary_key),
        )

        context.set("sensitivity_by_holder", by_holder)
        context.set("sensitivity_by_group", aggregate_by_group(by_holder, sensitivity_cfg))
