"""Cap table summary block.

Runs the capitalization summarizer and exposes ownership as a DataFrame.

Output:
- cap_table_summary: List[CapTableSummaryEntry] consumed by the waterfall
- cap_table_ownership: Per-holder, per-class ownership with fully diluted percentages
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..schemas import ORDINARY_CLASS, CapTable, CapTableSummaryEntry
from ..waterfall import summarize_cap_table


OWNERSHIP_COLUMNS = [
    "shareholder_id",
    "shareholder_name",
    "role",
    "share_class",
    "shares",
    "is_option",
    "ownership_pct",
]


class CapTableSummaryBlock(Block):
    """Summarizes a CapTable per shareholder.

    Inputs (from context):
        - cap_table: CapTable

    Outputs (to context):
        - cap_table_summary: list of CapTableSummaryEntry
        - cap_table_ownership: DataFrame with columns:
            * shareholder_id, shareholder_name, role
            * share_class: Share class (options reported under Ordinary)
            * shares: Shares or options held
            * is_option: True for option rows
            * ownership_pct: Fully diluted ownership percentage
    """

    def __init__(self, cap_table_key: str = "cap_table"):
        self.cap_table_key = cap_table_key

    def inputs(self) -> List[str]:
        return [self.cap_table_key]

    def outputs(self) -> List[str]:
        return ["cap_table_summary", "cap_table_ownership"]

    def execute(self, context: BlockContext) -> None:
        cap_table: CapTable = context.get(self.cap_table_key)
        summary = summarize_cap_table(cap_table)

        context.set("cap_table_summary", summary)
        context.set("cap_table_ownership", self._compute_ownership(summary))

    def _compute_ownership(self, summary: List[CapTableSummaryEntry]) -> pd.DataFrame:
        total_fd = sum(entry.fully_diluted_shares for entry in summary)

        rows = []
        for entry in summary:
            holdings = [(cls, shares, False) for cls, shares in entry.shares_by_class.items()]
            if entry.total_options > 0:
                holdings.append((ORDINARY_CLASS, entry.total_options, True))

            for share_class, shares, is_option in holdings:
                rows.append({
                    "shareholder_id": entry.shareholder_id,
                    "shareholder_name": entry.shareholder_name,
                    "role": entry.role,
                    "share_class": share_class,
                    "shares": float(shares),
                    "is_option": is_option,
                    "ownership_pct": float(shares / total_fd * 100) if total_fd > 0 else 0.0,
                })

        if not rows:
            return pd.DataFrame(columns=OWNERSHIP_COLUMNS)

        df = pd.DataFrame(rows, columns=OWNERSHIP_COLUMNS)
        return df.sort_values("ownership_pct", ascending=False).reset_index(drop=True)
