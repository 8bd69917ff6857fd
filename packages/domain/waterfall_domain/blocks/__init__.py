"""Computation blocks for waterfall analysis.

This package wraps the waterfall engine into blocks that produce DataFrames
for charts, exports or other consumption.

Architecture:
    Schemas (data models) → Engine (pure waterfall) → Blocks → DataFrames

Available blocks:
- CapTableSummaryBlock: CapTable → per-shareholder summary + ownership DataFrame
- WaterfallBlock: waterfall for one exit value → steps/payouts DataFrames
- SensitivityBlock: waterfall across exit scenarios → group totals DataFrame

Usage:
    from waterfall_domain.blocks import BlockExecutor, BlockContext, CapTableSummaryBlock, WaterfallBlock

    executor = BlockExecutor([WaterfallBlock(), CapTableSummaryBlock()])
    context = executor.execute(context)

    payouts_df = context.get("waterfall_payouts")
"""

from .base import Block, BlockExecutor, BlockContext
from .summary import CapTableSummaryBlock
from .waterfall import WaterfallBlock
from .sensitivity import SensitivityBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "CapTableSummaryBlock",
    "WaterfallBlock",
    "SensitivityBlock",
]
