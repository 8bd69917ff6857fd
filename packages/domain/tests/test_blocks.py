"""Tests for blocks architecture.

Tests cover:
- BlockContext get/set/has operations
- Block abstract base class
- Topological sort and dependency resolution
- BlockExecutor validation and execution
- CapTableSummaryBlock, WaterfallBlock, SensitivityBlock
"""

import pytest
from decimal import Decimal

from waterfall_domain.blocks import (
    Block,
    BlockContext,
    BlockExecutor,
    CapTableSummaryBlock,
    WaterfallBlock,
    SensitivityBlock,
)
from waterfall_domain.blocks.base import topological_sort, CircularDependencyError
from waterfall_domain.schemas import (
    CapTable,
    Investment,
    LiquidationPreference,
    Round,
    SensitivityCFG,
    Shareholder,
    WaterfallConfig,
)


def founder_investor_cap_table():
    """Founder 9M Ordinary; investor 1M A shares for 1M."""
    return CapTable(
        company_name="Test Corp",
        shareholders=[
            Shareholder(id="founder", name="Founder", role="founder"),
            Shareholder(id="investor", name="Investor", role="vc"),
        ],
        rounds=[
            Round(id="founding", name="Founding", share_class="Ordinary",
                  investments=[Investment(shareholder_id="founder", shares=Decimal("9000000"))]),
            Round(id="series_a", name="Series A", share_class="A",
                  investments=[Investment(shareholder_id="investor", amount=Decimal("1000000"),
                                          shares=Decimal("1000000"))]),
        ],
    )


# =============================================================================
# BlockContext Tests
# =============================================================================

def test_block_context_get_set():
    """Test basic get/set operations."""
    context = BlockContext()
    context.set("key1", "value1")
    assert context.get("key1") == "value1"


def test_block_context_has():
    """Test has() method."""
    context = BlockContext()
    assert not context.has("key1")
    context.set("key1", "value1")
    assert context.has("key1")


def test_block_context_keys():
    """Test keys() method."""
    context = BlockContext()
    context.set("key1", "value1")
    context.set("key2", "value2")
    assert set(context.keys()) == {"key1", "key2"}


def test_block_context_get_missing_key():
    """Test that getting missing key raises KeyError."""
    context = BlockContext()
    with pytest.raises(KeyError, match="Key 'missing' not found"):
        context.get("missing")


def test_block_context_get_optional():
    context = BlockContext()
    assert context.get_optional("missing") is None
    assert context.get_optional("missing", 5) == 5


# =============================================================================
# Topological Sort Tests
# =============================================================================

class SimpleBlock(Block):
    """Simple block for testing."""

    def __init__(self, name, inputs, outputs):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs

    def inputs(self):
        return self._inputs

    def outputs(self):
        return self._outputs

    def execute(self, context):
        for output in self._outputs:
            context.set(output, f"{self.name}_output")

    def __repr__(self):
        return f"SimpleBlock({self.name})"


def test_topological_sort_linear_chain():
    """Test sorting linear dependency chain: A -> B -> C."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])
    block_c = SimpleBlock("C", ["data_b"], ["data_c"])

    sorted_blocks = topological_sort([block_c, block_a, block_b])

    assert sorted_blocks == [block_a, block_b, block_c]


def test_topological_sort_parallel_blocks():
    """Test sorting parallel blocks with shared dependency."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])
    block_c = SimpleBlock("C", ["data_a"], ["data_c"])

    sorted_blocks = topological_sort([block_c, block_b, block_a])

    assert sorted_blocks[0] == block_a
    assert set(sorted_blocks[1:]) == {block_b, block_c}


def test_topological_sort_circular_dependency():
    """Test that circular dependencies are detected."""
    block_a = SimpleBlock("A", ["data_c"], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])
    block_c = SimpleBlock("C", ["data_b"], ["data_c"])

    with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
        topological_sort([block_a, block_b, block_c])


def test_topological_sort_duplicate_output():
    """Test that duplicate outputs are detected."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", [], ["data_a"])

    with pytest.raises(ValueError, match="Multiple blocks produce"):
        topological_sort([block_a, block_b])


def test_topological_sort_external_inputs():
    """Test blocks with external inputs (not produced by other blocks)."""
    block_a = SimpleBlock("A", ["external_data"], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])

    sorted_blocks = topological_sort([block_b, block_a])
    assert sorted_blocks == [block_a, block_b]


# =============================================================================
# BlockExecutor Tests
# =============================================================================

def test_block_executor_simple_chain():
    """Test executor with simple linear chain."""
    block_a = SimpleBlock("A", [], ["data_a"])
    block_b = SimpleBlock("B", ["data_a"], ["data_b"])

    context = BlockContext()
    BlockExecutor([block_a, block_b]).execute(context)

    assert context.get("data_a") == "A_output"
    assert context.get("data_b") == "B_output"


def test_block_executor_missing_input():
    """Test that executor validates required inputs."""
    block = SimpleBlock("A", ["missing_input"], ["output"])

    with pytest.raises(KeyError, match="requires input 'missing_input'"):
        BlockExecutor([block]).execute(BlockContext())


def test_block_executor_missing_output():
    """Test that executor validates block outputs."""

    class BadBlock(Block):
        def inputs(self):
            return []

        def outputs(self):
            return ["output"]

        def execute(self, context):
            pass

    with pytest.raises(ValueError, match="declared output 'output' but didn't write"):
        BlockExecutor([BadBlock()]).execute(BlockContext())


# =============================================================================
# CapTableSummaryBlock Tests
# =============================================================================

def test_cap_table_summary_block_basic():
    """Test CapTableSummaryBlock with a founder and an investor."""
    context = BlockContext()
    context.set("cap_table", founder_investor_cap_table())

    CapTableSummaryBlock().execute(context)

    summary = context.get("cap_table_summary")
    assert [entry.shareholder_id for entry in summary] == ["founder", "investor"]

    ownership_df = context.get("cap_table_ownership")
    assert len(ownership_df) == 2
    assert ownership_df.iloc[0]["shareholder_id"] == "founder"
    assert ownership_df.iloc[0]["ownership_pct"] == 90.0
    assert ownership_df.iloc[1]["share_class"] == "A"
    assert ownership_df.iloc[1]["ownership_pct"] == 10.0


def test_cap_table_summary_block_empty():
    context = BlockContext()
    context.set("cap_table", CapTable(company_name="Empty Corp"))

    CapTableSummaryBlock().execute(context)

    assert context.get("cap_table_summary") == []
    assert context.get("cap_table_ownership").empty


# =============================================================================
# WaterfallBlock Tests
# =============================================================================

def waterfall_context(exit_value="2000000", config=None):
    context = BlockContext()
    context.set("cap_table", founder_investor_cap_table())
    context.set("exit_value", Decimal(exit_value))
    context.set("preferences", [LiquidationPreference(round_id="series_a")])
    context.set("waterfall_config", config or WaterfallConfig())
    return context


def test_waterfall_block_basic():
    """Test WaterfallBlock on a 2M exit with a 1x non-participating preference."""
    context = waterfall_context()
    BlockExecutor([WaterfallBlock(), CapTableSummaryBlock()]).execute(context)

    payouts_df = context.get("waterfall_payouts")
    assert len(payouts_df) == 2
    by_holder = payouts_df.set_index("shareholder_id")
    assert by_holder.loc["investor", "total_payout"] == 1_000_000
    assert by_holder.loc["investor", "preference_payout"] == 1_000_000
    assert by_holder.loc["investor", "multiple"] == 1.0
    assert by_holder.loc["founder", "total_payout"] == 1_000_000
    assert by_holder.loc["founder", "equity_pct"] == 90.0
    assert by_holder.loc["founder", "distribution_pct"] == 50.0

    steps_df = context.get("waterfall_steps")
    assert list(steps_df["phase"]) == ["preference", "catch_up", "catch_up"]
    assert steps_df.iloc[-1]["is_total"]

    conversions_df = context.get("waterfall_conversions")
    assert list(conversions_df["decision"]) == ["keep_preference"]

    assert context.get("waterfall_result").effective_proceeds == Decimal("2000000")


def test_waterfall_block_requires_summary():
    """Test that WaterfallBlock alone fails without a summary in context."""
    with pytest.raises(KeyError, match="requires input 'cap_table_summary'"):
        BlockExecutor([WaterfallBlock()]).execute(waterfall_context())


def test_waterfall_block_zero_exit():
    context = waterfall_context(exit_value="0")
    BlockExecutor([CapTableSummaryBlock(), WaterfallBlock()]).execute(context)

    assert context.get("waterfall_steps").empty
    assert (context.get("waterfall_payouts")["total_payout"] == 0).all()
    assert (context.get("waterfall_payouts")["distribution_pct"] == 0).all()


# =============================================================================
# SensitivityBlock Tests
# =============================================================================

def test_sensitivity_block_groups():
    """Test bear/base/bull/stretch around a 2M exit.

    - Bear (1M): investor takes all
    - Base (2M): 1M / 1M
    - Bull (4M): investor 1M, founder 3M
    - Stretch (6M): investor 1M, founder 5M
    """
    context = waterfall_context()
    context.set("sensitivity_cfg", SensitivityCFG.from_multipliers(Decimal("2000000")))

    BlockExecutor([SensitivityBlock(), CapTableSummaryBlock()]).execute(context)

    groups_df = context.get("sensitivity_by_group")
    assert len(groups_df) == 16  # 4 scenarios x 4 groups

    founders = groups_df[groups_df["group"] == "Founders"].set_index("scenario_id")
    assert founders.loc["bear", "total_payout"] == 0
    assert founders.loc["base", "total_payout"] == 1_000_000
    assert founders.loc["bull", "total_payout"] == 3_000_000
    assert founders.loc["stretch", "total_payout"] == 5_000_000
    assert founders.loc["bear", "delta_vs_base"] == -1_000_000
    assert founders.loc["bull", "delta_vs_base"] == 2_000_000

    investors = groups_df[groups_df["group"] == "Investors"]
    assert (investors["total_payout"] == 1_000_000).all()
    assert (investors["delta_vs_base"] == 0).all()

    employees = groups_df[groups_df["group"] == "Employees"]
    assert (employees["total_payout"] == 0).all()

    holders_df = context.get("sensitivity_by_holder")
    assert len(holders_df) == 8
    assert set(holders_df["group"]) == {"Founders", "Investors"}
