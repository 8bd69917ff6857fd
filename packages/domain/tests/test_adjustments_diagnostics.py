"""Tests for M&A adjustments and inconsistent input handling.

Tests cover:
1. Escrow, R&W reserve and NWC adjustment steps ahead of distribution
2. Carve-out computed on effective proceeds
3. Diagnostics for inputs the engine skips instead of failing on
"""

import logging
from decimal import Decimal

from waterfall_domain import calculate_waterfall
from waterfall_domain.schemas import (
    CapTable,
    EscrowConfig,
    Investment,
    LiquidationPreference,
    NWCAdjustmentConfig,
    Round,
    RWReserveConfig,
    Shareholder,
    WaterfallConfig,
)


def founder_investor_cap_table():
    """Founder 9M Ordinary; investor 1M A shares for 1M."""
    return CapTable(
        company_name="Adjusted Co",
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


A_PREF = LiquidationPreference(round_id="series_a")


class TestAdjustments:
    """Test M&A adjustments applied before the waterfall."""

    def adjusted_config(self, **kwargs):
        return WaterfallConfig(
            escrow=EscrowConfig(enabled=True, percentage=Decimal("10")),
            rw_reserve=RWReserveConfig(enabled=True, percentage=Decimal("5")),
            nwc_adjustment=NWCAdjustmentConfig(
                enabled=True,
                target_nwc=Decimal("1000000"),
                actual_nwc=Decimal("1200000"),
            ),
            **kwargs,
        )

    def test_adjustment_steps_lead_the_trace(self):
        """Test exit 10M: +0.2M NWC, -1M escrow, -0.5M R&W -> 8.7M effective."""
        result = calculate_waterfall(
            founder_investor_cap_table(), Decimal("10000000"), [A_PREF], self.adjusted_config()
        )

        assert result.exit_value == Decimal("10000000")
        assert result.effective_proceeds == Decimal("8700000")

        adjustments = [s for s in result.steps if s.phase == "adjustment"]
        assert [s.label for s in adjustments] == ["NWC Adjustment", "Escrow Hold", "R&W Reserve"]
        assert [s.amount for s in adjustments] == [
            Decimal("200000"), Decimal("-1000000"), Decimal("-500000"),
        ]
        assert [s.remaining_balance for s in adjustments] == [
            Decimal("10200000"), Decimal("9200000"), Decimal("8700000"),
        ]
        assert adjustments[0].description == "Seller bonus"
        assert result.steps[:3] == adjustments

    def test_distribution_uses_effective_proceeds(self):
        result = calculate_waterfall(
            founder_investor_cap_table(), Decimal("10000000"), [A_PREF], self.adjusted_config()
        )

        assert result.get_payout("investor").total_payout == Decimal("1000000")
        assert result.get_payout("founder").total_payout == Decimal("7700000")
        assert result.total_distributed == Decimal("8700000")

    def test_carve_out_on_effective_proceeds(self):
        config = self.adjusted_config(carve_out_percent=Decimal("10"), carve_out_beneficiary="founders_only")
        result = calculate_waterfall(founder_investor_cap_table(), Decimal("10000000"), [A_PREF], config)

        assert result.get_payout("founder").carve_out_payout == Decimal("870000")

    def test_buyer_credit_description(self):
        config = WaterfallConfig(
            nwc_adjustment=NWCAdjustmentConfig(
                enabled=True, target_nwc=Decimal("500000"), actual_nwc=Decimal("400000"),
            ),
        )
        result = calculate_waterfall(founder_investor_cap_table(), Decimal("2000000"), [A_PREF], config)

        assert result.steps[0].description == "Buyer credit"
        assert result.effective_proceeds == Decimal("1900000")

    def test_negative_effective_proceeds_floored(self):
        config = WaterfallConfig(
            nwc_adjustment=NWCAdjustmentConfig(
                enabled=True, target_nwc=Decimal("5000000"), actual_nwc=Decimal("0"),
            ),
        )
        result = calculate_waterfall(founder_investor_cap_table(), Decimal("1000000"), [A_PREF], config)

        assert result.effective_proceeds == Decimal("0")
        assert [d.code for d in result.diagnostics] == ["negative_effective_proceeds"]
        assert all(p.total_payout == 0 for p in result.payouts)


class TestDiagnostics:
    """Test that inconsistent input is skipped and reported."""

    def test_preference_on_missing_round(self, caplog):
        preferences = [LiquidationPreference(round_id="series_z"), A_PREF]
        with caplog.at_level(logging.WARNING, logger="waterfall_domain"):
            result = calculate_waterfall(founder_investor_cap_table(), Decimal("2000000"), preferences)

        assert [d.code for d in result.diagnostics] == ["missing_round"]
        assert result.diagnostics[0].round_id == "series_z"
        assert "series_z" in caplog.text
        assert result.get_payout("investor").total_payout == Decimal("1000000")

    def test_unknown_shareholder_carries_no_claim(self):
        cap_table = founder_investor_cap_table()
        cap_table.rounds[1].investments.append(
            Investment(shareholder_id="stranger", amount=Decimal("500000"), shares=Decimal("500000"))
        )

        result = calculate_waterfall(cap_table, Decimal("2000000"), [A_PREF])

        diagnostic = result.diagnostics[0]
        assert diagnostic.code == "unknown_shareholder"
        assert diagnostic.shareholder_id == "stranger"
        assert result.get_payout("stranger") is None
        assert result.get_payout("investor").total_payout == Decimal("1000000")
        assert result.total_distributed + result.unallocated_proceeds == Decimal("2000000")

    def test_round_without_investments(self):
        cap_table = founder_investor_cap_table()
        cap_table.rounds.append(Round(id="seed", name="Seed", share_class="Seed"))
        preferences = [LiquidationPreference(round_id="seed"), A_PREF]

        result = calculate_waterfall(cap_table, Decimal("2000000"), preferences)

        assert [d.code for d in result.diagnostics] == ["zero_claim"]
        assert result.get_payout("investor").total_payout == Decimal("1000000")
        assert result.get_payout("founder").total_payout == Decimal("1000000")

    def test_no_participating_shares_leaves_residual(self):
        """Test residual after preferences with nobody left to share it."""
        cap_table = CapTable(
            shareholders=[Shareholder(id="investor", name="Investor", role="vc")],
            rounds=[
                Round(id="series_a", name="Series A", share_class="A",
                      investments=[Investment(shareholder_id="investor", amount=Decimal("1000000"),
                                              shares=Decimal("1000000"))]),
            ],
        )
        config = WaterfallConfig(allow_conversion=False)
        result = calculate_waterfall(cap_table, Decimal("5000000"), [A_PREF], config)

        assert result.get_payout("investor").total_payout == Decimal("1000000")
        assert result.unallocated_proceeds == Decimal("4000000")
        assert [d.code for d in result.diagnostics] == ["no_participating_shares"]
        assert not any(step.phase == "catch_up" for step in result.steps)
