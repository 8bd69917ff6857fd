"""Waterfall configuration.

The WaterfallConfig selects how the waterfall is run: carve-out size and
beneficiaries, the payout structure for the preference stack, and optional
M&A adjustments applied to the exit value before distribution.
"""

from typing import List, Literal, Optional, Tuple
from decimal import Decimal
from pydantic import Field

from .base import DomainModel, MoneyAmount, PercentPoints, HUNDRED, ZERO


CarveOutBeneficiary = Literal["everyone", "founders_only", "team"]
PayoutStructure = Literal["standard", "pari_passu", "common_only"]


# =============================================================================
# M&A Adjustments
# =============================================================================

class EscrowConfig(DomainModel):
    """Part of the price held in escrow at closing."""

    enabled: bool = Field(default=False)
    percentage: PercentPoints = Field(
        default=ZERO,
        description="% of exit value held in escrow"
    )
    duration_months: int = Field(default=12, ge=0)


class RWReserveConfig(DomainModel):
    """Representations & warranties reserve held back for claims."""

    enabled: bool = Field(default=False)
    percentage: PercentPoints = Field(
        default=ZERO,
        description="% of exit value held for R&W claims"
    )
    duration_months: int = Field(default=18, ge=0)
    claimed_amount: MoneyAmount = Field(
        default=ZERO,
        description="Amount of R&W claims made (informational)"
    )


class NWCAdjustmentConfig(DomainModel):
    """Net working capital true-up agreed in the SPA.

    Adjustment = actual - target. Positive is a seller bonus, negative a
    buyer credit.
    """

    enabled: bool = Field(default=False)
    target_nwc: Decimal = Field(default=ZERO)
    actual_nwc: Decimal = Field(default=ZERO)

    @property
    def adjustment(self) -> Decimal:
        if not self.enabled:
            return ZERO
        return self.actual_nwc - self.target_nwc


# =============================================================================
# Waterfall Configuration
# =============================================================================

class WaterfallConfig(DomainModel):
    """Configuration for one waterfall run.

    Payout structures:
        - standard: preferences paid one round at a time in seniority order
        - pari_passu: rounds sharing a seniority rank are paid proportionally
        - common_only: preferences ignored, everything is distributed pro-rata

    Example:
        WaterfallConfig(
            carve_out_percent=Decimal("5"),
            carve_out_beneficiary="team",
            payout_structure="pari_passu",
            escrow=EscrowConfig(enabled=True, percentage=Decimal("10")),
        )
    """

    carve_out_percent: PercentPoints = Field(
        default=ZERO,
        description="% of proceeds reserved off the top (0 disables the carve-out)"
    )

    carve_out_beneficiary: CarveOutBeneficiary = Field(
        default="everyone",
        description="Who shares the carve-out"
    )

    payout_structure: PayoutStructure = Field(
        default="standard",
        description="How the preference stack is resolved"
    )

    # M&A adjustments
    escrow: Optional[EscrowConfig] = Field(default=None)
    rw_reserve: Optional[RWReserveConfig] = Field(default=None)
    nwc_adjustment: Optional[NWCAdjustmentConfig] = Field(default=None)

    deduct_option_strike: bool = Field(
        default=True,
        description="Net option exercise cost (strike x quantity) against payouts"
    )

    allow_conversion: bool = Field(
        default=True,
        description="Let non-participating classes convert when pro-rata is worth more"
    )

    def adjustments(self, exit_value: Decimal) -> List[Tuple[str, str, Decimal]]:
        """List active M&A adjustments as (label, description, signed amount).

        Order: NWC true-up, escrow hold, R&W reserve.
        """
        items = []
        if self.nwc_adjustment and self.nwc_adjustment.adjustment != 0:
            amount = self.nwc_adjustment.adjustment
            items.append((
                "NWC Adjustment",
                "Seller bonus" if amount > 0 else "Buyer credit",
                amount,
            ))
        if self.escrow and self.escrow.enabled and self.escrow.percentage > 0:
            items.append((
                "Escrow Hold",
                f"{self.escrow.percentage}% held for {self.escrow.duration_months} months",
                -(exit_value * self.escrow.percentage / HUNDRED),
            ))
        if self.rw_reserve and self.rw_reserve.enabled and self.rw_reserve.percentage > 0:
            items.append((
                "R&W Reserve",
                f"{self.rw_reserve.percentage}% for R&W claims",
                -(exit_value * self.rw_reserve.percentage / HUNDRED),
            ))
        return items

    def calculate_effective_proceeds(self, exit_value: Decimal) -> Decimal:
        """Calculate proceeds available for distribution through the waterfall.

        Effective proceeds = exit value - escrow - R&W reserve + NWC adjustment,
        floored at zero.

        Example:
            Exit value: 10M
            Escrow: 10% = 1M
            R&W reserve: 5% = 0.5M
            NWC: actual 1.2M vs target 1M = +0.2M
            Effective proceeds: 8.7M
        """
        proceeds = exit_value + sum(
            (amount for _, _, amount in self.adjustments(exit_value)), ZERO
        )
        return max(ZERO, proceeds)
