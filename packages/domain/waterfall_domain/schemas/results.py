"""Waterfall output models.

A waterfall run produces an ordered, append-only trace of WaterfallSteps and
one WaterfallPayout per shareholder. Steps are frozen once created; their
order is the authoritative distribution order.
"""

from typing import List, Literal, Optional, Tuple
from decimal import Decimal
from pydantic import ConfigDict, Field

from .base import DomainModel, MoneyAmount, SignedAmount, ShareCount, ZERO


StepPhase = Literal["adjustment", "carve_out", "preference", "catch_up"]

DiagnosticCode = Literal[
    "missing_round",
    "unknown_shareholder",
    "zero_claim",
    "no_carve_out_beneficiaries",
    "no_participating_shares",
    "missing_option_pool",
    "negative_effective_proceeds",
    "capped_residual",
]


# =============================================================================
# Steps
# =============================================================================

class ShareholderAmount(DomainModel):
    """One shareholder's share of a step."""

    model_config = ConfigDict(frozen=True)

    shareholder_id: str
    shareholder_name: str = ""
    amount: MoneyAmount
    shares: Optional[ShareCount] = Field(
        default=None,
        description="Shares/options the amount was computed from (pro-rata steps only)"
    )


class WaterfallStep(DomainModel):
    """One line of the audit trace.

    Attributes:
        sequence: 1-based position in the trace
        phase: Which phase produced the step
        label: Human label (e.g., "Liquidation Preference A1", "Carve-Out")
        share_class: Share class tag, if the step concerns a single class
        amount: Amount distributed (or adjusted) in this step
        remaining_balance: Proceeds left after the step
        breakdown: Per-shareholder amounts
        is_total: Subtotal row summarising preceding steps of the same phase
        is_participating: Step concerns a participating preference
    """

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=1)
    phase: StepPhase
    label: str
    description: str = ""
    share_class: Optional[str] = None
    amount: SignedAmount
    remaining_balance: SignedAmount
    breakdown: Tuple[ShareholderAmount, ...] = ()
    is_total: bool = False
    is_participating: bool = False


# =============================================================================
# Payouts
# =============================================================================

class WaterfallPayout(DomainModel):
    """Final payout for one shareholder.

    total_payout = max(0, carve_out + preference + participation - option_strike_cost)
    multiple = total_payout / total_invested, or 0 when nothing was invested.

    Note:
        Option holders with zero cash invested always show a multiple of 0,
        and strike cost is netted without checking whether options are in the
        money.
    """

    shareholder_id: str
    shareholder_name: str = ""
    role: str = "other"

    carve_out_payout: MoneyAmount = ZERO
    preference_payout: MoneyAmount = ZERO
    participation_payout: MoneyAmount = ZERO
    option_strike_cost: MoneyAmount = ZERO

    total_payout: MoneyAmount = ZERO
    total_invested: MoneyAmount = ZERO
    multiple: Decimal = ZERO
    equity_percentage: Decimal = Field(
        default=ZERO,
        description="Fully diluted ownership as a fraction (0.15 = 15%)"
    )

    @property
    def gross_payout(self) -> Decimal:
        return self.carve_out_payout + self.preference_payout + self.participation_payout


# =============================================================================
# Side outputs
# =============================================================================

class ConversionDecision(DomainModel):
    """Keep-preference vs convert decision for one preference.

    For participating classes ``value_as_preference`` is the predicted
    preference plus the estimated pro-rata participation.
    """

    share_class: str
    round_id: str
    class_shares: ShareCount
    value_as_preference: MoneyAmount
    value_as_converted: MoneyAmount
    decision: Literal["keep_preference", "convert"]
    reason: str


class WaterfallDiagnostic(DomainModel):
    """An input the engine skipped instead of failing on."""

    code: DiagnosticCode
    message: str
    round_id: Optional[str] = None
    shareholder_id: Optional[str] = None


class WaterfallResult(DomainModel):
    """Everything one waterfall run produces."""

    steps: List[WaterfallStep] = Field(default_factory=list)
    payouts: List[WaterfallPayout] = Field(default_factory=list)
    conversion_analysis: List[ConversionDecision] = Field(default_factory=list)
    diagnostics: List[WaterfallDiagnostic] = Field(default_factory=list)

    exit_value: MoneyAmount = ZERO
    effective_proceeds: MoneyAmount = ZERO
    unallocated_proceeds: MoneyAmount = Field(
        default=ZERO,
        description="Proceeds deducted but paid to nobody (empty carve-out group, "
                    "no participating shares)"
    )

    def get_payout(self, shareholder_id: str) -> Optional[WaterfallPayout]:
        return next((p for p in self.payouts if p.shareholder_id == shareholder_id), None)

    @property
    def total_distributed(self) -> Decimal:
        """Carve-out + preference + participation across all shareholders."""
        return sum((p.gross_payout for p in self.payouts), ZERO)
