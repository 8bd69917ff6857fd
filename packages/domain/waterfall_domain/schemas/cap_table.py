"""Cap table models consumed by the waterfall engine.

The CapTable is owned by the caller and only read by the engine. A
CapTableSummaryEntry is the per-shareholder view the engine works from:
shares by class, options by pool and total invested cash.
"""

from typing import Dict, List, Literal, Optional
from decimal import Decimal
from pydantic import Field, model_validator

from .base import (
    DomainModel,
    MoneyAmount,
    RoundId,
    ShareClassLabel,
    ShareCount,
    ShareholderId,
    ZERO,
)


ShareholderRole = Literal["founder", "angel", "vc", "employee", "advisor", "other"]


# =============================================================================
# Shareholders and Investments
# =============================================================================

class Shareholder(DomainModel):
    """A person or entity holding shares or options."""

    id: ShareholderId
    name: str = Field(description="Display name")
    role: ShareholderRole = Field(
        default="other",
        description="Role used for carve-out eligibility and group reporting"
    )


class Investment(DomainModel):
    """Cash invested by one shareholder in one round."""

    shareholder_id: ShareholderId
    amount: MoneyAmount = Field(
        default=ZERO,
        description="Cash invested in this round"
    )
    shares: ShareCount = Field(
        default=ZERO,
        description="Shares issued for this investment"
    )


# =============================================================================
# Rounds
# =============================================================================

class Round(DomainModel):
    """One financing event.

    The share class label groups shares for the waterfall: several rounds may
    issue into the same class. A round can also host an option pool, in which
    case ``strike_price`` is the exercise price of options granted from it.

    Note:
        ``liquidation_preference_multiple`` and ``is_participating`` are legacy
        fields kept for input compatibility. The authoritative preference terms
        are the separate LiquidationPreference list passed to the engine.
    """

    id: RoundId
    name: str = Field(description="Display name (e.g., 'Seed', 'Series A')")
    share_class: ShareClassLabel = Field(
        description="Share class issued by this round (e.g., 'Ordinary', 'A1')"
    )
    investments: List[Investment] = Field(default_factory=list)

    pre_money_valuation: MoneyAmount = Field(default=ZERO)
    price_per_share: MoneyAmount = Field(default=ZERO)

    strike_price: Optional[MoneyAmount] = Field(
        default=None,
        description="Exercise price for options granted from this round's pool"
    )
    option_strike_price: Optional[MoneyAmount] = Field(
        default=None,
        description="Alternative strike price field, used when strike_price is unset"
    )

    liquidation_preference_multiple: Optional[MoneyAmount] = Field(default=None)
    is_participating: Optional[bool] = Field(default=None)

    @property
    def total_invested(self) -> Decimal:
        return sum((inv.amount for inv in self.investments), ZERO)

    def effective_strike_price(self) -> Decimal:
        """Strike price per option for this pool (zero when not configured)."""
        if self.strike_price:
            return self.strike_price
        if self.option_strike_price:
            return self.option_strike_price
        return ZERO


class OptionGrant(DomainModel):
    """Options granted to a shareholder from a round's pool."""

    id: str
    shareholder_id: ShareholderId
    round_id: RoundId = Field(description="Round whose pool the options come from")
    shares: ShareCount = Field(description="Number of options granted")


# =============================================================================
# Cap Table
# =============================================================================

class CapTable(DomainModel):
    """Aggregate root: rounds, shareholders and option grants.

    Example:
        cap_table = CapTable(
            company_name="Acme",
            shareholders=[Shareholder(id="alice", name="Alice", role="founder")],
            rounds=[Round(id="founding", name="Founding", share_class="Ordinary",
                          investments=[Investment(shareholder_id="alice",
                                                  shares=Decimal("9000000"))])],
        )
    """

    company_name: str = Field(default="")
    shareholders: List[Shareholder] = Field(default_factory=list)
    rounds: List[Round] = Field(default_factory=list)
    option_grants: List[OptionGrant] = Field(default_factory=list)

    def get_round(self, round_id: str) -> Optional[Round]:
        return next((r for r in self.rounds if r.id == round_id), None)

    def get_shareholder(self, shareholder_id: str) -> Optional[Shareholder]:
        return next((s for s in self.shareholders if s.id == shareholder_id), None)


# =============================================================================
# Summary
# =============================================================================

class CapTableSummaryEntry(DomainModel):
    """Per-shareholder capitalization summary.

    Produced by a capitalization summarizer (see
    ``waterfall_domain.waterfall.summarizer``) or supplied by the caller.
    """

    shareholder_id: ShareholderId
    shareholder_name: str = Field(default="")
    role: ShareholderRole = Field(default="other")

    shares_by_class: Dict[str, ShareCount] = Field(default_factory=dict)
    options_by_pool: Dict[str, ShareCount] = Field(
        default_factory=dict,
        description="Round id of the pool -> options held"
    )

    total_shares: ShareCount = Field(default=ZERO)
    total_options: ShareCount = Field(default=ZERO)
    total_invested: MoneyAmount = Field(default=ZERO)

    @model_validator(mode='before')
    @classmethod
    def fill_totals(cls, data):
        """Derive totals from the per-class and per-pool maps when omitted."""
        if isinstance(data, dict):
            if "total_shares" not in data and data.get("shares_by_class"):
                data = {**data, "total_shares": sum(
                    Decimal(str(v)) for v in data["shares_by_class"].values()
                )}
            if "total_options" not in data and data.get("options_by_pool"):
                data = {**data, "total_options": sum(
                    Decimal(str(v)) for v in data["options_by_pool"].values()
                )}
        return data

    @model_validator(mode='after')
    def validate_share_totals(self):
        """Total shares must equal the sum of per-class shares."""
        class_total = sum(self.shares_by_class.values(), ZERO)
        if class_total != self.total_shares:
            raise ValueError(
                f"total_shares ({self.total_shares}) must equal the sum of "
                f"shares_by_class ({class_total}) for {self.shareholder_id}"
            )
        return self

    @property
    def fully_diluted_shares(self) -> Decimal:
        return self.total_shares + self.total_options
