"""Liquidation preference rules.

In a liquidation event (acquisition or dissolution), shareholders with
liquidation preferences get paid before others. Each rule points at a round
and applies to every investment made in that round.
"""

from typing import Literal, Optional
from decimal import Decimal
from pydantic import Field

from .base import DomainModel, Multiple, RoundId, Seniority


PreferenceType = Literal["participating", "non_participating"]


class LiquidationPreference(DomainModel):
    """One liquidation preference rule.

    The multiple determines how much investors receive relative to their
    investment before common/ordinary shareholders receive anything.

    Example:
        2x liquidation preference means the investor gets 2x their investment
        before ordinary shareholders get anything.

    Types:
        - Non-participating: gets the preference OR the pro-rata share,
          whichever is greater. Never both.

        - Participating: gets the preference AND a pro-rata share of what is
          left ("double dip").

    Seniority:
        - Rank 1 = highest priority (gets paid first)
        - Higher ranks get paid after lower ranks
        - Several rules may share a rank; in pari passu mode they share
          proceeds proportionally to their claims

    Cap:
        - Participating only: each investor's preference plus participation
          is limited to ``cap x invested``; the excess goes to the other
          participating shares
        - Ignored for non-participating rules

    Convention: one rule per round.
    """

    round_id: RoundId = Field(
        description="Round whose investments carry this preference"
    )

    multiple: Multiple = Field(
        default=Decimal("1.0"),
        description="Liquidation preference multiple (1.0 = 1x, 2.0 = 2x, etc.)"
    )

    type: PreferenceType = Field(
        default="non_participating",
        description="Participation after the preference is paid"
    )

    seniority: Seniority = Field(
        default=1,
        description="Priority in waterfall (1 = highest, increasing = lower priority)"
    )

    cap: Optional[Multiple] = Field(
        default=None,
        description="Participation cap as a multiple of investment (participating only; "
                    "e.g., 3.0 = preference + participation never exceed 3x invested)"
    )

    @property
    def is_participating(self) -> bool:
        return self.type == "participating"
