"""Conversion analysis.

A non-participating holder receives the greater of its preference or its
as-converted pro-rata share. Before the stack is paid, each non-participating
class compares the preference it would be paid with its share of the proceeds
as ordinary shares; classes better off converting drop their preference and
take part in the catch-up instead.

Participating classes always keep their preference; their reported value is
the predicted preference plus the estimated participation, within any cap.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from ..schemas import ConversionDecision, LiquidationPreference, WaterfallConfig
from ..schemas.base import ZERO
from .ledger import WaterfallLedger
from .preference_stack import RoundClaim, predict_preference_payouts
from .strategies import PreferencePayoutStrategy

logger = logging.getLogger(__name__)

# Conversion must beat the preference by more than a cent
CONVERSION_EPSILON = Decimal("0.01")


def analyse_conversions(
    ledger: WaterfallLedger,
    round_claims: Sequence[RoundClaim],
    strategy: Optional[PreferencePayoutStrategy],
    config: WaterfallConfig,
) -> Tuple[List[RoundClaim], List[ConversionDecision]]:
    """Decide keep-vs-convert for every preference.

    Args:
        ledger: Run ledger; proceeds are taken from ``ledger.remaining``
        round_claims: Claims sorted by seniority
        strategy: Payout strategy, None for common-only
        config: Waterfall configuration

    Returns:
        (claims that keep their preference, one decision per claim)
    """
    proceeds = ledger.remaining
    total_fd = ledger.total_fully_diluted
    predicted = predict_preference_payouts(round_claims, strategy, proceeds) if strategy else {}
    # What the catch-up would share if every preference were honoured
    after_preferences = max(ZERO, proceeds - sum(predicted.values(), ZERO))

    kept: List[RoundClaim] = []
    decisions: List[ConversionDecision] = []

    for round_claim in round_claims:
        preference: LiquidationPreference = round_claim.preference
        class_shares = ledger.class_shares(round_claim.share_class)
        as_converted = class_shares / total_fd * proceeds if total_fd > 0 else ZERO
        as_preference = predicted.get(round_claim.round.id, ZERO)
        if preference.is_participating and total_fd > 0:
            as_preference += class_shares / total_fd * after_preferences
            if preference.cap is not None:
                as_preference = min(as_preference, round_claim.round.total_invested * preference.cap)

        if strategy is None:
            decision, reason = "convert", "Common-only mode"
        elif preference.is_participating:
            decision, reason = "keep_preference", "Participating preferred"
        elif config.allow_conversion and as_converted > as_preference + CONVERSION_EPSILON:
            decision = "convert"
            reason = f"Conversion ({as_converted:.0f}) > Preference ({as_preference:.0f})"
        else:
            decision = "keep_preference"
            reason = f"Preference ({as_preference:.0f}) >= Conversion ({as_converted:.0f})"

        if decision == "keep_preference":
            kept.append(round_claim)
        else:
            logger.debug("Class %s converts to ordinary: %s", round_claim.share_class, reason)

        decisions.append(ConversionDecision(
            share_class=round_claim.share_class,
            round_id=round_claim.round.id,
            class_shares=class_shares,
            value_as_preference=as_preference,
            value_as_converted=as_converted,
            decision=decision,
            reason=reason,
        ))

    return kept, decisions
