"""Preference stack resolution.

Pays liquidation preference claims in seniority order. Claims of a round are
``investment amount x multiple`` per investor. Tiers of equal seniority are
handed to a PreferencePayoutStrategy which decides how much each round gets;
inside a round, investors always share pro-rata to their claims.

Inconsistent input never aborts the run: a preference on a missing round, a
round with nothing invested, or an investment by an unknown shareholder simply
contributes no claim and is reported as a diagnostic.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import groupby
from typing import Dict, List, Sequence, Tuple

from ..schemas import CapTable, LiquidationPreference, Round
from ..schemas.base import ZERO
from .ledger import WaterfallLedger, scale_to_budget
from .strategies import PreferencePayoutStrategy

logger = logging.getLogger(__name__)


@dataclass
class RoundClaim:
    """Claims of one round under one preference."""

    preference: LiquidationPreference
    round: Round
    claims: List[Tuple[str, Decimal]] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((claim for _, claim in self.claims), ZERO)

    @property
    def share_class(self) -> str:
        return self.round.share_class

    def invested_by_holder(self) -> Dict[str, Decimal]:
        """Cash invested in the round by each claimant."""
        holders = {holder_id for holder_id, _ in self.claims}
        invested: Dict[str, Decimal] = {}
        for investment in self.round.investments:
            if investment.shareholder_id in holders:
                invested[investment.shareholder_id] = (
                    invested.get(investment.shareholder_id, ZERO) + investment.amount
                )
        return invested

    def split(self, paid: Decimal) -> Dict[str, Decimal]:
        """Split a payment across investors proportionally to their claims."""
        if paid >= self.total:
            amounts = [claim for _, claim in self.claims]
        else:
            amounts = scale_to_budget([claim for _, claim in self.claims], paid)
        split: Dict[str, Decimal] = {}
        for (holder_id, _), amount in zip(self.claims, amounts):
            split[holder_id] = split.get(holder_id, ZERO) + amount
        return split


def sort_by_seniority(preferences: Sequence[LiquidationPreference]) -> List[LiquidationPreference]:
    """Ascending seniority; ties keep their list order."""
    return sorted(preferences, key=lambda p: p.seniority)


def build_round_claims(
    cap_table: CapTable,
    preferences: Sequence[LiquidationPreference],
    ledger: WaterfallLedger,
) -> List[RoundClaim]:
    """Resolve preferences to round claims, sorted by seniority.

    Preferences whose round does not exist are dropped with a diagnostic.
    """
    round_claims = []
    for preference in sort_by_seniority(preferences):
        round_ = cap_table.get_round(preference.round_id)
        if round_ is None:
            ledger.diagnose(
                "missing_round",
                f"Preference references unknown round '{preference.round_id}'; skipped",
                round_id=preference.round_id,
            )
            continue

        round_claim = RoundClaim(preference=preference, round=round_)
        for investment in round_.investments:
            if ledger.account(investment.shareholder_id) is None:
                ledger.diagnose(
                    "unknown_shareholder",
                    f"Round '{round_.id}' investment by unknown shareholder "
                    f"'{investment.shareholder_id}' carries no claim",
                    round_id=round_.id,
                    shareholder_id=investment.shareholder_id,
                )
                continue
            round_claim.claims.append(
                (investment.shareholder_id, investment.amount * preference.multiple)
            )
        round_claims.append(round_claim)
    return round_claims


def predict_preference_payouts(
    round_claims: Sequence[RoundClaim],
    strategy: PreferencePayoutStrategy,
    proceeds: Decimal,
) -> Dict[str, Decimal]:
    """Preference paid per round id if the whole stack were honoured.

    Used by the conversion analysis; touches no ledger.
    """
    predicted: Dict[str, Decimal] = {}
    remaining = proceeds
    for _, tier in groupby(round_claims, key=lambda rc: rc.preference.seniority):
        tier = list(tier)
        paid = strategy.resolve([rc.total for rc in tier], remaining)
        for round_claim, amount in zip(tier, paid):
            predicted[round_claim.round.id] = predicted.get(round_claim.round.id, ZERO) + amount
            remaining -= amount
    return predicted


def resolve_preference_stack(
    ledger: WaterfallLedger,
    round_claims: Sequence[RoundClaim],
    strategy: PreferencePayoutStrategy,
) -> Decimal:
    """Pay the preference stack from the ledger's remaining proceeds.

    Classes of non-participating preferences are added to
    ``ledger.excluded_classes`` so the catch-up skips them. Capped
    participating preferences register each investor's remaining headroom
    (``cap x invested - preference paid``) in ``ledger.participation_caps``.

    Args:
        ledger: Run ledger (mutated)
        round_claims: Claims sorted by seniority (see ``build_round_claims``)
        strategy: How a seniority tier shares what is left

    Returns:
        Total preference paid
    """
    for round_claim in round_claims:
        preference = round_claim.preference
        if not preference.is_participating:
            ledger.excluded_classes.add(round_claim.share_class)
        elif preference.cap is not None:
            for holder_id, invested in round_claim.invested_by_holder().items():
                key = (round_claim.share_class, holder_id)
                ledger.participation_caps[key] = (
                    ledger.participation_caps.get(key, ZERO) + invested * preference.cap
                )

    total_paid = ZERO
    for seniority, tier in groupby(round_claims, key=lambda rc: rc.preference.seniority):
        if ledger.remaining <= 0:
            logger.debug("Proceeds exhausted before seniority %s", seniority)
            break

        payable = []
        for round_claim in tier:
            if round_claim.total > 0:
                payable.append(round_claim)
            else:
                ledger.diagnose(
                    "zero_claim",
                    f"Round '{round_claim.round.id}' has no preference claim; skipped",
                    round_id=round_claim.round.id,
                )
        if not payable:
            continue

        paid = strategy.resolve([rc.total for rc in payable], ledger.remaining)
        tier_paid = ZERO
        tier_breakdown: Dict[str, Decimal] = {}

        for round_claim, amount in zip(payable, paid):
            if amount <= 0:
                continue
            split = round_claim.split(amount)
            for holder_id, holder_amount in split.items():
                ledger.account(holder_id).preference += holder_amount
                key = (round_claim.share_class, holder_id)
                if round_claim.preference.cap is not None and key in ledger.participation_caps:
                    ledger.participation_caps[key] -= holder_amount
                tier_breakdown[holder_id] = tier_breakdown.get(holder_id, ZERO) + holder_amount

            ledger.remaining -= amount
            tier_paid += amount
            _record_round_step(ledger, round_claim, amount, split, strategy.tier_total_step)

        if strategy.tier_total_step and tier_paid > 0:
            ledger.add_step(
                "preference",
                f"Liquidation Preference Seniority {seniority} (Pari Passu)",
                tier_paid,
                description=f"Total pari passu allocation, seniority {seniority}",
                breakdown=ledger.breakdown(tier_breakdown),
                is_total=True,
                is_participating=any(rc.preference.is_participating for rc in payable),
            )
        total_paid += tier_paid

    return total_paid


def _record_round_step(
    ledger: WaterfallLedger,
    round_claim: RoundClaim,
    amount: Decimal,
    split: Dict[str, Decimal],
    pari_passu: bool,
) -> None:
    preference = round_claim.preference
    share_class = round_claim.share_class
    participating = preference.is_participating
    suffix = " (Pari Passu)" if pari_passu else ""

    ledger.add_step(
        "preference",
        f"Liquidation Preference {share_class}{suffix}",
        amount,
        description=(
            f"{round_claim.round.name}: {preference.multiple}x on "
            f"{round_claim.round.total_invested}"
            f"{' (Participating)' if participating else ''}"
        ),
        share_class=share_class,
        breakdown=ledger.breakdown(split),
        is_participating=participating,
    )

    if participating and not pari_passu:
        ledger.add_step(
            "preference",
            f"Total {share_class} Preference",
            amount,
            description=f"{share_class} preference paid; participates pro-rata in the catch-up",
            share_class=share_class,
            breakdown=ledger.breakdown(split),
            is_total=True,
            is_participating=True,
        )
