"""Preference payout strategies.

A strategy decides how one seniority tier's claims share the proceeds left
when the tier is reached:

- SequentialPayout: claims are paid one after another in list order, each
  capped by what is left ("standard" structure).
- ProRataPayout: claims are pooled and every claim receives the same
  cents-on-the-dollar ratio ("pari passu" structure).

Both return the amount paid per claim; splitting a round's payment across its
investors is always proportional to their claims (see ``scale_to_budget``).
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Sequence

from ..schemas.base import ZERO
from .ledger import scale_to_budget


class PreferencePayoutStrategy(ABC):
    """Resolves claims against a remaining budget."""

    # Emit one subtotal step per seniority tier
    tier_total_step: bool = False

    @abstractmethod
    def resolve(self, claims: Sequence[Decimal], remaining: Decimal) -> List[Decimal]:
        """Amount paid for each claim.

        Args:
            claims: Claim per round, in payment order
            remaining: Proceeds available to the tier

        Returns:
            Paid amount per claim; never more than the claim, never more in
            total than ``remaining``
        """
        pass


class SequentialPayout(PreferencePayoutStrategy):
    """Pay claims in order until proceeds run out."""

    def resolve(self, claims: Sequence[Decimal], remaining: Decimal) -> List[Decimal]:
        paid = []
        left = max(ZERO, remaining)
        for claim in claims:
            amount = min(left, claim)
            paid.append(amount)
            left -= amount
        return paid


class ProRataPayout(PreferencePayoutStrategy):
    """Pool claims and pay each the same fraction."""

    tier_total_step = True

    def resolve(self, claims: Sequence[Decimal], remaining: Decimal) -> List[Decimal]:
        pooled = sum(claims, ZERO)
        if remaining >= pooled:
            return list(claims)
        return scale_to_budget(list(claims), max(ZERO, remaining))


def strategy_for(payout_structure: str) -> Optional[PreferencePayoutStrategy]:
    """Strategy for a payout structure, or None when preferences are bypassed."""
    if payout_structure == "common_only":
        return None
    if payout_structure == "pari_passu":
        return ProRataPayout()
    if payout_structure == "standard":
        return SequentialPayout()
    raise ValueError(f"Unknown payout structure: {payout_structure}")
