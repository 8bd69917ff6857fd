"""Catch-up / pro-rata distribution.

Whatever is left after the preference stack goes to every participating share
pro-rata: all shares except those of non-participating classes, plus every
option (bucketed into the Ordinary class). Holders under a participation cap
stop at their cap and the excess is spread over the other eligible shares.
This phase is terminal.
"""

import logging
from decimal import Decimal
from typing import Dict, Mapping, Tuple

from ..schemas.base import ZERO
from .ledger import WaterfallLedger, display_class_order

logger = logging.getLogger(__name__)

Holding = Tuple[str, str]  # (share class, shareholder id)


def allocate_with_caps(
    holdings: Mapping[Holding, Decimal],
    pool: Decimal,
    caps: Mapping[Holding, Decimal],
) -> Tuple[Dict[Holding, Decimal], Decimal]:
    """Split ``pool`` pro-rata by shares, never paying a holding past its cap.

    Holdings whose pro-rata share would reach their cap are paid the cap and
    drop out; the rest is re-split over the remaining holdings until nothing
    binds.

    Returns:
        (amount per holding, amount nobody could take)
    """
    allocated: Dict[Holding, Decimal] = {}
    active = {holding: shares for holding, shares in holdings.items() if shares > 0}
    left = pool

    while active and left > 0:
        total = sum(active.values(), ZERO)
        tentative = {holding: left * shares / total for holding, shares in active.items()}
        capped = [
            holding for holding, amount in tentative.items()
            if holding in caps and amount >= max(ZERO, caps[holding])
        ]
        if not capped:
            allocated.update(tentative)
            left = ZERO
            break
        for holding in capped:
            amount = max(ZERO, caps[holding])
            allocated[holding] = amount
            left -= amount
            del active[holding]

    return allocated, left


def distribute_catch_up(ledger: WaterfallLedger) -> Decimal:
    """Distribute remaining proceeds pro-rata over participating shares.

    Runs only if proceeds remain and participating shares exist. With no
    participating shares, or every holder at its cap, the residual stays
    undistributed.

    Returns:
        Amount distributed
    """
    if ledger.remaining <= 0:
        return ZERO

    holdings: Dict[Holding, Decimal] = {}
    for account in ledger.accounts.values():
        for class_name, shares in account.eligible_shares_by_class(ledger.excluded_classes).items():
            holdings[(class_name, account.shareholder_id)] = shares

    total_eligible = sum(holdings.values(), ZERO)
    if total_eligible <= 0:
        ledger.diagnose(
            "no_participating_shares",
            f"{ledger.remaining} left after preferences but no participating shares; undistributed",
        )
        return ZERO

    pool = ledger.remaining
    allocated, residual = allocate_with_caps(holdings, pool, ledger.participation_caps)

    balance = pool
    totals: Dict[str, Decimal] = {}
    total_shares: Dict[str, Decimal] = {}

    for class_name in display_class_order(cls for cls, _ in holdings):
        shares = {holder_id: s for (cls, holder_id), s in holdings.items() if cls == class_name}
        amounts = {holder_id: allocated.get((class_name, holder_id), ZERO) for holder_id in shares}
        class_amount = sum(amounts.values(), ZERO)
        balance -= class_amount

        for holder_id, amount in amounts.items():
            ledger.account(holder_id).participation += amount
            totals[holder_id] = totals.get(holder_id, ZERO) + amount
            total_shares[holder_id] = total_shares.get(holder_id, ZERO) + shares[holder_id]

        capped = any(
            (class_name, holder_id) in ledger.participation_caps
            and amounts[holder_id] >= max(ZERO, ledger.participation_caps[(class_name, holder_id)])
            for holder_id in shares
        )
        ledger.add_step(
            "catch_up",
            "Pro-Rata Distribution",
            class_amount,
            remaining_balance=max(ZERO, balance),
            description=f"{class_name} Shares{' (Capped)' if capped else ''}",
            share_class=class_name,
            breakdown=ledger.breakdown(amounts, shares),
        )

    distributed = pool - residual
    ledger.remaining = residual
    if residual > 0:
        ledger.diagnose(
            "capped_residual",
            f"{residual} left after every participating holder reached its cap; undistributed",
        )

    ledger.add_step(
        "catch_up",
        "Pro-Rata Distribution Total",
        distributed,
        description=f"{distributed} over {total_eligible} participating shares",
        breakdown=ledger.breakdown(totals, total_shares),
        is_total=True,
    )
    logger.debug("Catch-up distributed %s over %s shares", distributed, total_eligible)
    return distributed
