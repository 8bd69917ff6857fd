"""Carve-out distribution.

A carve-out reserves a percentage of the proceeds off the top, before the
preference stack, and shares it pro-rata by shares + options among a
beneficiary group.
"""

import logging
from decimal import Decimal
from typing import Dict, Optional, Set

from ..schemas.base import HUNDRED, ZERO
from .ledger import WaterfallLedger, display_class_order

logger = logging.getLogger(__name__)


BENEFICIARY_ROLES: Dict[str, Optional[Set[str]]] = {
    "everyone": None,
    "founders_only": {"founder"},
    "team": {"founder", "employee"},
}


def distribute_carve_out(
    ledger: WaterfallLedger,
    carve_out_percent: Decimal,
    beneficiary: str,
) -> Decimal:
    """Deduct the carve-out from remaining proceeds and credit beneficiaries.

    Emits one step per share class touched (options count as Ordinary) and a
    closing total step. When the beneficiaries hold nothing, the amount is
    still deducted and left unallocated.

    Args:
        ledger: Run ledger (mutated)
        carve_out_percent: Percent of effective proceeds (0 disables the phase)
        beneficiary: "everyone", "founders_only" or "team"

    Returns:
        Carve-out amount deducted
    """
    if carve_out_percent <= 0:
        return ZERO

    amount = ledger.effective_proceeds * carve_out_percent / HUNDRED
    balance = ledger.remaining
    ledger.remaining -= amount

    roles = BENEFICIARY_ROLES[beneficiary]
    eligible = [
        account for account in ledger.accounts.values()
        if roles is None or account.entry.role in roles
    ]
    total_eligible = sum((a.entry.fully_diluted_shares for a in eligible), ZERO)
    description = f"{carve_out_percent}% of proceeds to {beneficiary.replace('_', ' ')}"

    if total_eligible <= 0:
        ledger.unallocated += amount
        ledger.diagnose(
            "no_carve_out_beneficiaries",
            f"Carve-out of {amount} has no eligible shares ({beneficiary}); left unallocated",
        )
        ledger.add_step("carve_out", "Carve-Out", amount, description=description, is_total=True)
        return amount

    # class -> shareholder -> amount
    by_class: Dict[str, Dict[str, Decimal]] = {}
    class_shares: Dict[str, Dict[str, Decimal]] = {}
    totals: Dict[str, Decimal] = {}

    for account in eligible:
        holder_id = account.shareholder_id
        holdings = account.eligible_shares_by_class(excluded=set())
        for class_name, shares in holdings.items():
            share_amount = amount * shares / total_eligible
            by_class.setdefault(class_name, {})[holder_id] = share_amount
            class_shares.setdefault(class_name, {})[holder_id] = shares

        holder_amount = amount * account.entry.fully_diluted_shares / total_eligible
        account.carve_out += holder_amount
        totals[holder_id] = holder_amount

    for class_name in display_class_order(by_class):
        class_amount = sum(by_class[class_name].values(), ZERO)
        balance -= class_amount
        ledger.add_step(
            "carve_out",
            "Carve-Out",
            class_amount,
            remaining_balance=balance,
            description=f"{class_name} Shares",
            share_class=class_name,
            breakdown=ledger.breakdown(by_class[class_name], class_shares[class_name]),
        )

    ledger.add_step(
        "carve_out",
        "Carve-Out Total",
        amount,
        description=description,
        breakdown=ledger.breakdown(totals),
        is_total=True,
    )
    logger.debug("Carve-out %s split over %s eligible shares", amount, total_eligible)
    return amount
