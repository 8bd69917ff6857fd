"""Payout aggregation.

Sums carve-out, preference and participation per shareholder, nets option
exercise cost and computes the money multiple.
"""

from decimal import Decimal
from typing import List

from ..schemas import CapTable, WaterfallPayout
from ..schemas.base import ZERO
from .ledger import ShareholderAccount, WaterfallLedger


def option_strike_cost(
    account: ShareholderAccount,
    cap_table: CapTable,
    ledger: WaterfallLedger,
) -> Decimal:
    """Sum of options x strike price over the pools a shareholder holds."""
    cost = ZERO
    for round_id, options in account.entry.options_by_pool.items():
        pool_round = cap_table.get_round(round_id)
        if pool_round is None:
            ledger.diagnose(
                "missing_option_pool",
                f"Options of '{account.shareholder_id}' reference unknown pool '{round_id}'; "
                f"no strike cost",
                round_id=round_id,
                shareholder_id=account.shareholder_id,
            )
            continue
        cost += options * pool_round.effective_strike_price()
    return cost


def aggregate_payouts(
    ledger: WaterfallLedger,
    cap_table: CapTable,
    deduct_option_strike: bool = True,
) -> List[WaterfallPayout]:
    """Build one WaterfallPayout per shareholder.

    total_payout = max(0, gross - strike cost). Strike cost is netted without
    an in-the-money check; the floor keeps every payout non-negative.
    Multiple is 0 when the shareholder invested no cash.
    """
    total_fd = ledger.total_fully_diluted
    payouts = []

    for account in ledger.accounts.values():
        entry = account.entry
        strike_cost = option_strike_cost(account, cap_table, ledger) if deduct_option_strike else ZERO
        gross = account.carve_out + account.preference + account.participation
        total = max(ZERO, gross - strike_cost)

        payouts.append(WaterfallPayout(
            shareholder_id=entry.shareholder_id,
            shareholder_name=entry.shareholder_name,
            role=entry.role,
            carve_out_payout=account.carve_out,
            preference_payout=account.preference,
            participation_payout=account.participation,
            option_strike_cost=strike_cost,
            total_payout=total,
            total_invested=entry.total_invested,
            multiple=total / entry.total_invested if entry.total_invested > 0 else ZERO,
            equity_percentage=entry.fully_diluted_shares / total_fd if total_fd > 0 else ZERO,
        ))

    return payouts
