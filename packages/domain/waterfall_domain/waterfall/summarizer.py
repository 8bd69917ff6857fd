"""Reference capitalization summarizer.

Turns a CapTable into one CapTableSummaryEntry per shareholder: shares by
class, options by pool and cash invested. Callers with as-converted or
fully-diluted rules of their own pass their summary to the engine instead.
"""

import logging
from decimal import ROUND_FLOOR, Decimal
from typing import Dict, List

from ..schemas import CapTable, CapTableSummaryEntry
from ..schemas.base import ZERO

logger = logging.getLogger(__name__)


def summarize_cap_table(cap_table: CapTable) -> List[CapTableSummaryEntry]:
    """Summarize holdings per shareholder, in cap table order.

    Shares for an investment are its explicit share count; when that is zero
    and the round has a price per share, shares are derived from the amount
    (rounded down to whole shares).

    Investments and grants referencing unknown shareholders are ignored.
    """
    shares_by_class: Dict[str, Dict[str, Decimal]] = {s.id: {} for s in cap_table.shareholders}
    options_by_pool: Dict[str, Dict[str, Decimal]] = {s.id: {} for s in cap_table.shareholders}
    invested: Dict[str, Decimal] = {s.id: ZERO for s in cap_table.shareholders}

    for round_ in cap_table.rounds:
        for investment in round_.investments:
            holder_id = investment.shareholder_id
            if holder_id not in invested:
                logger.debug("Round %s: skipping unknown shareholder %s", round_.id, holder_id)
                continue

            shares = investment.shares
            if shares == 0 and investment.amount > 0 and round_.price_per_share > 0:
                shares = (investment.amount / round_.price_per_share).to_integral_value(ROUND_FLOOR)

            invested[holder_id] += investment.amount
            if shares > 0:
                by_class = shares_by_class[holder_id]
                by_class[round_.share_class] = by_class.get(round_.share_class, ZERO) + shares

    for grant in cap_table.option_grants:
        if grant.shareholder_id not in options_by_pool:
            logger.debug("Option grant %s: skipping unknown shareholder %s", grant.id, grant.shareholder_id)
            continue
        pools = options_by_pool[grant.shareholder_id]
        pools[grant.round_id] = pools.get(grant.round_id, ZERO) + grant.shares

    return [
        CapTableSummaryEntry(
            shareholder_id=shareholder.id,
            shareholder_name=shareholder.name,
            role=shareholder.role,
            shares_by_class=shares_by_class[shareholder.id],
            options_by_pool=options_by_pool[shareholder.id],
            total_shares=sum(shares_by_class[shareholder.id].values(), ZERO),
            total_options=sum(options_by_pool[shareholder.id].values(), ZERO),
            total_invested=invested[shareholder.id],
        )
        for shareholder in cap_table.shareholders
    ]
