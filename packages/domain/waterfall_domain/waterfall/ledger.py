"""Shared mutable state for one waterfall run.

Every phase reads and reduces ``remaining`` and credits the per-shareholder
accounts; steps are appended to the trace and never modified afterwards.
A ledger lives for exactly one ``calculate_waterfall`` call.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..schemas import (
    ORDINARY_CLASS,
    CapTableSummaryEntry,
    ShareholderAmount,
    WaterfallDiagnostic,
    WaterfallStep,
)
from ..schemas.base import ZERO

logger = logging.getLogger(__name__)


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal input to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def display_class_order(classes: Iterable[str]) -> List[str]:
    """Order share classes for display: reverse-alphabetical, Ordinary last."""
    ordered = sorted(set(classes), reverse=True)
    if ORDINARY_CLASS in ordered:
        ordered.remove(ORDINARY_CLASS)
        ordered.append(ORDINARY_CLASS)
    return ordered


def scale_to_budget(weights: List[Decimal], budget: Decimal) -> List[Decimal]:
    """Split ``budget`` proportionally to ``weights``.

    Returns zeros when the weights sum to zero, so callers never divide by zero.
    """
    total = sum(weights, ZERO)
    if total <= 0:
        return [ZERO for _ in weights]
    return [budget * weight / total for weight in weights]


@dataclass
class ShareholderAccount:
    """Running totals for one shareholder."""

    entry: CapTableSummaryEntry
    carve_out: Decimal = ZERO
    preference: Decimal = ZERO
    participation: Decimal = ZERO

    @property
    def shareholder_id(self) -> str:
        return self.entry.shareholder_id

    @property
    def name(self) -> str:
        return self.entry.shareholder_name

    def eligible_shares_by_class(self, excluded: Set[str]) -> Dict[str, Decimal]:
        """Shares that share in pro-rata proceeds, options bucketed into Ordinary."""
        by_class: Dict[str, Decimal] = {}
        for class_name, shares in self.entry.shares_by_class.items():
            if shares > 0 and class_name not in excluded:
                by_class[class_name] = by_class.get(class_name, ZERO) + shares
        if self.entry.total_options > 0:
            by_class[ORDINARY_CLASS] = by_class.get(ORDINARY_CLASS, ZERO) + self.entry.total_options
        return by_class


@dataclass
class WaterfallLedger:
    """Remaining proceeds, shareholder accounts, step trace and diagnostics."""

    effective_proceeds: Decimal
    remaining: Decimal
    accounts: Dict[str, ShareholderAccount] = field(default_factory=dict)
    steps: List[WaterfallStep] = field(default_factory=list)
    diagnostics: List[WaterfallDiagnostic] = field(default_factory=list)
    excluded_classes: Set[str] = field(default_factory=set)
    unallocated: Decimal = ZERO
    # (share class, shareholder id) -> participation still allowed under a cap
    participation_caps: Dict[Tuple[str, str], Decimal] = field(default_factory=dict)

    @classmethod
    def open(
        cls,
        summary: Iterable[CapTableSummaryEntry],
        effective_proceeds: Decimal,
    ) -> "WaterfallLedger":
        accounts = {entry.shareholder_id: ShareholderAccount(entry) for entry in summary}
        return cls(
            effective_proceeds=effective_proceeds,
            remaining=effective_proceeds,
            accounts=accounts,
        )

    # -------------------------------------------------------------------------
    # Trace
    # -------------------------------------------------------------------------

    def add_step(
        self,
        phase: str,
        label: str,
        amount: Decimal,
        remaining_balance: Optional[Decimal] = None,
        breakdown: Tuple[ShareholderAmount, ...] = (),
        **kwargs,
    ) -> WaterfallStep:
        step = WaterfallStep(
            sequence=len(self.steps) + 1,
            phase=phase,
            label=label,
            amount=amount,
            remaining_balance=self.remaining if remaining_balance is None else remaining_balance,
            breakdown=breakdown,
            **kwargs,
        )
        self.steps.append(step)
        logger.debug("Step %d %s: %s (remaining %s)", step.sequence, label, amount, step.remaining_balance)
        return step

    def breakdown(
        self,
        amounts: Mapping[str, Decimal],
        shares: Optional[Mapping[str, Decimal]] = None,
    ) -> Tuple[ShareholderAmount, ...]:
        """Per-shareholder breakdown, largest amount first, zero rows dropped."""
        rows = [
            ShareholderAmount(
                shareholder_id=shareholder_id,
                shareholder_name=self.accounts[shareholder_id].name if shareholder_id in self.accounts else "",
                amount=amount,
                shares=shares.get(shareholder_id) if shares else None,
            )
            for shareholder_id, amount in amounts.items()
            if amount > 0
        ]
        rows.sort(key=lambda row: row.amount, reverse=True)
        return tuple(rows)

    def diagnose(self, code: str, message: str, **refs) -> None:
        """Record an input the engine skipped."""
        self.diagnostics.append(WaterfallDiagnostic(code=code, message=message, **refs))
        logger.warning("Waterfall diagnostic [%s]: %s", code, message)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def account(self, shareholder_id: str) -> Optional[ShareholderAccount]:
        return self.accounts.get(shareholder_id)

    @property
    def total_fully_diluted(self) -> Decimal:
        return sum((a.entry.fully_diluted_shares for a in self.accounts.values()), ZERO)

    def class_shares(self, class_name: str) -> Decimal:
        """Total shares held in a class across all shareholders."""
        return sum(
            (a.entry.shares_by_class.get(class_name, ZERO) for a in self.accounts.values()),
            ZERO,
        )
