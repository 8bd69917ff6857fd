"""Waterfall domain schemas.

This package contains all Pydantic models for the waterfall domain layer:
- Base types and conventions
- Cap table (shareholders, rounds, investments, option grants, summary)
- Liquidation preference rules
- Waterfall configuration and M&A adjustments
- Waterfall results (steps, payouts, conversion decisions, diagnostics)
- Exit scenarios for sensitivity analysis

Usage:
    from waterfall_domain.schemas import (
        CapTable, Round, Investment, Shareholder,
        LiquidationPreference, WaterfallConfig, WaterfallResult,
    )
"""

# Base types
from .base import (
    DomainModel,
    ShareCount,
    MoneyAmount,
    SignedAmount,
    PercentPoints,
    Multiple,
    Seniority,
    ShareholderId,
    RoundId,
    ShareClassLabel,
    ORDINARY_CLASS,
)

# Cap table
from .cap_table import (
    ShareholderRole,
    Shareholder,
    Investment,
    Round,
    OptionGrant,
    CapTable,
    CapTableSummaryEntry,
)

# Preferences
from .preferences import (
    PreferenceType,
    LiquidationPreference,
)

# Configuration
from .config import (
    CarveOutBeneficiary,
    PayoutStructure,
    EscrowConfig,
    RWReserveConfig,
    NWCAdjustmentConfig,
    WaterfallConfig,
)

# Results
from .results import (
    StepPhase,
    ShareholderAmount,
    WaterfallStep,
    WaterfallPayout,
    ConversionDecision,
    WaterfallDiagnostic,
    WaterfallResult,
)

# Scenarios
from .scenarios import (
    ExitScenario,
    SensitivityCFG,
    ROLE_GROUPS,
)

__all__ = [
    # Base types
    "DomainModel",
    "ShareCount",
    "MoneyAmount",
    "SignedAmount",
    "PercentPoints",
    "Multiple",
    "Seniority",
    "ShareholderId",
    "RoundId",
    "ShareClassLabel",
    "ORDINARY_CLASS",
    # Cap table
    "ShareholderRole",
    "Shareholder",
    "Investment",
    "Round",
    "OptionGrant",
    "CapTable",
    "CapTableSummaryEntry",
    # Preferences
    "PreferenceType",
    "LiquidationPreference",
    # Configuration
    "CarveOutBeneficiary",
    "PayoutStructure",
    "EscrowConfig",
    "RWReserveConfig",
    "NWCAdjustmentConfig",
    "WaterfallConfig",
    # Results
    "StepPhase",
    "ShareholderAmount",
    "WaterfallStep",
    "WaterfallPayout",
    "ConversionDecision",
    "WaterfallDiagnostic",
    "WaterfallResult",
    # Scenarios
    "ExitScenario",
    "SensitivityCFG",
    "ROLE_GROUPS",
]
