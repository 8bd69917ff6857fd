"""Base classes and type system for waterfall domain models.

This module provides the foundational types, validators, and base classes
used throughout the waterfall schema system.
"""

from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Support for Decimal types
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,  # Allow mutation for computed fields
        validate_assignment=True,  # Validate on field assignment
        use_enum_values=True,  # Use enum values in JSON
        arbitrary_types_allowed=True,  # Allow Decimal, etc.
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

ShareCount = Annotated[
    Decimal,
    Field(ge=0, description="Number of shares or options (non-negative)")
]

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

SignedAmount = Annotated[
    Decimal,
    Field(description="Currency amount that may be negative (adjustments, deltas)")
]

PercentPoints = Annotated[
    Decimal,
    Field(ge=0, le=100, description="Percentage in points (0 to 100)")
]

Multiple = Annotated[
    Decimal,
    Field(ge=0, description="Multiplier value (e.g., 2x = 2.0)")
]

Seniority = Annotated[
    int,
    Field(ge=1, description="Payment rank (1 = most senior, paid first)")
]


# =============================================================================
# ID Conventions
# =============================================================================

ShareholderId = Annotated[
    str,
    Field(min_length=1, description="Shareholder identifier (UUID or user-defined)")
]

RoundId = Annotated[
    str,
    Field(min_length=1, description="Financing round identifier (e.g., 'seed', 'series_a')")
]

ShareClassLabel = Annotated[
    str,
    Field(min_length=1, description="Share class label (e.g., 'Ordinary', 'A1', 'B')")
]


# Options are always bucketed into this class for display and catch-up.
ORDINARY_CLASS = "Ordinary"

ZERO = Decimal("0")
HUNDRED = Decimal("100")
