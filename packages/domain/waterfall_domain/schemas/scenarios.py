"""Exit scenarios and sensitivity configuration.

Scenario analysis runs the waterfall once per exit value and compares how
each shareholder group fares against a base case.
"""

from typing import Dict, List
from decimal import Decimal
from pydantic import Field, model_validator

from .base import DomainModel, MoneyAmount


# =============================================================================
# Exit Scenario
# =============================================================================

class ExitScenario(DomainModel):
    """One exit outcome to run through the waterfall.

    Common scenarios:
        - Bear: pessimistic valuation (e.g., 0.5x base)
        - Base: the valuation currently targeted
        - Bull: optimistic valuation (e.g., 2x base)
        - Stretch: best case (e.g., 3x base)
    """

    id: str = Field(
        description="Unique identifier for this scenario (e.g., 'base', 'bull')"
    )

    label: str = Field(
        description="Human-readable label (e.g., 'Base Case')"
    )

    exit_value: MoneyAmount = Field(
        description="Exit proceeds before M&A adjustments"
    )


# Role -> reporting group
ROLE_GROUPS: Dict[str, str] = {
    "founder": "Founders",
    "vc": "Investors",
    "angel": "Investors",
    "employee": "Employees",
    "advisor": "Employees",
    "other": "Other",
}


# =============================================================================
# Sensitivity Configuration
# =============================================================================

class SensitivityCFG(DomainModel):
    """Configuration for scenario/sensitivity analysis.

    Example:
        SensitivityCFG.from_multipliers(Decimal("20000000"))
        # bear 10M, base 20M, bull 40M, stretch 60M
    """

    scenarios: List[ExitScenario] = Field(
        description="Exit scenarios to run (at least one)",
        min_length=1,
    )

    base_scenario_id: str = Field(
        description="Scenario the others are compared against"
    )

    @model_validator(mode='after')
    def validate_base_scenario(self):
        """Base scenario must be one of the scenarios."""
        ids = [s.id for s in self.scenarios]
        if self.base_scenario_id not in ids:
            raise ValueError(
                f"base_scenario_id '{self.base_scenario_id}' not in scenarios {ids}"
            )
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate scenario ids: {ids}")
        return self

    @classmethod
    def from_multipliers(
        cls,
        base_exit_value: Decimal,
        bear: Decimal = Decimal("0.5"),
        bull: Decimal = Decimal("2.0"),
        stretch: Decimal = Decimal("3.0"),
    ) -> "SensitivityCFG":
        """Build bear/base/bull/stretch scenarios around a base exit value."""
        base_exit_value = Decimal(str(base_exit_value))
        return cls(
            scenarios=[
                ExitScenario(id="bear", label="Bear", exit_value=base_exit_value * Decimal(str(bear))),
                ExitScenario(id="base", label="Base", exit_value=base_exit_value),
                ExitScenario(id="bull", label="Bull", exit_value=base_exit_value * Decimal(str(bull))),
                ExitScenario(id="stretch", label="Stretch", exit_value=base_exit_value * Decimal(str(stretch))),
            ],
            base_scenario_id="base",
        )
