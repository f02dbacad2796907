"""Type definitions for entitlement calculations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID

CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents), half-up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal) -> str:
    """Render a number for formula text: 6000, 0.5, 18.75."""
    normalized = amount.normalize()
    return format(normalized, "f")


class TerminationReason(str, Enum):
    """Why employment ended."""

    RESIGNATION = "resignation"
    TERMINATION = "termination"


@dataclass
class ContributionResult:
    """Insurance contribution split for one salary."""

    employee_contribution: Decimal
    employer_contribution: Decimal
    total_contribution: Decimal
    is_valid: bool


@dataclass
class TerminationContext:
    """Inputs for a termination entitlement calculation."""

    last_salary: Decimal
    years_of_service: Decimal = Decimal("1")
    reason: TerminationReason = TerminationReason.RESIGNATION
    benefit_ids: list[UUID] = field(default_factory=list)
    employee_id: str | None = None


@dataclass
class BenefitCalculation:
    """Breakdown line for one approved benefit."""

    benefit_id: UUID | None
    benefit_name: str
    benefit_kind: str
    base_amount: Decimal
    calculated_amount: Decimal  # rounded to cents for display
    formula: str
    reason_specific: str


@dataclass
class TerminationEntitlementResult:
    """Aggregated termination entitlements."""

    employee_id: str | None
    reason: TerminationReason
    last_salary: Decimal
    years_of_service: Decimal
    calculations: list[BenefitCalculation]
    total_entitlement: Decimal
    calculation_date: datetime
    business_rules_applied: list[str] = field(default_factory=list)
