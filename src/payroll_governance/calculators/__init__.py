"""Entitlement calculation engine."""

from payroll_governance.calculators.insurance import (
    ContributionService,
    calculate_insurance_contribution,
)
from payroll_governance.calculators.termination import (
    TerminationEntitlementService,
    build_context,
    calculate_termination_entitlements,
)
from payroll_governance.calculators.types import (
    BenefitCalculation,
    ContributionResult,
    TerminationContext,
    TerminationEntitlementResult,
    TerminationReason,
)

__all__ = [
    "BenefitCalculation",
    "ContributionResult",
    "ContributionService",
    "TerminationContext",
    "TerminationEntitlementResult",
    "TerminationEntitlementService",
    "TerminationReason",
    "build_context",
    "calculate_insurance_contribution",
    "calculate_termination_entitlements",
]
