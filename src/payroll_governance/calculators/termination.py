"""Termination and resignation entitlement calculation.

Formulas, chosen by the benefit's kind:
- GRATUITY: last salary × 0.5 × years of service
- SEVERANCE: last salary × min(years of service, 12) months
- OTHER: benefit base amount × years of service

Terminated (as opposed to resigning) employees receive 1.5× severance.
Each line is rounded to cents for display; the total is summed from the
unrounded amounts and rounded once.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.calculators.types import (
    BenefitCalculation,
    TerminationContext,
    TerminationEntitlementResult,
    TerminationReason,
    format_amount,
    round_to_cents,
    to_decimal,
)
from payroll_governance.errors import InvalidInputError
from payroll_governance.models import BenefitKind
from payroll_governance.models.base import utcnow
from payroll_governance.services.approver import parse_identity
from payroll_governance.services.kinds import TERMINATION_BENEFITS
from payroll_governance.services.lifecycle_service import ConfigLifecycleService
from payroll_governance.services.state_machine import ConfigStatus, status_value

GRATUITY_FACTOR = Decimal("0.5")
SEVERANCE_MONTH_CAP = Decimal("12")
TERMINATION_SEVERANCE_MULTIPLIER = Decimal("1.5")

BUSINESS_RULES = [
    "Reason-based entitlement calculation (termination gets 1.5x severance)",
    "Only APPROVED benefits are included in calculations",
]


def build_context(
    last_salary: Any,
    years_of_service: Any = None,
    reason: Any = None,
    benefit_ids: Iterable[Any] | None = None,
    employee_id: str | None = None,
) -> TerminationContext:
    """Validate raw inputs and build a TerminationContext."""
    try:
        salary = to_decimal(last_salary)
        years = to_decimal(1 if years_of_service is None else years_of_service)
    except ArithmeticError as exc:
        raise InvalidInputError("lastSalary and yearsOfService must be numbers") from exc

    if not salary.is_finite() or salary < 0:
        raise InvalidInputError("lastSalary must not be negative")
    if not years.is_finite() or years < 0:
        raise InvalidInputError("yearsOfService must not be negative")

    try:
        parsed_reason = TerminationReason(
            status_value(reason).lower() if reason else TerminationReason.RESIGNATION.value
        )
    except ValueError:
        raise InvalidInputError("reason must be 'resignation' or 'termination'") from None

    ids = []
    for raw in benefit_ids or []:
        parsed = parse_identity(raw)
        if parsed is None:
            raise InvalidInputError(f"Invalid benefit id '{raw}'")
        ids.append(parsed)

    return TerminationContext(
        last_salary=salary,
        years_of_service=years,
        reason=parsed_reason,
        benefit_ids=ids,
        employee_id=employee_id,
    )


def _kind_of(benefit: Any) -> BenefitKind:
    kind = getattr(benefit, "benefit_kind", None)
    if kind:
        return BenefitKind(status_value(kind))
    return BenefitKind.from_name(benefit.name)


def _calculate_benefit(benefit: Any, ctx: TerminationContext) -> tuple[Decimal, BenefitCalculation]:
    """Return the unrounded amount and the display line for one benefit."""
    kind = _kind_of(benefit)
    base_amount = to_decimal(benefit.amount)
    salary = ctx.last_salary
    years = ctx.years_of_service

    if kind == BenefitKind.GRATUITY:
        amount = salary * GRATUITY_FACTOR * years
        formula = (
            f"Last Salary ({format_amount(salary)}) × 0.5 × "
            f"Years of Service ({format_amount(years)})"
        )
    elif kind == BenefitKind.SEVERANCE:
        months = min(years, SEVERANCE_MONTH_CAP)
        amount = salary * months
        formula = (
            f"Last Salary ({format_amount(salary)}) × {format_amount(months)} months "
            f"(Years: {format_amount(years)}, max 12)"
        )
    else:
        amount = base_amount * years
        formula = (
            f"Base Amount ({format_amount(base_amount)}) × "
            f"Years of Service ({format_amount(years)})"
        )

    if ctx.reason == TerminationReason.TERMINATION and kind == BenefitKind.SEVERANCE:
        amount *= TERMINATION_SEVERANCE_MULTIPLIER
        formula += " (Termination multiplier: 1.5x)"

    label = (
        "Resignation Entitlement"
        if ctx.reason == TerminationReason.RESIGNATION
        else "Termination Entitlement"
    )
    line = BenefitCalculation(
        benefit_id=getattr(benefit, "id", None),
        benefit_name=benefit.name,
        benefit_kind=kind.value,
        base_amount=base_amount,
        calculated_amount=round_to_cents(amount),
        formula=formula,
        reason_specific=label,
    )
    return amount, line


def calculate_termination_entitlements(
    benefits: Iterable[Any], ctx: TerminationContext
) -> TerminationEntitlementResult:
    """Aggregate entitlements over approved benefits.

    Benefits that are not APPROVED are dropped even if they were passed in,
    and when ``ctx.benefit_ids`` is non-empty only those ids are considered.
    """
    wanted = set(ctx.benefit_ids)
    calculations: list[BenefitCalculation] = []
    total = Decimal("0")

    for benefit in benefits:
        if status_value(benefit.status) != ConfigStatus.APPROVED.value:
            continue
        if wanted and getattr(benefit, "id", None) not in wanted:
            continue
        amount, line = _calculate_benefit(benefit, ctx)
        calculations.append(line)
        total += amount

    return TerminationEntitlementResult(
        employee_id=ctx.employee_id,
        reason=ctx.reason,
        last_salary=ctx.last_salary,
        years_of_service=ctx.years_of_service,
        calculations=calculations,
        total_entitlement=round_to_cents(total),
        calculation_date=utcnow(),
        business_rules_applied=list(BUSINESS_RULES),
    )


class TerminationEntitlementService:
    """Reads approved termination benefits and computes entitlements."""

    def __init__(self, session: AsyncSession):
        self.benefits = ConfigLifecycleService(session, TERMINATION_BENEFITS)

    async def calculate(self, ctx: TerminationContext) -> TerminationEntitlementResult:
        approved = await self.benefits.list_approved(ctx.benefit_ids)
        return calculate_termination_entitlements(approved, ctx)
