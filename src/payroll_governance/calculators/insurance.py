"""Insurance contribution calculation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.calculators.types import ContributionResult, to_decimal
from payroll_governance.errors import InvalidInputError
from payroll_governance.services.kinds import INSURANCE_BRACKETS
from payroll_governance.services.lifecycle_service import ConfigLifecycleService

HUNDRED = Decimal("100")


def calculate_insurance_contribution(bracket: Any, salary: Decimal | int | float) -> ContributionResult:
    """Split a salary's insurance contribution between employee and employer.

    Rates are percentages. The result is returned even when the salary falls
    outside the bracket; ``is_valid`` reports whether
    ``min_salary <= salary <= max_salary``.
    """
    salary = to_decimal(salary)
    min_salary = to_decimal(bracket.min_salary)
    max_salary = to_decimal(bracket.max_salary)

    employee_contribution = salary * to_decimal(bracket.employee_rate) / HUNDRED
    employer_contribution = salary * to_decimal(bracket.employer_rate) / HUNDRED

    return ContributionResult(
        employee_contribution=employee_contribution,
        employer_contribution=employer_contribution,
        total_contribution=employee_contribution + employer_contribution,
        is_valid=min_salary <= salary <= max_salary,
    )


class ContributionService:
    """Loads a bracket and computes contributions for a salary."""

    def __init__(self, session: AsyncSession):
        self.brackets = ConfigLifecycleService(session, INSURANCE_BRACKETS)

    async def calculate(self, bracket_id: UUID, salary: Decimal | int | float) -> ContributionResult:
        try:
            amount = to_decimal(salary)
        except ArithmeticError as exc:
            raise InvalidInputError("Salary must be a number") from exc
        if not amount.is_finite() or amount < 0:
            raise InvalidInputError("Salary must not be negative")

        bracket = await self.brackets.get(bracket_id)
        return calculate_insurance_contribution(bracket, amount)
