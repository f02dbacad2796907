"""Entitlement calculation endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from payroll_governance.api.dependencies import DbSession
from payroll_governance.api.schemas import (
    ContributionResponse,
    ErrorResponse,
    TerminationCalculationRequest,
    TerminationCalculationResponse,
)
from payroll_governance.calculators import (
    ContributionService,
    TerminationEntitlementService,
    build_context,
)

router = APIRouter(tags=["calculations"])


@router.get(
    "/insurance-brackets/{bracket_id}/calculate-contributions",
    response_model=ContributionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def calculate_contributions(
    db: DbSession,
    bracket_id: Annotated[UUID, Path()],
    salary: Annotated[str, Query(description="Gross monthly salary")],
) -> ContributionResponse:
    """Split a salary's insurance contribution using one bracket.

    Works for brackets in any status; ``is_valid`` is false when the salary
    is outside the bracket's range.
    """
    result = await ContributionService(db).calculate(bracket_id, salary)
    return ContributionResponse.model_validate(result)


@router.post(
    "/termination-benefits/calculate",
    response_model=TerminationCalculationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def calculate_termination(
    db: DbSession,
    payload: TerminationCalculationRequest,
) -> TerminationCalculationResponse:
    """Compute termination or resignation entitlements from approved benefits."""
    ctx = build_context(
        last_salary=payload.last_salary,
        years_of_service=payload.years_of_service,
        reason=payload.reason,
        benefit_ids=payload.benefit_ids,
        employee_id=payload.employee_id,
    )
    result = await TerminationEntitlementService(db).calculate(ctx)
    return TerminationCalculationResponse.model_validate(result)
