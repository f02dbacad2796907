"""Configuration item endpoints, one router per governed kind."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status
from pydantic import BaseModel

from payroll_governance.api.dependencies import DbSession
from payroll_governance.api.schemas import (
    AllowanceCreate,
    AllowanceResponse,
    AllowanceUpdate,
    ApprovalRequest,
    DeleteResponse,
    ErrorResponse,
    InsuranceBracketCreate,
    InsuranceBracketResponse,
    InsuranceBracketUpdate,
    PageResponse,
    PayGradeCreate,
    PayGradeResponse,
    PayGradeUpdate,
    PayrollPolicyCreate,
    PayrollPolicyResponse,
    PayrollPolicyUpdate,
    PayTypeCreate,
    PayTypeResponse,
    PayTypeUpdate,
    SigningBonusCreate,
    SigningBonusResponse,
    SigningBonusUpdate,
    TaxRuleCreate,
    TaxRuleResponse,
    TaxRuleUpdate,
    TerminationBenefitCreate,
    TerminationBenefitResponse,
    TerminationBenefitUpdate,
)
from payroll_governance.services.kinds import (
    ALLOWANCES,
    INSURANCE_BRACKETS,
    PAY_GRADES,
    PAY_TYPES,
    PAYROLL_POLICIES,
    SIGNING_BONUSES,
    TAX_RULES,
    TERMINATION_BENEFITS,
    ConfigKind,
)
from payroll_governance.services.lifecycle_service import ConfigLifecycleService
from payroll_governance.services.state_machine import ConfigStatus

ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def build_config_router(
    kind: ConfigKind,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    response_schema: type[BaseModel],
) -> APIRouter:
    """Create the CRUD + review routes for one configuration kind."""
    router = APIRouter(prefix=f"/{kind.slug}", tags=[kind.slug])
    page_schema = PageResponse[response_schema]  # type: ignore[valid-type]

    @router.post(
        "",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        responses=ERRORS,
    )
    async def create_item(db: DbSession, payload: create_schema):  # type: ignore[valid-type]
        data = payload.model_dump(exclude={"created_by_employee_id"})
        service = ConfigLifecycleService(db, kind)
        item = await service.create(data, payload.created_by_employee_id)
        await db.commit()
        return response_schema.model_validate(item)

    @router.get("", response_model=page_schema)
    async def list_items(
        db: DbSession,
        page: Annotated[int, Query(ge=1)] = 1,
        page_size: Annotated[int, Query(ge=1, le=100)] = 10,
        status_filter: Annotated[ConfigStatus | None, Query(alias="status")] = None,
        search: str | None = None,
        created_by: UUID | None = None,
    ):
        service = ConfigLifecycleService(db, kind)
        result = await service.list(
            status=status_filter,
            search=search,
            created_by=created_by,
            page=page,
            page_size=page_size,
        )
        return page_schema(
            items=[response_schema.model_validate(item) for item in result.items],
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )

    @router.get("/{item_id}", response_model=response_schema, responses=ERRORS)
    async def get_item(db: DbSession, item_id: Annotated[UUID, Path()]):
        item = await ConfigLifecycleService(db, kind).get(item_id)
        return response_schema.model_validate(item)

    @router.patch("/{item_id}", response_model=response_schema, responses=ERRORS)
    async def update_item(
        db: DbSession,
        item_id: Annotated[UUID, Path()],
        payload: update_schema,  # type: ignore[valid-type]
    ):
        service = ConfigLifecycleService(db, kind)
        item = await service.update(item_id, payload.model_dump(exclude_unset=True))
        await db.commit()
        return response_schema.model_validate(item)

    @router.patch("/{item_id}/approve", response_model=response_schema, responses=ERRORS)
    async def approve_item(
        db: DbSession,
        item_id: Annotated[UUID, Path()],
        payload: ApprovalRequest,
    ):
        service = ConfigLifecycleService(db, kind)
        item = await service.approve(item_id, payload.approved_by)
        await db.commit()
        return response_schema.model_validate(item)

    @router.patch("/{item_id}/reject", response_model=response_schema, responses=ERRORS)
    async def reject_item(
        db: DbSession,
        item_id: Annotated[UUID, Path()],
        payload: ApprovalRequest,
    ):
        service = ConfigLifecycleService(db, kind)
        item = await service.reject(item_id, payload.approved_by, payload.reason)
        await db.commit()
        return response_schema.model_validate(item)

    @router.delete("/{item_id}", response_model=DeleteResponse, responses=ERRORS)
    async def delete_item(db: DbSession, item_id: Annotated[UUID, Path()]):
        result = await ConfigLifecycleService(db, kind).delete(item_id)
        await db.commit()
        return DeleteResponse(**result)

    return router


config_routers = [
    build_config_router(TAX_RULES, TaxRuleCreate, TaxRuleUpdate, TaxRuleResponse),
    build_config_router(
        INSURANCE_BRACKETS,
        InsuranceBracketCreate,
        InsuranceBracketUpdate,
        InsuranceBracketResponse,
    ),
    build_config_router(ALLOWANCES, AllowanceCreate, AllowanceUpdate, AllowanceResponse),
    build_config_router(PAY_TYPES, PayTypeCreate, PayTypeUpdate, PayTypeResponse),
    build_config_router(
        PAYROLL_POLICIES, PayrollPolicyCreate, PayrollPolicyUpdate, PayrollPolicyResponse
    ),
    build_config_router(
        SIGNING_BONUSES, SigningBonusCreate, SigningBonusUpdate, SigningBonusResponse
    ),
    build_config_router(
        TERMINATION_BENEFITS,
        TerminationBenefitCreate,
        TerminationBenefitUpdate,
        TerminationBenefitResponse,
    ),
    build_config_router(PAY_GRADES, PayGradeCreate, PayGradeUpdate, PayGradeResponse),
]
