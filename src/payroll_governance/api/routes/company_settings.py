"""Company-wide settings endpoints."""

from fastapi import APIRouter

from payroll_governance.api.dependencies import DbSession
from payroll_governance.api.schemas import (
    CompanySettingsResponse,
    CompanySettingsUpdate,
    CurrencyResponse,
    ErrorResponse,
)
from payroll_governance.services.company_settings_service import CompanySettingsService

router = APIRouter(tags=["company-settings"])

ERRORS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.get("/company-settings", response_model=CompanySettingsResponse)
async def get_company_settings(db: DbSession) -> CompanySettingsResponse:
    """Get the settings, materializing defaults on first read."""
    record = await CompanySettingsService(db).get_settings()
    await db.commit()
    return CompanySettingsResponse.model_validate(record)


@router.get("/company-currency", response_model=CurrencyResponse)
async def get_company_currency(db: DbSession) -> CurrencyResponse:
    currency = await CompanySettingsService(db).get_currency()
    await db.commit()
    return CurrencyResponse(currency=currency)


@router.put("/company-settings", response_model=CompanySettingsResponse, responses=ERRORS)
async def update_company_settings(
    db: DbSession,
    payload: CompanySettingsUpdate,
) -> CompanySettingsResponse:
    """Edit the settings while they are in draft."""
    service = CompanySettingsService(db)
    record = await service.update_settings(payload.model_dump(exclude_unset=True))
    await db.commit()
    return CompanySettingsResponse.model_validate(record)


@router.patch("/company-settings/approve", response_model=CompanySettingsResponse, responses=ERRORS)
async def approve_company_settings(db: DbSession) -> CompanySettingsResponse:
    record = await CompanySettingsService(db).approve_settings()
    await db.commit()
    return CompanySettingsResponse.model_validate(record)


@router.patch("/company-settings/reject", response_model=CompanySettingsResponse, responses=ERRORS)
async def reject_company_settings(db: DbSession) -> CompanySettingsResponse:
    record = await CompanySettingsService(db).reject_settings()
    await db.commit()
    return CompanySettingsResponse.model_validate(record)
