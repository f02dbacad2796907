"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payroll_governance.calculators.types import TerminationReason
from payroll_governance.models import Applicability, BenefitKind, PolicyType

T = TypeVar("T")


# ============================================================================
# Shared schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Error payload with a stable code."""

    detail: str
    code: str


class ConfigItemResponse(BaseModel):
    """Governance fields present on every configuration item."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str
    created_by: UUID
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class PageResponse(BaseModel, Generic[T]):
    """Paginated listing."""

    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class ApprovalRequest(BaseModel):
    """Decision on a draft configuration item."""

    approved_by: str | None = None
    reason: str | None = None


class DeleteResponse(BaseModel):
    message: str
    deleted_id: UUID


class CreatorMixin(BaseModel):
    created_by_employee_id: UUID


# ============================================================================
# Tax rules
# ============================================================================


class TaxRuleCreate(CreatorMixin):
    name: str = Field(min_length=1)
    description: str | None = None
    rate: Decimal


class TaxRuleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    rate: Decimal | None = None


class TaxRuleResponse(ConfigItemResponse):
    name: str
    description: str | None = None
    rate: Decimal


# ============================================================================
# Insurance brackets
# ============================================================================


class InsuranceBracketCreate(CreatorMixin):
    name: str = Field(min_length=1)
    min_salary: Decimal
    max_salary: Decimal
    employee_rate: Decimal
    employer_rate: Decimal


class InsuranceBracketUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    min_salary: Decimal | None = None
    max_salary: Decimal | None = None
    employee_rate: Decimal | None = None
    employer_rate: Decimal | None = None


class InsuranceBracketResponse(ConfigItemResponse):
    name: str
    min_salary: Decimal
    max_salary: Decimal
    employee_rate: Decimal
    employer_rate: Decimal


class ContributionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_contribution: Decimal
    employer_contribution: Decimal
    total_contribution: Decimal
    is_valid: bool


# ============================================================================
# Allowances, pay types, signing bonuses
# ============================================================================


class AllowanceCreate(CreatorMixin):
    name: str = Field(min_length=1)
    amount: Decimal


class AllowanceUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = None


class AllowanceResponse(ConfigItemResponse):
    name: str
    amount: Decimal


class PayTypeCreate(CreatorMixin):
    type: str = Field(min_length=1)
    amount: Decimal


class PayTypeUpdate(BaseModel):
    type: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = None


class PayTypeResponse(ConfigItemResponse):
    type: str
    amount: Decimal


class SigningBonusCreate(CreatorMixin):
    position_name: str = Field(min_length=1)
    amount: Decimal


class SigningBonusUpdate(BaseModel):
    position_name: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = None


class SigningBonusResponse(ConfigItemResponse):
    position_name: str
    amount: Decimal


# ============================================================================
# Payroll policies
# ============================================================================


class PayrollPolicyCreate(CreatorMixin):
    policy_name: str = Field(min_length=1)
    policy_type: PolicyType
    description: str
    effective_date: date
    rule_percentage: Decimal
    rule_fixed_amount: Decimal
    rule_threshold_amount: Decimal
    applicability: Applicability


class PayrollPolicyUpdate(BaseModel):
    policy_name: str | None = Field(default=None, min_length=1)
    policy_type: PolicyType | None = None
    description: str | None = None
    effective_date: date | None = None
    rule_percentage: Decimal | None = None
    rule_fixed_amount: Decimal | None = None
    rule_threshold_amount: Decimal | None = None
    applicability: Applicability | None = None


class PayrollPolicyResponse(ConfigItemResponse):
    policy_name: str
    policy_type: str
    description: str
    effective_date: date
    rule_percentage: Decimal
    rule_fixed_amount: Decimal
    rule_threshold_amount: Decimal
    applicability: str


# ============================================================================
# Termination benefits
# ============================================================================


class TerminationBenefitCreate(CreatorMixin):
    name: str = Field(min_length=1)
    amount: Decimal
    terms: str | None = None
    benefit_kind: BenefitKind | None = None


class TerminationBenefitUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = None
    terms: str | None = None
    benefit_kind: BenefitKind | None = None


class TerminationBenefitResponse(ConfigItemResponse):
    name: str
    amount: Decimal
    terms: str | None = None
    benefit_kind: str


class TerminationCalculationRequest(BaseModel):
    employee_id: str | None = None
    last_salary: Decimal
    years_of_service: Decimal | None = None
    reason: str | None = None
    benefit_ids: list[str] = Field(default_factory=list)


class BenefitCalculationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    benefit_id: UUID | None = None
    benefit_name: str
    benefit_kind: str
    base_amount: Decimal
    calculated_amount: Decimal
    formula: str
    reason_specific: str


class TerminationCalculationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str | None = None
    reason: TerminationReason
    last_salary: Decimal
    years_of_service: Decimal
    calculations: list[BenefitCalculationResponse]
    total_entitlement: Decimal
    calculation_date: datetime
    business_rules_applied: list[str]


# ============================================================================
# Pay grades
# ============================================================================


class PayGradeCreate(CreatorMixin):
    grade: str = Field(min_length=1)
    base_salary: Decimal
    gross_salary: Decimal


class PayGradeUpdate(BaseModel):
    grade: str | None = Field(default=None, min_length=1)
    base_salary: Decimal | None = None
    gross_salary: Decimal | None = None


class PayGradeResponse(ConfigItemResponse):
    grade: str
    base_salary: Decimal
    gross_salary: Decimal


# ============================================================================
# Company-wide settings
# ============================================================================


class CompanySettingsUpdate(BaseModel):
    pay_date: date | None = None
    time_zone: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class CompanySettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    pay_date: date
    time_zone: str
    currency: str
    status: str
    decided_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CurrencyResponse(BaseModel):
    currency: str
