"""ORM models."""

from payroll_governance.models.base import Base, TimestampMixin
from payroll_governance.models.company import CompanyWideSettings
from payroll_governance.models.configuration import (
    Allowance,
    Applicability,
    BenefitKind,
    GovernedConfigMixin,
    InsuranceBracket,
    PayGrade,
    PayrollPolicy,
    PayType,
    PolicyType,
    SigningBonus,
    TaxRule,
    TerminationBenefit,
)
from payroll_governance.models.employee import Employee

__all__ = [
    "Allowance",
    "Applicability",
    "Base",
    "BenefitKind",
    "CompanyWideSettings",
    "Employee",
    "GovernedConfigMixin",
    "InsuranceBracket",
    "PayGrade",
    "PayType",
    "PayrollPolicy",
    "PolicyType",
    "SigningBonus",
    "TaxRule",
    "TerminationBenefit",
    "TimestampMixin",
]
