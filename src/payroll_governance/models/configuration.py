"""Governed payroll configuration models.

Every configuration kind shares the governance columns from
``GovernedConfigMixin`` (status, creator, decision) and adds its own
kind-specific fields.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payroll_governance.models.base import Base, TimestampMixin

STATUS_VALUES = "('draft', 'approved', 'rejected')"


class PolicyType(str, Enum):
    """Payroll policy categories."""

    DEDUCTION = "Deduction"
    ALLOWANCE = "Allowance"
    BENEFIT = "Benefit"
    MISCONDUCT = "Misconduct"
    LEAVE = "Leave"


class Applicability(str, Enum):
    """Employee population a payroll policy applies to."""

    ALL_EMPLOYEES = "All Employees"
    FULL_TIME = "Full Time Employees"
    PART_TIME = "Part Time Employees"
    CONTRACTORS = "Contractors"


class BenefitKind(str, Enum):
    """Formula family of a termination benefit."""

    GRATUITY = "GRATUITY"
    SEVERANCE = "SEVERANCE"
    OTHER = "OTHER"

    @classmethod
    def from_name(cls, name: str) -> BenefitKind:
        """Derive the kind from a benefit name (first match wins)."""
        lowered = name.lower()
        if "gratuity" in lowered:
            return cls.GRATUITY
        if "severance" in lowered:
            return cls.SEVERANCE
        return cls.OTHER


class GovernedConfigMixin(TimestampMixin):
    """Columns shared by every governed configuration item."""

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    created_by: Mapped[UUID] = mapped_column(nullable=False)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)


def _status_check(table: str) -> CheckConstraint:
    return CheckConstraint(f"status IN {STATUS_VALUES}", name=f"{table}_status_check")


class TaxRule(Base, GovernedConfigMixin):
    """Statutory tax rule expressed as a flat percentage."""

    __tablename__ = "tax_rule"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)

    __table_args__ = (
        _status_check("tax_rule"),
        CheckConstraint("rate >= 0 AND rate <= 100", name="tax_rule_rate_check"),
    )


class InsuranceBracket(Base, GovernedConfigMixin):
    """Social/health insurance bracket with employee and employer rates."""

    __tablename__ = "insurance_bracket"

    name: Mapped[str] = mapped_column(String, nullable=False)
    min_salary: Mapped[Decimal] = mapped_column(nullable=False)
    max_salary: Mapped[Decimal] = mapped_column(nullable=False)
    employee_rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    employer_rate: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)

    __table_args__ = (
        _status_check("insurance_bracket"),
        CheckConstraint("min_salary < max_salary", name="insurance_bracket_range_check"),
    )


class Allowance(Base, GovernedConfigMixin):
    """Fixed allowance (housing, transport, ...)."""

    __tablename__ = "allowance"

    name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (_status_check("allowance"),)


class PayType(Base, GovernedConfigMixin):
    """Pay type (hourly, daily, monthly, contract-based, ...)."""

    __tablename__ = "pay_type"

    type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (_status_check("pay_type"),)


class PayrollPolicy(Base, GovernedConfigMixin):
    """Payroll policy with a percentage/fixed/threshold rule definition."""

    __tablename__ = "payroll_policy"

    policy_name: Mapped[str] = mapped_column(String, nullable=False)
    policy_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    rule_percentage: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    rule_fixed_amount: Mapped[Decimal] = mapped_column(nullable=False)
    rule_threshold_amount: Mapped[Decimal] = mapped_column(nullable=False)
    applicability: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        _status_check("payroll_policy"),
        CheckConstraint(
            "policy_type IN ('Deduction', 'Allowance', 'Benefit', 'Misconduct', 'Leave')",
            name="payroll_policy_type_check",
        ),
        CheckConstraint(
            "applicability IN ('All Employees', 'Full Time Employees', "
            "'Part Time Employees', 'Contractors')",
            name="payroll_policy_applicability_check",
        ),
    )


class SigningBonus(Base, GovernedConfigMixin):
    """One-off signing bonus for a position."""

    __tablename__ = "signing_bonus"

    position_name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (_status_check("signing_bonus"),)


class TerminationBenefit(Base, GovernedConfigMixin):
    """Termination/resignation benefit (gratuity, severance, encashment, ...)."""

    __tablename__ = "termination_benefit"

    name: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    benefit_kind: Mapped[str] = mapped_column(
        String, nullable=False, default=BenefitKind.OTHER.value
    )

    __table_args__ = (
        _status_check("termination_benefit"),
        CheckConstraint(
            "benefit_kind IN ('GRATUITY', 'SEVERANCE', 'OTHER')",
            name="termination_benefit_kind_check",
        ),
    )


class PayGrade(Base, GovernedConfigMixin):
    """Pay grade where gross = base + allowances."""

    __tablename__ = "pay_grade"

    grade: Mapped[str] = mapped_column(String, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(nullable=False)

    __table_args__ = (
        _status_check("pay_grade"),
        CheckConstraint("gross_salary >= base_salary", name="pay_grade_gross_check"),
    )
