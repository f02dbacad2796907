"""Capability sets describing each governed configuration kind.

A ``ConfigKind`` tells the lifecycle service which model backs the kind,
which field identifies an item to humans, which fields are editable, and how
to validate the kind's range invariants against a merged view of stored and
incoming values.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_governance.errors import InvalidInputError, InvalidRangeError
from payroll_governance.models import (
    Allowance,
    Applicability,
    BenefitKind,
    InsuranceBracket,
    PayGrade,
    PayrollPolicy,
    PayType,
    PolicyType,
    SigningBonus,
    TaxRule,
    TerminationBenefit,
)

HUNDRED = Decimal("100")

Validator = Callable[[Mapping[str, Any]], None]
Normalizer = Callable[[dict[str, Any], Any | None], dict[str, Any]]


@dataclass(frozen=True)
class ConfigKind:
    """Capability set for one configuration kind."""

    slug: str
    model: type
    label: str
    plural: str
    identity_field: str
    fields: tuple[str, ...]
    required: tuple[str, ...]
    search_fields: tuple[str, ...] = ()
    validate: Validator = field(default=lambda values: None)
    normalize: Normalizer | None = None

    def identity_of(self, item: Any) -> str:
        return getattr(item, self.identity_field)


def _decimal(value: Any, name: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (ArithmeticError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a number") from exc
    if not number.is_finite():
        raise InvalidInputError(f"{name} must be a finite number")
    return number


def check_percentage(values: Mapping[str, Any], name: str) -> None:
    """Rates are percentages in [0, 100]."""
    if values.get(name) is None:
        return
    rate = _decimal(values[name], name)
    if rate < 0 or rate > HUNDRED:
        raise InvalidRangeError(f"{name} must be between 0 and 100")


def check_non_negative(values: Mapping[str, Any], name: str) -> None:
    if values.get(name) is None:
        return
    if _decimal(values[name], name) < 0:
        raise InvalidRangeError(f"{name} must not be negative")


def check_choice(values: Mapping[str, Any], name: str, choices: type) -> None:
    if values.get(name) is None:
        return
    allowed = {member.value for member in choices}
    value = values[name]
    if isinstance(value, Enum):
        value = value.value
    if str(value) not in allowed:
        raise InvalidInputError(f"{name} must be one of: {', '.join(sorted(allowed))}")


def validate_tax_rule(values: Mapping[str, Any]) -> None:
    check_percentage(values, "rate")


def validate_insurance_bracket(values: Mapping[str, Any]) -> None:
    check_non_negative(values, "min_salary")
    check_non_negative(values, "max_salary")
    check_percentage(values, "employee_rate")
    check_percentage(values, "employer_rate")
    min_salary = values.get("min_salary")
    max_salary = values.get("max_salary")
    if min_salary is not None and max_salary is not None:
        if _decimal(min_salary, "min_salary") >= _decimal(max_salary, "max_salary"):
            raise InvalidRangeError("minSalary must be less than maxSalary")


def validate_amount(values: Mapping[str, Any]) -> None:
    check_non_negative(values, "amount")


def validate_payroll_policy(values: Mapping[str, Any]) -> None:
    check_choice(values, "policy_type", PolicyType)
    check_choice(values, "applicability", Applicability)
    check_percentage(values, "rule_percentage")
    check_non_negative(values, "rule_fixed_amount")
    threshold = values.get("rule_threshold_amount")
    if threshold is not None and _decimal(threshold, "rule_threshold_amount") < 1:
        raise InvalidRangeError("rule_threshold_amount must be at least 1")


def validate_termination_benefit(values: Mapping[str, Any]) -> None:
    check_non_negative(values, "amount")
    check_choice(values, "benefit_kind", BenefitKind)


def validate_pay_grade(values: Mapping[str, Any]) -> None:
    check_non_negative(values, "base_salary")
    base = values.get("base_salary")
    gross = values.get("gross_salary")
    if base is not None and gross is not None:
        if _decimal(gross, "gross_salary") < _decimal(base, "base_salary"):
            raise InvalidRangeError(
                "Gross salary must be greater than or equal to base salary "
                "(Gross = Base + Allowances)"
            )


def normalize_termination_benefit(
    changes: dict[str, Any], existing: TerminationBenefit | None
) -> dict[str, Any]:
    """Backfill ``benefit_kind`` from the name when it is not given explicitly.

    On create the kind always gets a value. On update it is re-derived when
    the name changes without an accompanying kind, or when the kind is
    cleared explicitly.
    """
    cleared = "benefit_kind" in changes and changes["benefit_kind"] is None
    kind = changes.pop("benefit_kind", None)
    if kind is not None:
        changes["benefit_kind"] = kind.value if isinstance(kind, BenefitKind) else str(kind)
        return changes
    name = changes.get("name")
    if existing is None and name is not None:
        changes["benefit_kind"] = BenefitKind.from_name(name).value
    elif existing is not None and name is not None and name != existing.name:
        changes["benefit_kind"] = BenefitKind.from_name(name).value
    elif existing is not None and cleared:
        changes["benefit_kind"] = BenefitKind.from_name(name or existing.name).value
    return changes


TAX_RULES = ConfigKind(
    slug="tax-rules",
    model=TaxRule,
    label="Tax rule",
    plural="tax rules",
    identity_field="name",
    fields=("name", "description", "rate"),
    required=("name", "rate"),
    search_fields=("name", "description"),
    validate=validate_tax_rule,
)

INSURANCE_BRACKETS = ConfigKind(
    slug="insurance-brackets",
    model=InsuranceBracket,
    label="Insurance bracket",
    plural="insurance brackets",
    identity_field="name",
    fields=("name", "min_salary", "max_salary", "employee_rate", "employer_rate"),
    required=("name", "min_salary", "max_salary", "employee_rate", "employer_rate"),
    search_fields=("name",),
    validate=validate_insurance_bracket,
)

ALLOWANCES = ConfigKind(
    slug="allowances",
    model=Allowance,
    label="Allowance",
    plural="allowances",
    identity_field="name",
    fields=("name", "amount"),
    required=("name", "amount"),
    search_fields=("name",),
    validate=validate_amount,
)

PAY_TYPES = ConfigKind(
    slug="pay-types",
    model=PayType,
    label="Pay type",
    plural="pay types",
    identity_field="type",
    fields=("type", "amount"),
    required=("type", "amount"),
    search_fields=("type",),
    validate=validate_amount,
)

PAYROLL_POLICIES = ConfigKind(
    slug="policies",
    model=PayrollPolicy,
    label="Payroll policy",
    plural="payroll policies",
    identity_field="policy_name",
    fields=(
        "policy_name",
        "policy_type",
        "description",
        "effective_date",
        "rule_percentage",
        "rule_fixed_amount",
        "rule_threshold_amount",
        "applicability",
    ),
    required=(
        "policy_name",
        "policy_type",
        "description",
        "effective_date",
        "rule_percentage",
        "rule_fixed_amount",
        "rule_threshold_amount",
        "applicability",
    ),
    search_fields=("policy_name", "description"),
    validate=validate_payroll_policy,
)

SIGNING_BONUSES = ConfigKind(
    slug="signing-bonuses",
    model=SigningBonus,
    label="Signing bonus",
    plural="signing bonuses",
    identity_field="position_name",
    fields=("position_name", "amount"),
    required=("position_name", "amount"),
    search_fields=("position_name",),
    validate=validate_amount,
)

TERMINATION_BENEFITS = ConfigKind(
    slug="termination-benefits",
    model=TerminationBenefit,
    label="Termination benefit",
    plural="termination benefits",
    identity_field="name",
    fields=("name", "amount", "terms", "benefit_kind"),
    required=("name", "amount"),
    search_fields=("name", "terms"),
    validate=validate_termination_benefit,
    normalize=normalize_termination_benefit,
)

PAY_GRADES = ConfigKind(
    slug="pay-grades",
    model=PayGrade,
    label="Pay grade",
    plural="pay grades",
    identity_field="grade",
    fields=("grade", "base_salary", "gross_salary"),
    required=("grade", "base_salary", "gross_salary"),
    search_fields=("grade",),
    validate=validate_pay_grade,
)

KIND_REGISTRY: dict[str, ConfigKind] = {
    kind.slug: kind
    for kind in (
        TAX_RULES,
        INSURANCE_BRACKETS,
        ALLOWANCES,
        PAY_TYPES,
        PAYROLL_POLICIES,
        SIGNING_BONUSES,
        TERMINATION_BENEFITS,
        PAY_GRADES,
    )
}


def get_kind(slug: str) -> ConfigKind:
    """Look up a kind by slug."""
    try:
        return KIND_REGISTRY[slug]
    except KeyError:
        raise InvalidInputError(f"Unknown configuration kind '{slug}'") from None
