"""Tests for the configuration lifecycle service."""

import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.errors import (
    AlreadyExistsError,
    EditForbiddenError,
    InvalidApproverError,
    InvalidInputError,
    InvalidRangeError,
    InvalidStateError,
    NotFoundError,
    SelfApprovalError,
)
from payroll_governance.models import Employee
from payroll_governance.services import ConfigLifecycleService
from payroll_governance.services.kinds import (
    ALLOWANCES,
    INSURANCE_BRACKETS,
    PAY_TYPES,
    PAYROLL_POLICIES,
    KIND_REGISTRY,
    SIGNING_BONUSES,
    TAX_RULES,
)

pytestmark = pytest.mark.asyncio

# Minimal valid field values per kind, without the identifying field.
KIND_FIELDS = {
    "tax-rules": {"rate": Decimal("10")},
    "insurance-brackets": {
        "min_salary": Decimal("1000"),
        "max_salary": Decimal("9000"),
        "employee_rate": Decimal("11"),
        "employer_rate": Decimal("18.75"),
    },
    "allowances": {"amount": Decimal("250")},
    "pay-types": {"amount": Decimal("0")},
    "policies": {
        "policy_type": "Deduction",
        "description": "Monthly deduction",
        "effective_date": date(2025, 1, 1),
        "rule_percentage": Decimal("5"),
        "rule_fixed_amount": Decimal("0"),
        "rule_threshold_amount": Decimal("1"),
        "applicability": "All Employees",
    },
    "signing-bonuses": {"amount": Decimal("5000")},
    "termination-benefits": {"amount": Decimal("100")},
    "pay-grades": {"base_salary": Decimal("8000"), "gross_salary": Decimal("9000")},
}


def kind_payload(slug: str, identity: str) -> dict:
    kind = KIND_REGISTRY[slug]
    return {kind.identity_field: identity, **KIND_FIELDS[slug]}


@pytest.mark.parametrize("slug", sorted(KIND_REGISTRY))
class TestEveryKind:
    """Governance rules shared by all configuration kinds."""

    async def test_duplicate_identity_ignores_case(self, session, creator, slug):
        service = ConfigLifecycleService(session, KIND_REGISTRY[slug])
        await service.create(kind_payload(slug, "Alpha Item"), creator.id)

        with pytest.raises(AlreadyExistsError):
            await service.create(kind_payload(slug, "ALPHA item"), creator.id)

    async def test_creator_cannot_approve(self, session, creator, slug):
        service = ConfigLifecycleService(session, KIND_REGISTRY[slug])
        item = await service.create(kind_payload(slug, "Alpha Item"), creator.id)

        with pytest.raises(SelfApprovalError):
            await service.approve(item.id, item.created_by)

    async def test_approved_item_is_frozen(self, session, creator, approver, slug):
        """After approval the item can be neither edited nor deleted."""
        kind = KIND_REGISTRY[slug]
        service = ConfigLifecycleService(session, kind)
        item = await service.create(kind_payload(slug, "Alpha Item"), creator.id)
        await service.approve(item.id, approver.id)

        with pytest.raises(EditForbiddenError):
            await service.update(item.id, {kind.identity_field: "Beta Item"})
        with pytest.raises(EditForbiddenError):
            await service.delete(item.id)

        current = await service.get(item.id)
        assert current.status == "approved"
        assert kind.identity_of(current) == "Alpha Item"


class TestCreate:
    """Creating draft configuration items."""

    async def test_create_starts_as_draft(self, brackets, creator, bracket_payload):
        """New items are DRAFT with the creator recorded and no decision."""
        bracket = await brackets.create(bracket_payload(), creator.id)

        assert bracket.status == "draft"
        assert bracket.created_by == creator.id
        assert bracket.approved_by is None
        assert bracket.approved_at is None
        assert Decimal(bracket.employer_rate) == Decimal("18.75")

    async def test_create_accepts_string_creator_id(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), str(creator.id))
        assert bracket.created_by == creator.id

    async def test_create_rejects_malformed_creator(self, brackets, bracket_payload):
        with pytest.raises(InvalidInputError):
            await brackets.create(bracket_payload(), "not-an-id")

    async def test_create_requires_fields(self, brackets, creator, bracket_payload):
        payload = bracket_payload()
        del payload["max_salary"]

        with pytest.raises(InvalidInputError) as exc_info:
            await brackets.create(payload, creator.id)
        assert "max_salary" in str(exc_info.value)

    async def test_duplicate_name_is_case_insensitive(self, brackets, creator, bracket_payload):
        """Identity comparison ignores case."""
        await brackets.create(bracket_payload(name="Standard"), creator.id)

        with pytest.raises(AlreadyExistsError) as exc_info:
            await brackets.create(bracket_payload(name="STANDARD"), creator.id)
        assert exc_info.value.code == "ALREADY_EXISTS"

    async def test_duplicate_check_spans_statuses(
        self, brackets, creator, approver, bracket_payload
    ):
        """An approved item still blocks a new draft with the same name."""
        bracket = await brackets.create(bracket_payload(), creator.id)
        await brackets.approve(bracket.id, approver.id)

        with pytest.raises(AlreadyExistsError):
            await brackets.create(bracket_payload(name="standard"), creator.id)

    async def test_same_name_allowed_across_kinds(self, session, creator):
        allowances = ConfigLifecycleService(session, ALLOWANCES)
        pay_types = ConfigLifecycleService(session, PAY_TYPES)

        await allowances.create({"name": "Housing", "amount": 500}, creator.id)
        pay_type = await pay_types.create({"type": "Housing", "amount": 500}, creator.id)

        assert pay_type.type == "Housing"

    @pytest.mark.parametrize(
        "min_salary,max_salary",
        [(Decimal("15000"), Decimal("5000")), (Decimal("5000"), Decimal("5000"))],
    )
    async def test_bracket_min_must_be_below_max(
        self, brackets, creator, bracket_payload, min_salary, max_salary
    ):
        with pytest.raises(InvalidRangeError) as exc_info:
            await brackets.create(
                bracket_payload(min_salary=min_salary, max_salary=max_salary), creator.id
            )
        assert str(exc_info.value) == "minSalary must be less than maxSalary"

    async def test_bracket_rate_bounds(self, brackets, creator, bracket_payload):
        with pytest.raises(InvalidRangeError):
            await brackets.create(bracket_payload(employee_rate=Decimal("101")), creator.id)

    async def test_pay_grade_gross_equal_to_base(self, pay_grades, creator):
        """Gross equal to base is the lowest allowed gross."""
        grade = await pay_grades.create(
            {"grade": "G1", "base_salary": Decimal("8000"), "gross_salary": Decimal("8000")},
            creator.id,
        )
        assert grade.status == "draft"

    async def test_pay_grade_gross_below_base(self, pay_grades, creator):
        with pytest.raises(InvalidRangeError) as exc_info:
            await pay_grades.create(
                {"grade": "G1", "base_salary": Decimal("8000"), "gross_salary": Decimal("7999")},
                creator.id,
            )
        assert "Gross = Base + Allowances" in str(exc_info.value)

    async def test_tax_rate_is_percentage(self, session, creator):
        tax_rules = ConfigLifecycleService(session, TAX_RULES)

        with pytest.raises(InvalidRangeError):
            await tax_rules.create({"name": "Income", "rate": Decimal("120")}, creator.id)

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), "-Infinity"])
    async def test_non_finite_numbers_rejected(
        self, session, brackets, creator, bracket_payload, value
    ):
        tax_rules = ConfigLifecycleService(session, TAX_RULES)

        with pytest.raises(InvalidInputError):
            await tax_rules.create({"name": "Income", "rate": value}, creator.id)
        with pytest.raises(InvalidInputError):
            await brackets.create(bracket_payload(min_salary=value), creator.id)

    async def test_negative_amount_rejected(self, session, creator):
        bonuses = ConfigLifecycleService(session, SIGNING_BONUSES)

        with pytest.raises(InvalidRangeError):
            await bonuses.create({"position_name": "Engineer", "amount": -1}, creator.id)


class TestPayrollPolicies:
    """Policy-specific validation."""

    async def test_create_policy(self, session, creator, policy_payload):
        policies = ConfigLifecycleService(session, PAYROLL_POLICIES)
        policy = await policies.create(policy_payload(), creator.id)

        assert policy.policy_type == "Misconduct"
        assert policy.applicability == "All Employees"

    async def test_unknown_policy_type(self, session, creator, policy_payload):
        policies = ConfigLifecycleService(session, PAYROLL_POLICIES)

        with pytest.raises(InvalidInputError):
            await policies.create(policy_payload(policy_type="Bonus"), creator.id)

    async def test_threshold_at_least_one(self, session, creator, policy_payload):
        policies = ConfigLifecycleService(session, PAYROLL_POLICIES)

        with pytest.raises(InvalidRangeError):
            await policies.create(
                policy_payload(rule_threshold_amount=Decimal("0.5")), creator.id
            )

    async def test_policy_name_unique_ignoring_case(self, session, creator, policy_payload):
        policies = ConfigLifecycleService(session, PAYROLL_POLICIES)
        await policies.create(policy_payload(), creator.id)

        with pytest.raises(AlreadyExistsError):
            await policies.create(
                policy_payload(policy_name="late arrival penalty"), creator.id
            )


class TestUpdate:
    """Merge-updating drafts."""

    async def test_update_draft(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        updated = await brackets.update(bracket.id, {"employee_rate": Decimal("12")})

        assert Decimal(updated.employee_rate) == Decimal("12")
        assert Decimal(updated.employer_rate) == Decimal("18.75")
        assert updated.status == "draft"

    async def test_update_validates_merged_values(self, pay_grades, creator):
        """A partial update is checked against the stored counterpart."""
        grade = await pay_grades.create(
            {"grade": "G2", "base_salary": Decimal("5000"), "gross_salary": Decimal("6000")},
            creator.id,
        )

        with pytest.raises(InvalidRangeError):
            await pay_grades.update(grade.id, {"gross_salary": Decimal("4000")})

        with pytest.raises(InvalidRangeError):
            await pay_grades.update(grade.id, {"base_salary": Decimal("7000")})

        updated = await pay_grades.update(grade.id, {"gross_salary": Decimal("5000")})
        assert Decimal(updated.gross_salary) == Decimal("5000")

    async def test_update_bracket_range_merged(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        with pytest.raises(InvalidRangeError):
            await brackets.update(bracket.id, {"min_salary": Decimal("20000")})

    async def test_rename_to_existing_name(self, brackets, creator, bracket_payload):
        await brackets.create(bracket_payload(name="Standard"), creator.id)
        other = await brackets.create(bracket_payload(name="Premium"), creator.id)

        with pytest.raises(AlreadyExistsError):
            await brackets.update(other.id, {"name": "standard"})

    async def test_rename_own_case(self, brackets, creator, bracket_payload):
        """Changing only the case of its own name is not a duplicate."""
        bracket = await brackets.create(bracket_payload(name="Standard"), creator.id)

        updated = await brackets.update(bracket.id, {"name": "STANDARD"})
        assert updated.name == "STANDARD"

    async def test_required_field_cannot_be_cleared(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        with pytest.raises(InvalidInputError):
            await brackets.update(bracket.id, {"name": None})

    async def test_unknown_fields_ignored(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        updated = await brackets.update(bracket.id, {"status": "approved"})
        assert updated.status == "draft"

    async def test_update_approved_forbidden(
        self, brackets, creator, approver, bracket_payload
    ):
        bracket = await brackets.create(bracket_payload(), creator.id)
        await brackets.approve(bracket.id, approver.id)

        with pytest.raises(EditForbiddenError) as exc_info:
            await brackets.update(bracket.id, {"name": "Changed"})
        assert exc_info.value.code == "EDIT_FORBIDDEN"
        assert exc_info.value.http_status == 403

    async def test_amount_change_logged(self, session, creator, caplog):
        allowances = ConfigLifecycleService(session, ALLOWANCES)
        allowance = await allowances.create({"name": "Transport", "amount": 300}, creator.id)

        with caplog.at_level(logging.INFO, logger="payroll_governance"):
            await allowances.update(allowance.id, {"amount": 450})

        assert "Manual adjustment" in caplog.text
        assert "Transport" in caplog.text


class TestDecisions:
    """Approving and rejecting drafts."""

    async def test_approve(self, brackets, creator, approver, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        approved = await brackets.approve(bracket.id, str(approver.id))

        assert approved.status == "approved"
        assert approved.approved_by == approver.id
        assert approved.approved_at is not None
        assert approved.rejection_reason is None

    async def test_reject_with_reason(self, brackets, creator, approver, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        rejected = await brackets.reject(bracket.id, approver.id, "Rates out of date")

        assert rejected.status == "rejected"
        assert rejected.approved_by == approver.id
        assert rejected.rejection_reason == "Rates out of date"

    async def test_self_approval_fails(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        with pytest.raises(SelfApprovalError) as exc_info:
            await brackets.approve(bracket.id, creator.id)
        assert "Self-approval not allowed" in str(exc_info.value)

        with pytest.raises(SelfApprovalError):
            await brackets.reject(bracket.id, str(creator.id))

        assert (await brackets.get(bracket.id)).status == "draft"

    async def test_self_approval_reported_before_lookup(self, brackets, bracket_payload):
        """A creator missing from the directory still gets SelfApproval."""
        ghost = uuid4()
        bracket = await brackets.create(bracket_payload(), ghost)

        with pytest.raises(SelfApprovalError):
            await brackets.approve(bracket.id, ghost)

    @pytest.mark.parametrize("approved_by", [None, "", "   ", "not-a-uuid"])
    async def test_invalid_approver_reference(
        self, brackets, creator, bracket_payload, approved_by
    ):
        bracket = await brackets.create(bracket_payload(), creator.id)

        with pytest.raises(InvalidApproverError):
            await brackets.approve(bracket.id, approved_by)

    async def test_unknown_approver(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(), creator.id)

        with pytest.raises(InvalidApproverError) as exc_info:
            await brackets.approve(bracket.id, uuid4())
        assert str(exc_info.value) == "Approver employee not found"

    async def test_inactive_employee_may_approve(
        self, session, brackets, creator, bracket_payload
    ):
        retired = Employee(
            id=uuid4(),
            employee_number="EMP099",
            first_name="Carol",
            last_name="Retired",
            status="terminated",
        )
        session.add(retired)
        await session.flush()
        bracket = await brackets.create(bracket_payload(), creator.id)

        approved = await brackets.approve(bracket.id, retired.id)
        assert approved.approved_by == retired.id

    async def test_decisions_are_final(self, brackets, creator, approver, bracket_payload):
        """Approved and rejected are terminal."""
        approved = await brackets.create(bracket_payload(name="A"), creator.id)
        rejected = await brackets.create(bracket_payload(name="B"), creator.id)
        await brackets.approve(approved.id, approver.id)
        await brackets.reject(rejected.id, approver.id)

        for item_id in (approved.id, rejected.id):
            with pytest.raises(InvalidStateError) as exc_info:
                await brackets.approve(item_id, approver.id)
            assert exc_info.value.code == "INVALID_STATE"
            with pytest.raises(InvalidStateError):
                await brackets.reject(item_id, approver.id)

        assert (await brackets.get(approved.id)).status == "approved"
        assert (await brackets.get(rejected.id)).status == "rejected"

    async def test_status_checked_before_approver(
        self, brackets, creator, approver, bracket_payload
    ):
        """A decided item reports its state even for a bad approver."""
        bracket = await brackets.create(bracket_payload(), creator.id)
        await brackets.approve(bracket.id, approver.id)

        with pytest.raises(InvalidStateError):
            await brackets.approve(bracket.id, None)

    async def test_concurrent_approval_loses_race(
        self, session: AsyncSession, creator, approver, bracket_payload
    ):
        """Only one of two overlapping decisions is recorded."""
        rival = Employee(
            id=uuid4(),
            employee_number="EMP003",
            first_name="Dana",
            last_name="Manager",
        )
        session.add(rival)
        await session.flush()

        setup = ConfigLifecycleService(session, INSURANCE_BRACKETS)
        bracket = await setup.create(bracket_payload(), creator.id)

        class RacingDirectory:
            """Lets a rival approve between validation and the write."""

            def __init__(self):
                self.fired = False

            async def find_principal_by_id(self, principal_id):
                if not self.fired:
                    self.fired = True
                    other = ConfigLifecycleService(session, INSURANCE_BRACKETS)
                    await other.approve(bracket.id, rival.id)
                return await session.get(Employee, principal_id)

        racing = ConfigLifecycleService(session, INSURANCE_BRACKETS, RacingDirectory())

        with pytest.raises(InvalidStateError):
            await racing.reject(bracket.id, approver.id, "too late")

        current = await setup.get(bracket.id)
        assert current.status == "approved"
        assert current.approved_by == rival.id
        assert current.rejection_reason is None


class TestDelete:
    """Deleting drafts."""

    async def test_delete_draft(self, brackets, creator, bracket_payload):
        bracket = await brackets.create(bracket_payload(name="Temporary"), creator.id)

        result = await brackets.delete(bracket.id)

        assert result["deleted_id"] == str(bracket.id)
        assert "Temporary" in result["message"]
        with pytest.raises(NotFoundError):
            await brackets.get(bracket.id)

    async def test_delete_decided_forbidden(
        self, brackets, creator, approver, bracket_payload
    ):
        approved = await brackets.create(bracket_payload(name="A"), creator.id)
        rejected = await brackets.create(bracket_payload(name="B"), creator.id)
        await brackets.approve(approved.id, approver.id)
        await brackets.reject(rejected.id, approver.id)

        with pytest.raises(EditForbiddenError):
            await brackets.delete(approved.id)
        with pytest.raises(EditForbiddenError):
            await brackets.delete(rejected.id)

    async def test_delete_missing(self, brackets):
        with pytest.raises(NotFoundError):
            await brackets.delete(uuid4())


class TestReads:
    """Fetching and listing."""

    async def test_get_missing(self, brackets):
        with pytest.raises(NotFoundError) as exc_info:
            await brackets.get(uuid4())
        assert exc_info.value.http_status == 404

    async def test_get_malformed_id(self, brackets):
        with pytest.raises(NotFoundError):
            await brackets.get("garbage")

    async def test_list_filters_and_pages(
        self, brackets, creator, approver, bracket_payload
    ):
        gold = await brackets.create(bracket_payload(name="Gold Tier"), creator.id)
        await brackets.create(bracket_payload(name="Silver Tier"), creator.id)
        await brackets.create(bracket_payload(name="Bronze Tier"), creator.id)
        await brackets.approve(gold.id, approver.id)

        everything = await brackets.list(page_size=2)
        assert everything.total == 3
        assert everything.total_pages == 2
        assert len(everything.items) == 2

        second = await brackets.list(page=2, page_size=2)
        assert len(second.items) == 1

        drafts = await brackets.list(status="draft")
        assert drafts.total == 2
        assert {b.name for b in drafts.items} == {"Silver Tier", "Bronze Tier"}

        found = await brackets.list(search="gold")
        assert [b.name for b in found.items] == ["Gold Tier"]

        mine = await brackets.list(created_by=approver.id)
        assert mine.total == 0

    async def test_list_rejects_bad_paging(self, brackets):
        with pytest.raises(InvalidInputError):
            await brackets.list(page=0)

    async def test_list_approved(self, brackets, creator, approver, bracket_payload):
        a = await brackets.create(bracket_payload(name="A"), creator.id)
        b = await brackets.create(bracket_payload(name="B"), creator.id)
        await brackets.create(bracket_payload(name="C"), creator.id)
        await brackets.approve(a.id, approver.id)
        await brackets.approve(b.id, approver.id)

        assert {x.name for x in await brackets.list_approved()} == {"A", "B"}
        assert [x.name for x in await brackets.list_approved([b.id])] == ["B"]
