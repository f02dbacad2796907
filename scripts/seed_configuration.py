"""Seed script for a demo employee directory and draft configuration.

Run with:
    python scripts/seed_configuration.py

Creates the tables if needed, two employees (a payroll specialist and a
payroll manager) and one draft item per configuration kind, created by the
specialist so the manager can review them.
"""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.database import create_all, dispose_db, get_session
from payroll_governance.errors import AlreadyExistsError
from payroll_governance.models import Employee
from payroll_governance.services import ConfigLifecycleService, get_kind

SAMPLE_DRAFTS: dict[str, list[dict[str, Any]]] = {
    "tax-rules": [
        {"name": "Income Tax", "description": "Progressive income tax", "rate": Decimal("22.5")},
    ],
    "insurance-brackets": [
        {
            "name": "Social Insurance Standard",
            "min_salary": Decimal("2000"),
            "max_salary": Decimal("12600"),
            "employee_rate": Decimal("11"),
            "employer_rate": Decimal("18.75"),
        },
    ],
    "allowances": [
        {"name": "Housing Allowance", "amount": Decimal("1500")},
        {"name": "Transportation Allowance", "amount": Decimal("600")},
    ],
    "pay-types": [
        {"type": "Monthly", "amount": Decimal("0")},
    ],
    "policies": [
        {
            "policy_name": "Late Arrival Penalty",
            "policy_type": "Misconduct",
            "description": "Deduct a percentage of daily pay after repeated late arrival",
            "effective_date": date(2025, 1, 1),
            "rule_percentage": Decimal("2"),
            "rule_fixed_amount": Decimal("0"),
            "rule_threshold_amount": Decimal("3"),
            "applicability": "All Employees",
        },
    ],
    "signing-bonuses": [
        {"position_name": "Senior Engineer", "amount": Decimal("10000")},
    ],
    "termination-benefits": [
        {"name": "End of Service Gratuity", "amount": Decimal("0"), "terms": "Half a month per year"},
        {"name": "Severance Pay", "amount": Decimal("0"), "terms": "One month per year, max 12"},
    ],
    "pay-grades": [
        {"grade": "Junior", "base_salary": Decimal("8000"), "gross_salary": Decimal("10100")},
        {"grade": "Senior", "base_salary": Decimal("15000"), "gross_salary": Decimal("18000")},
    ],
}


async def seed_employees(session: AsyncSession) -> dict[str, Employee]:
    """Create the specialist and manager if they do not exist."""
    employees = {}
    for number, first, last in [
        ("EMP001", "Mona", "Specialist"),
        ("EMP002", "Karim", "Manager"),
    ]:
        result = await session.execute(
            select(Employee).where(Employee.employee_number == number)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            employee = Employee(employee_number=number, first_name=first, last_name=last)
            session.add(employee)
            await session.flush()
            print(f"Created employee {number} ({employee.full_name})")
        employees[number] = employee
    return employees


async def seed_drafts(session: AsyncSession, creator: Employee) -> None:
    """Create one draft per sample item, skipping ones already present."""
    for slug, items in SAMPLE_DRAFTS.items():
        service = ConfigLifecycleService(session, get_kind(slug))
        for payload in items:
            try:
                item = await service.create(payload, creator.id)
            except AlreadyExistsError as exc:
                print(f"Skipped {slug}: {exc}")
                continue
            print(f"Created draft {slug} '{service.kind.identity_of(item)}'")


async def main():
    """Run seed script."""
    print("Seeding payroll configuration...")

    await create_all()
    async with get_session() as session:
        employees = await seed_employees(session)
        await seed_drafts(session, employees["EMP001"])
        await session.commit()
    await dispose_db()

    print("\nDone! Approve the drafts as EMP002 to activate them.")


if __name__ == "__main__":
    asyncio.run(main())
