"""Pytest fixtures for payroll configuration tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_governance.models import Base, Employee
from payroll_governance.services import ConfigLifecycleService
from payroll_governance.services.kinds import (
    INSURANCE_BRACKETS,
    PAY_GRADES,
    TERMINATION_BENEFITS,
)

# Use in-memory SQLite for tests (with async support).
# StaticPool keeps every connection on the same in-memory database.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def _employee(session: AsyncSession, number: str, first: str, last: str) -> Employee:
    employee = Employee(
        id=uuid4(),
        employee_number=number,
        first_name=first,
        last_name=last,
        status="active",
    )
    session.add(employee)
    await session.flush()
    return employee


@pytest_asyncio.fixture
async def creator(session: AsyncSession) -> Employee:
    """Payroll specialist who drafts configuration."""
    return await _employee(session, "EMP001", "Alice", "Specialist")


@pytest_asyncio.fixture
async def approver(session: AsyncSession) -> Employee:
    """Payroll manager who reviews drafts."""
    return await _employee(session, "EMP002", "Bob", "Manager")


@pytest_asyncio.fixture
async def brackets(session: AsyncSession) -> ConfigLifecycleService:
    return ConfigLifecycleService(session, INSURANCE_BRACKETS)


@pytest_asyncio.fixture
async def pay_grades(session: AsyncSession) -> ConfigLifecycleService:
    return ConfigLifecycleService(session, PAY_GRADES)


@pytest_asyncio.fixture
async def benefits(session: AsyncSession) -> ConfigLifecycleService:
    return ConfigLifecycleService(session, TERMINATION_BENEFITS)


def _bracket_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "name": "Standard",
        "min_salary": Decimal("5000"),
        "max_salary": Decimal("15000"),
        "employee_rate": Decimal("11"),
        "employer_rate": Decimal("18.75"),
    }
    payload.update(overrides)
    return payload


def _policy_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "policy_name": "Late Arrival Penalty",
        "policy_type": "Misconduct",
        "description": "Deduction for repeated late arrival",
        "effective_date": date(2025, 1, 1),
        "rule_percentage": Decimal("2.5"),
        "rule_fixed_amount": Decimal("0"),
        "rule_threshold_amount": Decimal("1"),
        "applicability": "All Employees",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def bracket_payload():
    """Factory for valid insurance bracket payloads."""
    return _bracket_payload


@pytest.fixture
def policy_payload():
    """Factory for valid payroll policy payloads."""
    return _policy_payload
