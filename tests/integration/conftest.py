"""API test fixtures with an in-memory database behind the app."""

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.api.app import create_app
from payroll_governance.api.dependencies import get_db_session
from payroll_governance.models import Employee


@pytest_asyncio.fixture
async def staff(session_factory) -> dict[str, Employee]:
    """Committed creator and approver employees."""
    async with session_factory() as session:
        people = {
            "creator": Employee(
                id=uuid4(), employee_number="EMP101", first_name="Alice", last_name="Specialist"
            ),
            "approver": Employee(
                id=uuid4(), employee_number="EMP102", first_name="Bob", last_name="Manager"
            ),
        }
        session.add_all(people.values())
        await session.commit()
    return people


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, with sessions from the test engine."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
