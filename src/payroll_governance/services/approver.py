"""Approver validation against a principal directory."""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.errors import InvalidApproverError, SelfApprovalError
from payroll_governance.models import Employee


class PrincipalLookup(Protocol):
    """Capability used to check that an approver exists."""

    async def find_principal_by_id(self, principal_id: UUID) -> Any | None:
        ...


class EmployeeDirectory:
    """PrincipalLookup backed by the employee table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_principal_by_id(self, principal_id: UUID) -> Employee | None:
        return await self.session.get(Employee, principal_id)


def parse_identity(value: str | UUID | None) -> UUID | None:
    """Parse an identity reference, returning None when malformed."""
    if isinstance(value, UUID):
        return value
    if value is None:
        return None
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


class ApproverValidator:
    """Validates the principal recording a decision on a configuration item.

    Checks, in order:
    1. approver id is present
    2. approver id is a syntactically valid identity
    3. approver is not the creator of the item
    4. approver resolves to an existing principal

    The creator check runs before the directory lookup so self-approval is
    reported as such even when the creator is missing from the directory.
    """

    def __init__(self, lookup: PrincipalLookup):
        self.lookup = lookup

    async def validate(self, approver_id: str | UUID | None, creator_id: UUID | None) -> UUID:
        """Return the parsed approver id, raising on any violation."""
        if approver_id is None or (isinstance(approver_id, str) and not approver_id.strip()):
            raise InvalidApproverError("approvedBy is required")

        parsed = parse_identity(approver_id)
        if parsed is None:
            raise InvalidApproverError("approvedBy must be a valid identity reference")

        if creator_id is not None and parse_identity(creator_id) == parsed:
            raise SelfApprovalError()

        principal = await self.lookup.find_principal_by_id(parsed)
        if principal is None:
            raise InvalidApproverError("Approver employee not found")

        return parsed
