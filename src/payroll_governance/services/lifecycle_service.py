"""Lifecycle service: create → review → decide for every configuration kind."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.errors import (
    AlreadyExistsError,
    EditForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from payroll_governance.models.base import utcnow
from payroll_governance.services.approver import (
    ApproverValidator,
    EmployeeDirectory,
    PrincipalLookup,
    parse_identity,
)
from payroll_governance.services.kinds import ConfigKind
from payroll_governance.services.state_machine import (
    ConfigStateMachine,
    ConfigStatus,
    status_value,
)

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of a filtered listing."""

    items: list[Any]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class ConfigLifecycleService:
    """Service enforcing the review workflow for one configuration kind.

    Operations:
    - create: persist a new DRAFT item after uniqueness and range checks
    - update: merge-update a DRAFT item, re-validating against stored values
    - approve / reject: one-shot DRAFT → APPROVED / REJECTED decision
    - delete: remove a DRAFT item

    Every state-dependent write is conditional on ``status = 'draft'`` at
    write time, so two concurrent decisions on the same item cannot both
    succeed.
    """

    def __init__(
        self,
        session: AsyncSession,
        kind: ConfigKind,
        principals: PrincipalLookup | None = None,
    ):
        self.session = session
        self.kind = kind
        self.model = kind.model
        self.approvers = ApproverValidator(principals or EmployeeDirectory(session))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, item_id: UUID) -> Any:
        """Load an item by id, raising NotFoundError if absent."""
        parsed = parse_identity(item_id)
        item = await self.session.get(self.model, parsed) if parsed else None
        if item is None:
            raise NotFoundError(self.kind.label, item_id)
        return item

    async def list(
        self,
        status: str | None = None,
        search: str | None = None,
        created_by: UUID | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Page:
        """List items newest first with optional filters."""
        if page < 1 or page_size < 1:
            raise InvalidInputError("page and page_size must be positive")

        query = select(self.model)
        if status:
            query = query.where(self.model.status == status_value(status))
        if created_by:
            query = query.where(self.model.created_by == created_by)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(*(getattr(self.model, f).ilike(pattern) for f in self.kind.search_fields))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = await self.session.scalar(count_query) or 0

        query = query.order_by(self.model.created_at.desc())
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await self.session.execute(query)

        return Page(
            items=list(result.scalars().all()),
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_approved(self, ids: Iterable[UUID] | None = None) -> list[Any]:
        """All APPROVED items, optionally restricted to the given ids."""
        query = select(self.model).where(self.model.status == ConfigStatus.APPROVED.value)
        id_list = [parse_identity(i) for i in ids] if ids else []
        if id_list:
            query = query.where(self.model.id.in_([i for i in id_list if i is not None]))
        result = await self.session.execute(query.order_by(self.model.created_at))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, payload: Mapping[str, Any], created_by: UUID | str) -> Any:
        """Create a new DRAFT item."""
        creator = parse_identity(created_by)
        if creator is None:
            raise InvalidInputError("createdByEmployeeId must be a valid identity reference")

        values = self._clean(payload)
        missing = [f for f in self.kind.required if values.get(f) is None]
        if missing:
            raise InvalidInputError(f"Missing required field(s): {', '.join(missing)}")

        if self.kind.normalize is not None:
            values = self.kind.normalize(values, None)
        self.kind.validate(values)
        await self._ensure_unique(values[self.kind.identity_field])

        item = self.model(
            **values,
            created_by=creator,
            status=ConfigStatus.DRAFT.value,
        )
        self.session.add(item)
        await self.session.flush()

        logger.info("%s '%s' created as draft by %s", self.kind.label, values[self.kind.identity_field], creator)
        return item

    async def update(self, item_id: UUID, changes: Mapping[str, Any]) -> Any:
        """Merge-update a DRAFT item."""
        item = await self.get(item_id)
        self._ensure_mutable(item, "edited")

        values = self._clean(changes)
        nulled = [f for f in self.kind.required if f in values and values[f] is None]
        if nulled:
            raise InvalidInputError(f"Field(s) cannot be cleared: {', '.join(nulled)}")
        if self.kind.normalize is not None:
            values = self.kind.normalize(values, item)
        if not values:
            return item

        merged = {f: getattr(item, f) for f in self.kind.fields}
        merged.update(values)
        self.kind.validate(merged)

        identity = self.kind.identity_field
        if identity in values:
            await self._ensure_unique(values[identity], exclude_id=item.id)

        previous_amount = getattr(item, "amount", None)
        result = await self.session.execute(
            update(self.model)
            .where(
                self.model.id == item.id,
                self.model.status == ConfigStatus.DRAFT.value,
            )
            .values(**values, updated_at=utcnow())
        )
        if result.rowcount != 1:
            await self._raise_lost_race(item.id, "edited")

        await self.session.refresh(item)
        if "amount" in values and previous_amount is not None and item.amount != previous_amount:
            logger.info(
                "Manual adjustment: %s '%s' amount changed from %s to %s",
                self.kind.label,
                self.kind.identity_of(item),
                previous_amount,
                item.amount,
            )
        return item

    async def approve(self, item_id: UUID, approver_id: UUID | str | None) -> Any:
        """Approve a DRAFT item."""
        return await self._decide(item_id, approver_id, ConfigStatus.APPROVED)

    async def reject(
        self,
        item_id: UUID,
        approver_id: UUID | str | None,
        reason: str | None = None,
    ) -> Any:
        """Reject a DRAFT item."""
        return await self._decide(item_id, approver_id, ConfigStatus.REJECTED, reason)

    async def delete(self, item_id: UUID) -> dict[str, str]:
        """Delete a DRAFT item. Decided items are kept."""
        item = await self.get(item_id)
        self._ensure_mutable(item, "deleted")
        identity = self.kind.identity_of(item)

        result = await self.session.execute(
            delete(self.model).where(
                self.model.id == item.id,
                self.model.status == ConfigStatus.DRAFT.value,
            )
        )
        if result.rowcount != 1:
            await self._raise_lost_race(item.id, "deleted")

        logger.info("%s '%s' deleted", self.kind.label, identity)
        return {
            "message": f"{self.kind.label} '{identity}' successfully deleted",
            "deleted_id": str(item.id),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _decide(
        self,
        item_id: UUID,
        approver_id: UUID | str | None,
        to_status: ConfigStatus,
        reason: str | None = None,
    ) -> Any:
        item = await self.get(item_id)
        ConfigStateMachine.validate_transition(item.status, to_status, self.kind.plural)
        approver = await self.approvers.validate(approver_id, item.created_by)

        result = await self.session.execute(
            update(self.model)
            .where(
                self.model.id == item.id,
                self.model.status == ConfigStatus.DRAFT.value,
            )
            .values(
                status=to_status.value,
                approved_by=approver,
                approved_at=utcnow(),
                rejection_reason=reason if to_status == ConfigStatus.REJECTED else None,
                updated_at=utcnow(),
            )
        )
        if result.rowcount != 1:
            await self._raise_lost_race(item.id, to_status.value)

        await self.session.refresh(item)
        logger.info(
            "%s '%s' %s by %s",
            self.kind.label,
            self.kind.identity_of(item),
            to_status.value,
            approver,
        )
        return item

    async def _raise_lost_race(self, item_id: UUID, attempted: str) -> None:
        """Re-read an item whose conditional write matched no row and raise."""
        current = await self.session.get(self.model, item_id, populate_existing=True)
        if current is None:
            raise NotFoundError(self.kind.label, item_id)
        if attempted in (ConfigStatus.APPROVED.value, ConfigStatus.REJECTED.value):
            ConfigStateMachine.validate_transition(current.status, attempted, self.kind.plural)
        if attempted in ("edited", "deleted"):
            self._ensure_mutable(current, attempted)
        raise InvalidStateError(
            f"{self.kind.label} {item_id} changed concurrently; retry the operation",
            status=current.status,
        )

    def _ensure_mutable(self, item: Any, verb: str) -> None:
        if not ConfigStateMachine.is_mutable(item.status):
            raise EditForbiddenError(
                f"Cannot modify {self.kind.label.lower()} with status '{item.status}'. "
                f"Only DRAFT {self.kind.plural} can be {verb}.",
                status=item.status,
            )

    async def _ensure_unique(self, value: str, exclude_id: UUID | None = None) -> None:
        column = getattr(self.model, self.kind.identity_field)
        query = select(self.model.id).where(func.lower(column) == str(value).lower())
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        if await self.session.scalar(query.limit(1)) is not None:
            raise AlreadyExistsError(self.kind.label, value)

    def _clean(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only the kind's editable fields, unwrapping enum members."""
        cleaned: dict[str, Any] = {}
        for name in self.kind.fields:
            if name in payload:
                value = payload[name]
                cleaned[name] = value.value if isinstance(value, Enum) else value
        return cleaned
