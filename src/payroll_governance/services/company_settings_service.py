"""Company-wide settings: lazily materialized singleton with a persisted review status."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_governance.config import Settings, get_settings
from payroll_governance.errors import EditForbiddenError, InvalidStateError, NotFoundError
from payroll_governance.models import CompanyWideSettings
from payroll_governance.models.base import utcnow
from payroll_governance.services.state_machine import ConfigStateMachine, ConfigStatus

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("pay_date", "time_zone", "currency")


class CompanySettingsService:
    """Reads and governs the single company-wide settings record."""

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    async def _load(self) -> CompanyWideSettings | None:
        result = await self.session.execute(
            select(CompanyWideSettings).order_by(CompanyWideSettings.created_at).limit(1)
        )
        return result.scalar_one_or_none()

    def _defaults(self) -> dict[str, Any]:
        return {
            "pay_date": date.today(),
            "time_zone": self.settings.default_time_zone,
            "currency": self.settings.default_currency,
        }

    async def get_settings(self) -> CompanyWideSettings:
        """Return the settings, creating the default record on first read."""
        record = await self._load()
        if record is None:
            record = CompanyWideSettings(**self._defaults(), status=ConfigStatus.DRAFT.value)
            self.session.add(record)
            await self.session.flush()
            logger.info("Materialized default company-wide settings")
        return record

    async def get_currency(self) -> str:
        record = await self.get_settings()
        return record.currency or self.settings.default_currency

    async def update_settings(self, changes: Mapping[str, Any]) -> CompanyWideSettings:
        """Merge-update the settings while they are still in draft."""
        values = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        record = await self._load()
        if record is None:
            record = CompanyWideSettings(
                **{**self._defaults(), **values},
                status=ConfigStatus.DRAFT.value,
            )
            self.session.add(record)
            await self.session.flush()
            return record

        if not ConfigStateMachine.is_mutable(record.status):
            raise EditForbiddenError(
                f"Cannot update company-wide settings with status '{record.status}'. "
                "Only DRAFT settings can be edited.",
                status=record.status,
            )
        for name, value in values.items():
            setattr(record, name, value)
        await self.session.flush()
        return record

    async def approve_settings(self) -> CompanyWideSettings:
        return await self._decide(ConfigStatus.APPROVED)

    async def reject_settings(self) -> CompanyWideSettings:
        return await self._decide(ConfigStatus.REJECTED)

    async def reset_status(self) -> CompanyWideSettings | None:
        """Return the settings to draft (startup hook, opt-in)."""
        record = await self._load()
        if record is None:
            return None
        record.status = ConfigStatus.DRAFT.value
        record.decided_at = None
        await self.session.flush()
        logger.info("Company-wide settings status reset to draft")
        return record

    async def _decide(self, to_status: ConfigStatus) -> CompanyWideSettings:
        record = await self._load()
        if record is None:
            raise NotFoundError("Company-wide settings", "singleton")
        ConfigStateMachine.validate_transition(record.status, to_status, "settings")

        result = await self.session.execute(
            update(CompanyWideSettings)
            .where(
                CompanyWideSettings.id == record.id,
                CompanyWideSettings.status == ConfigStatus.DRAFT.value,
            )
            .values(status=to_status.value, decided_at=utcnow(), updated_at=utcnow())
        )
        if result.rowcount != 1:
            raise InvalidStateError(
                "Company-wide settings were decided concurrently",
                status=record.status,
            )
        await self.session.refresh(record)
        logger.info("Company-wide settings %s", to_status.value)
        return record
