"""Company-wide payroll settings."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_governance.models.base import Base, TimestampMixin
from payroll_governance.models.configuration import STATUS_VALUES


class CompanyWideSettings(Base, TimestampMixin):
    """Singleton settings row. The review status is persisted with the record."""

    __tablename__ = "company_settings"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    time_zone: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(f"status IN {STATUS_VALUES}", name="company_settings_status_check"),
    )
