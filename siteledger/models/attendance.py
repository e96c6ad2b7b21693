# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase
from siteledger.models.enums import LaborType


class Labor(UUIDBase, TimestampMixin, table=True):
    """A worker paid a daily rate."""

    __tablename__ = "labor"

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    type: str = Field(default=LaborType.LABORER, max_length=20)
    rate: Decimal = Field(max_digits=12, decimal_places=2)


class Hajari(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    """A day of attendance for a worker, or a monthly settlement row.

    On settlement rows ``upad`` carries the payout amount.
    """

    __tablename__ = "hajari"
    __table_args__ = (sa.Index("ix_hajari_labor_date", "labor_id", "date"),)

    organization_id: uuid.UUID = Field(index=True)
    labor_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("labor.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    project_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=True, index=True),
    )
    date: datetime.date
    status: str = Field(max_length=20)
    overtime_hours: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    upad: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    # Payout details, set on settlement rows only.
    payment_mode: str | None = Field(default=None, max_length=10)
    financial_account_id: uuid.UUID | None = None
