# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase
from siteledger.models.enums import RecordStatus


class Recordable(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    """A receivable (asset) or payable (liability) not yet settled in cash or bank."""

    __tablename__ = "record"
    __table_args__ = (sa.Index("ix_record_org_ledger", "organization_id", "ledger_id"),)

    organization_id: uuid.UUID = Field(index=True)
    type: str = Field(max_length=10)
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    description: str = Field(default="", max_length=1000)
    due_date: date
    status: str = Field(default=RecordStatus.PENDING, max_length=10)
    project_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=True, index=True),
    )
    ledger_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("ledger.id", ondelete="CASCADE"), nullable=False),
    )
    payment_mode: str = Field(max_length=10)
    bill_url: str | None = Field(default=None, max_length=1000)
    invoice_number: str | None = Field(default=None, max_length=100)
    gst_details: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    paid_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    balance_amount: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)


class RecordSettlement(UUIDBase, TimestampMixin, table=True):
    """A partial or full payment against a record."""

    __tablename__ = "record_settlement"

    organization_id: uuid.UUID = Field(index=True)
    record_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("record.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    settlement_date: date
    amount_paid: Decimal = Field(max_digits=14, decimal_places=2)
    payment_mode: str = Field(max_length=10)
    financial_account_id: uuid.UUID | None = None
    remarks: str | None = Field(default=None, max_length=1000)
    transaction_id: uuid.UUID | None = None
    # False while the converted transaction awaits approval; the record is credited on approval.
    is_applied: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    created_by: uuid.UUID
