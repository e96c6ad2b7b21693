# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase


class Transaction(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    """A cash or bank movement tagged to a project and ledger."""

    __tablename__ = "transaction"
    __table_args__ = (
        sa.Index("ix_transaction_org_account", "organization_id", "financial_account_id"),
        sa.Index("ix_transaction_org_ledger", "organization_id", "ledger_id"),
    )

    organization_id: uuid.UUID = Field(index=True)
    type: str = Field(max_length=10)
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    description: str = Field(default="", max_length=1000)
    date: datetime.date
    project_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=True, index=True),
    )
    ledger_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("ledger.id", ondelete="CASCADE"), nullable=False),
    )
    payment_mode: str = Field(max_length=10)
    financial_account_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("financial_account.id", ondelete="SET NULL"), nullable=True),
    )
    bill_url: str | None = Field(default=None, max_length=1000)
    converted_from_record_id: uuid.UUID | None = None
    hajari_settlement_id: uuid.UUID | None = Field(default=None, index=True)
