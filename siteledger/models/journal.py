# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from sqlmodel import Field

from siteledger.models.base import TimestampMixin, UUIDBase


class JournalEntry(UUIDBase, TimestampMixin, table=True):
    """Manual double-entry adjustment. The debit side receives, the credit side gives."""

    __tablename__ = "journal_entry"

    organization_id: uuid.UUID = Field(index=True)
    date: datetime.date
    description: str = Field(default="", max_length=1000)
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    debit_mode: str = Field(max_length=10)
    debit_ledger_id: uuid.UUID | None = Field(default=None, index=True)
    debit_account_id: uuid.UUID | None = Field(default=None, index=True)
    credit_mode: str = Field(max_length=10)
    credit_ledger_id: uuid.UUID | None = Field(default=None, index=True)
    credit_account_id: uuid.UUID | None = Field(default=None, index=True)
    created_by: uuid.UUID
