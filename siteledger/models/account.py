# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

from sqlmodel import Field

from siteledger.models.base import TimestampMixin, UUIDBase
from siteledger.models.enums import AccountType


class FinancialAccount(UUIDBase, TimestampMixin, table=True):
    """A cash box or bank account whose book is derived from transactions and journals."""

    __tablename__ = "financial_account"

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    type: str = Field(default=AccountType.CASH, max_length=10)
    opening_balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    bank_name: str | None = Field(default=None, max_length=255)
    account_number: str | None = Field(default=None, max_length=50)
    ifsc_code: str | None = Field(default=None, max_length=20)
