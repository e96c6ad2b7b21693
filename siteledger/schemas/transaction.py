# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, Field, model_validator

from siteledger.models.enums import PaymentMode, TransactionType
from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload


class TransactionCreate(StagedPayload):
    """Request body for recording a transaction.

    The ledger is given either by id or by name; a reserved name (the payroll
    ledger or ``Petty Cash``) is provisioned on first use.
    """

    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    description: str = Field(default="", max_length=1000)
    date: datetime.date
    project_id: uuid.UUID
    ledger_id: uuid.UUID | None = None
    ledger_name: str | None = Field(default=None, min_length=1, max_length=255)
    payment_mode: PaymentMode
    financial_account_id: uuid.UUID | None = None
    bill_url: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _one_ledger_reference(self) -> Self:
        if (self.ledger_id is None) == (self.ledger_name is None):
            msg = "Provide exactly one of ledger_id or ledger_name"
            raise ValueError(msg)
        return self


class TransactionUpdate(PartialUpdate):
    """Partial edit of a transaction."""

    required_fields = frozenset({"type", "amount", "date", "project_id", "ledger_id", "payment_mode"})

    type: TransactionType | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    description: str | None = Field(default=None, max_length=1000)
    date: datetime.date | None = None
    project_id: uuid.UUID | None = None
    ledger_id: uuid.UUID | None = None
    payment_mode: PaymentMode | None = None
    financial_account_id: uuid.UUID | None = None
    bill_url: str | None = Field(default=None, max_length=1000)


class TransactionResponse(ApprovableResponse):
    type: TransactionType
    amount: Decimal
    description: str
    date: datetime.date
    project_id: uuid.UUID | None
    ledger_id: uuid.UUID
    payment_mode: PaymentMode
    financial_account_id: uuid.UUID | None
    bill_url: str | None
    converted_from_record_id: uuid.UUID | None
    hajari_settlement_id: uuid.UUID | None


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
