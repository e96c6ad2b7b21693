# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from siteledger.models.enums import JournalMode


def _check_side(side: str, mode: JournalMode, ledger_id: uuid.UUID | None, account_id: uuid.UUID | None) -> None:
    if mode == JournalMode.LEDGER:
        if ledger_id is None or account_id is not None:
            msg = f"{side} side in ledger mode needs {side}_ledger_id only"
            raise ValueError(msg)
    elif account_id is None or ledger_id is not None:
        msg = f"{side} side in {mode} mode needs {side}_account_id only"
        raise ValueError(msg)


class JournalEntryCreate(BaseModel):
    """A double-entry adjustment. The debit side receives, the credit side gives."""

    date: datetime.date
    description: str = Field(default="", max_length=1000)
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    debit_mode: JournalMode
    debit_ledger_id: uuid.UUID | None = None
    debit_account_id: uuid.UUID | None = None
    credit_mode: JournalMode
    credit_ledger_id: uuid.UUID | None = None
    credit_account_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _balanced_sides(self) -> Self:
        _check_side("debit", self.debit_mode, self.debit_ledger_id, self.debit_account_id)
        _check_side("credit", self.credit_mode, self.credit_ledger_id, self.credit_account_id)
        debit_target = self.debit_ledger_id or self.debit_account_id
        credit_target = self.credit_ledger_id or self.credit_account_id
        if debit_target == credit_target:
            msg = "Debit and credit sides must differ"
            raise ValueError(msg)
        return self


class JournalEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    date: datetime.date
    description: str
    amount: Decimal
    debit_mode: JournalMode
    debit_ledger_id: uuid.UUID | None
    debit_account_id: uuid.UUID | None
    credit_mode: JournalMode
    credit_ledger_id: uuid.UUID | None
    credit_account_id: uuid.UUID | None
    created_by: uuid.UUID
    created_at: datetime.datetime


class JournalEntryListResponse(BaseModel):
    items: list[JournalEntryResponse]
    total: int
