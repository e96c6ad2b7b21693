# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from siteledger.models.enums import AccountType


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: str | None = Field(default=None, max_length=255)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    location: str | None
    created_at: datetime


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse]
    total: int


class FinancialAccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: AccountType = AccountType.CASH
    opening_balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    bank_name: str | None = Field(default=None, max_length=255)
    account_number: str | None = Field(default=None, max_length=50)
    ifsc_code: str | None = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def _bank_identity(self) -> Self:
        if self.type == AccountType.BANK and not (self.bank_name and self.account_number):
            msg = "Bank accounts require bank_name and account_number"
            raise ValueError(msg)
        return self


class FinancialAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    type: AccountType
    opening_balance: Decimal
    bank_name: str | None
    account_number: str | None
    ifsc_code: str | None


class FinancialAccountListResponse(BaseModel):
    items: list[FinancialAccountResponse]
    total: int
