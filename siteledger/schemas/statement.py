# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from siteledger.models.enums import ApprovalStatus, TransactionType


class StatementLine(BaseModel):
    """One row of a cash/bank book with the balance after it."""

    source: Literal["transaction", "journal"]
    id: uuid.UUID
    date: datetime.date
    description: str
    type: TransactionType
    amount: Decimal
    running_balance: Decimal
    project_id: uuid.UUID | None = None
    ledger_id: uuid.UUID | None = None
    approval_status: ApprovalStatus | None = None


class AccountStatementResponse(BaseModel):
    account_id: uuid.UUID
    account_name: str
    opening_balance: Decimal
    lines: list[StatementLine]
    total_income: Decimal
    total_expense: Decimal
    closing_balance: Decimal


class LedgerTotalsResponse(BaseModel):
    """Cost-code totals. Journal amounts are included only without a project filter."""

    ledger_id: uuid.UUID
    ledger_name: str
    project_id: uuid.UUID | None
    total_income: Decimal
    total_expense: Decimal
    journal_debit: Decimal
    journal_credit: Decimal
    net: Decimal
    total_receivable: Decimal
    total_payable: Decimal
    transaction_count: int


class OrganizationSummaryResponse(BaseModel):
    project_id: uuid.UUID | None
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    total_receivable: Decimal
    total_payable: Decimal


class MaterialStockLine(BaseModel):
    material_id: uuid.UUID
    material_name: str
    unit: str
    quantity_in: Decimal
    quantity_out: Decimal
    on_hand: Decimal


class MaterialStockResponse(BaseModel):
    project_id: uuid.UUID | None
    items: list[MaterialStockLine]
