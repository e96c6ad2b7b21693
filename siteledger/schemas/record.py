# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Self

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from siteledger.models.enums import PaymentMode, RecordStatus, RecordType
from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload

_EARLIEST_DUE_DATE = date(2000, 1, 1)
_LATEST_DUE_DATE = date(2099, 12, 31)


def _check_due_date(value: date) -> date:
    if not (_EARLIEST_DUE_DATE <= value <= _LATEST_DUE_DATE):
        msg = f"due_date must fall between {_EARLIEST_DUE_DATE} and {_LATEST_DUE_DATE}"
        raise ValueError(msg)
    return value


DueDate = Annotated[date, AfterValidator(_check_due_date)]


class GstDetails(BaseModel):
    """GST breakdown of an invoice. Replaced as a whole on edit."""

    taxable_amount: Decimal = Field(ge=0, max_digits=14, decimal_places=2)
    cgst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    cgst_amount: Decimal = Field(default=Decimal("0"), ge=0)
    sgst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    sgst_amount: Decimal = Field(default=Decimal("0"), ge=0)
    igst_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    igst_amount: Decimal = Field(default=Decimal("0"), ge=0)
    round_off: Decimal = Decimal("0")

    @property
    def invoice_total(self) -> Decimal:
        return self.taxable_amount + self.cgst_amount + self.sgst_amount + self.igst_amount + self.round_off


class RecordCreate(StagedPayload):
    """Request body for a receivable or payable."""

    json_fields = frozenset({"gst_details"})

    type: RecordType
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    description: str = Field(default="", max_length=1000)
    due_date: DueDate
    project_id: uuid.UUID
    ledger_id: uuid.UUID | None = None
    ledger_name: str | None = Field(default=None, min_length=1, max_length=255)
    payment_mode: PaymentMode
    bill_url: str | None = Field(default=None, max_length=1000)
    invoice_number: str | None = Field(default=None, max_length=100)
    gst_details: GstDetails | None = None

    @model_validator(mode="after")
    def _one_ledger_reference(self) -> Self:
        if (self.ledger_id is None) == (self.ledger_name is None):
            msg = "Provide exactly one of ledger_id or ledger_name"
            raise ValueError(msg)
        return self


class RecordUpdate(PartialUpdate):
    """Partial edit of a record. ``gst_details`` is replaced wholesale when given."""

    required_fields = frozenset({"type", "amount", "due_date", "project_id", "ledger_id", "payment_mode"})
    json_fields = frozenset({"gst_details"})

    type: RecordType | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    description: str | None = Field(default=None, max_length=1000)
    due_date: DueDate | None = None
    project_id: uuid.UUID | None = None
    ledger_id: uuid.UUID | None = None
    payment_mode: PaymentMode | None = None
    bill_url: str | None = Field(default=None, max_length=1000)
    invoice_number: str | None = Field(default=None, max_length=100)
    gst_details: GstDetails | None = None


class RecordResponse(ApprovableResponse):
    type: RecordType
    amount: Decimal
    description: str
    due_date: date
    status: RecordStatus
    project_id: uuid.UUID | None
    ledger_id: uuid.UUID
    payment_mode: PaymentMode
    bill_url: str | None
    invoice_number: str | None
    gst_details: GstDetails | None
    paid_amount: Decimal
    balance_amount: Decimal | None


class RecordListResponse(BaseModel):
    items: list[RecordResponse]
    total: int


# ---------------------------------------------------------------------------
# Settlements
# ---------------------------------------------------------------------------


class RecordSettlementCreate(BaseModel):
    """Request body for a payment against a record."""

    settlement_date: date
    amount_paid: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    payment_mode: PaymentMode
    financial_account_id: uuid.UUID | None = None
    remarks: str | None = Field(default=None, max_length=1000)
    convert_to_transaction: bool = False


class RecordSettlementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    record_id: uuid.UUID
    settlement_date: date
    amount_paid: Decimal
    payment_mode: PaymentMode
    financial_account_id: uuid.UUID | None
    remarks: str | None
    transaction_id: uuid.UUID | None
    is_applied: bool
    created_by: uuid.UUID
    created_at: datetime


class RecordSettlementResult(BaseModel):
    settlement: RecordSettlementResponse
    record: RecordResponse
