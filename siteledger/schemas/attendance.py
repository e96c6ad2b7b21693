# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from siteledger.models.enums import AttendanceStatus, LaborType, PaymentMode
from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload

_DAILY_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.HALF_DAY)

# ---------------------------------------------------------------------------
# Labors
# ---------------------------------------------------------------------------


class LaborCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: LaborType = LaborType.LABORER
    rate: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class LaborResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    type: LaborType
    rate: Decimal


class LaborListResponse(BaseModel):
    items: list[LaborResponse]
    total: int


# ---------------------------------------------------------------------------
# Attendance rows
# ---------------------------------------------------------------------------


class HajariCreate(StagedPayload):
    """A day of attendance. Settlement rows go through the settlement endpoint."""

    labor_id: uuid.UUID
    project_id: uuid.UUID
    date: datetime.date
    status: AttendanceStatus
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0, le=24, max_digits=5, decimal_places=2)
    upad: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def _daily_status_only(self) -> Self:
        if self.status not in _DAILY_STATUSES:
            msg = "Settlement rows must be created through the settlement endpoint"
            raise ValueError(msg)
        return self


class HajariUpdate(PartialUpdate):
    required_fields = frozenset({"labor_id", "date", "status", "overtime_hours", "upad"})

    labor_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    date: datetime.date | None = None
    status: AttendanceStatus | None = None
    overtime_hours: Decimal | None = Field(default=None, ge=0, le=24, max_digits=5, decimal_places=2)
    upad: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)

    @model_validator(mode="after")
    def _daily_status_only(self) -> Self:
        if self.status is not None and self.status not in _DAILY_STATUSES:
            msg = "Attendance rows cannot be turned into settlement rows"
            raise ValueError(msg)
        return self


class HajariResponse(ApprovableResponse):
    labor_id: uuid.UUID
    project_id: uuid.UUID | None
    date: datetime.date
    status: AttendanceStatus
    overtime_hours: Decimal
    upad: Decimal
    payment_mode: PaymentMode | None
    financial_account_id: uuid.UUID | None


class HajariListResponse(BaseModel):
    items: list[HajariResponse]
    total: int


class AttendanceSheetPayload(BaseModel):
    """A day's attendance for several workers, submitted together."""

    records: list[HajariCreate] = Field(min_length=1, max_length=500)
    request_message: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Settlements
# ---------------------------------------------------------------------------


class SettlementRequestPayload(BaseModel):
    """Request to pay out a worker's month."""

    year: int = Field(ge=2000, le=2099)
    month: int = Field(ge=1, le=12)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_mode: PaymentMode
    project_id: uuid.UUID | None = None
    financial_account_id: uuid.UUID | None = None
    request_message: str | None = Field(default=None, max_length=1000)


class SettlementResponse(BaseModel):
    hajari: HajariResponse
    transaction_id: uuid.UUID | None


# ---------------------------------------------------------------------------
# Monthly summary
# ---------------------------------------------------------------------------


class DailyWageLine(BaseModel):
    hajari_id: uuid.UUID
    date: datetime.date
    status: AttendanceStatus
    overtime_hours: Decimal
    day_wage: Decimal
    overtime_pay: Decimal
    daily_total: Decimal
    upad: Decimal


class MonthlyAttendanceSummary(BaseModel):
    labor_id: uuid.UUID
    year: int
    month: int
    rate: Decimal
    lines: list[DailyWageLine]
    days_present: int
    days_half: int
    days_absent: int
    total_overtime_hours: Decimal
    total_wage: Decimal
    total_upad: Decimal
    final_amount: Decimal
    total_settled: Decimal
    payable_amount: Decimal
    has_pending_settlement: bool
