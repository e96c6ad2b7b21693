# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import datetime
import uuid

from fastapi import APIRouter, Depends, Path, Query

from siteledger.api.deps import AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.attendance import MonthlyAttendanceSummary
from siteledger.schemas.statement import (
    AccountStatementResponse,
    LedgerTotalsResponse,
    MaterialStockResponse,
    OrganizationSummaryResponse,
)
from siteledger.services import attendance as attendance_service
from siteledger.services import statement as statement_service

reports_router = APIRouter(
    prefix="/organizations/{organization_id}",
    tags=["reports"],
    dependencies=[Depends(validate_organization_scope)],
)


@reports_router.get("/accounts/{account_id}/statement", response_model=AccountStatementResponse)
async def account_statement(
    account_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
    user_id: uuid.UUID | None = Query(default=None),
    date_from: datetime.date | None = Query(default=None),
    date_to: datetime.date | None = Query(default=None),
) -> AccountStatementResponse:
    """Running-balance book of a cash or bank account."""
    return await statement_service.get_account_statement(
        session, auth, account_id, project_id, user_id, date_from, date_to
    )


@reports_router.get("/ledgers/{ledger_id}/totals", response_model=LedgerTotalsResponse)
async def ledger_totals(
    ledger_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
) -> LedgerTotalsResponse:
    """Cost-code totals of a ledger."""
    return await statement_service.get_ledger_totals(session, auth, ledger_id, project_id)


@reports_router.get("/summary", response_model=OrganizationSummaryResponse)
async def summary(
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
) -> OrganizationSummaryResponse:
    """Income, expense, receivables and payables of the organization or a project."""
    return await statement_service.get_summary(session, auth, project_id)


@reports_router.get("/material-stock", response_model=MaterialStockResponse)
async def material_stock(
    session: SessionDep,
    auth: AuthDep,
    project_id: uuid.UUID | None = Query(default=None),
) -> MaterialStockResponse:
    """Stock on hand per material."""
    return await statement_service.get_material_stock(session, auth, project_id)


@reports_router.get("/labors/{labor_id}/attendance/{year}/{month}", response_model=MonthlyAttendanceSummary)
async def monthly_attendance(
    labor_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int = Path(ge=2000, le=2099),
    month: int = Path(ge=1, le=12),
) -> MonthlyAttendanceSummary:
    """Wage, advances, settlements and amount payable for a worker's month."""
    return await attendance_service.get_monthly_summary(session, auth, labor_id, year, month)
