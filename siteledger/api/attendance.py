# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Path, Query, status

from siteledger.api.deps import AdminDep, AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.attendance import (
    AttendanceSheetPayload,
    HajariListResponse,
    LaborCreate,
    LaborListResponse,
    LaborResponse,
    SettlementRequestPayload,
    SettlementResponse,
)
from siteledger.services import attendance as attendance_service
from siteledger.services import labor as labor_service

labors_router = APIRouter(
    prefix="/organizations/{organization_id}/labors",
    tags=["labors"],
    dependencies=[Depends(validate_organization_scope)],
)

attendance_sheet_router = APIRouter(
    prefix="/organizations/{organization_id}/hajari",
    tags=["hajari"],
    dependencies=[Depends(validate_organization_scope)],
)


@labors_router.post("", response_model=LaborResponse, status_code=status.HTTP_201_CREATED)
async def create_labor(
    payload: LaborCreate,
    session: SessionDep,
    auth: AdminDep,
) -> LaborResponse:
    """Add a worker (admin only)."""
    return await labor_service.create_labor(session, auth, payload)


@labors_router.get("", response_model=LaborListResponse)
async def list_labors(
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
) -> LaborListResponse:
    return await labor_service.list_labors(session, auth.organization_id, offset, limit)


@labors_router.get("/{labor_id}/hajari/{year}/{month}", response_model=HajariListResponse)
async def list_month_rows(
    labor_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int = Path(ge=2000, le=2099),
    month: int = Path(ge=1, le=12),
) -> HajariListResponse:
    """Raw attendance and settlement rows of a worker's month."""
    return await attendance_service.list_labor_hajari(session, auth, labor_id, year, month)


@labors_router.post("/{labor_id}/settlements", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def request_settlement(
    labor_id: uuid.UUID,
    payload: SettlementRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> SettlementResponse:
    """Pay out a worker's month (admin) or request the payout (everyone else)."""
    return await attendance_service.request_settlement(session, auth, labor_id, payload)


@attendance_sheet_router.post("/bulk", response_model=HajariListResponse, status_code=status.HTTP_201_CREATED)
async def save_attendance_sheet(
    payload: AttendanceSheetPayload,
    session: SessionDep,
    auth: AuthDep,
) -> HajariListResponse:
    """Submit several attendance rows at once; either all are saved or none."""
    return await attendance_service.save_attendance_sheet(session, auth, payload)
