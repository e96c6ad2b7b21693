# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from siteledger.api.deps import AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.record import RecordSettlementCreate, RecordSettlementResponse, RecordSettlementResult
from siteledger.services import recordable as recordable_service

record_settlements_router = APIRouter(
    prefix="/organizations/{organization_id}/records/{record_id}/settlements",
    tags=["records"],
    dependencies=[Depends(validate_organization_scope)],
)


@record_settlements_router.post("", response_model=RecordSettlementResult, status_code=status.HTTP_201_CREATED)
async def add_settlement(
    record_id: uuid.UUID,
    payload: RecordSettlementCreate,
    session: SessionDep,
    auth: AuthDep,
) -> RecordSettlementResult:
    """Record a payment against a receivable or payable."""
    return await recordable_service.add_settlement(session, auth, record_id, payload)


@record_settlements_router.get("", response_model=list[RecordSettlementResponse])
async def list_settlements(
    record_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> list[RecordSettlementResponse]:
    return await recordable_service.list_settlements(session, auth, record_id)
