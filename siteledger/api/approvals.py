# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends

from siteledger.api.deps import AdminDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.approvable import DecisionPayload, PendingApprovalsResponse, RejectPayload
from siteledger.services import approval as approval_service

approvals_router = APIRouter(
    prefix="/organizations/{organization_id}/approvals",
    tags=["approvals"],
    dependencies=[Depends(validate_organization_scope)],
)


@approvals_router.get("", response_model=PendingApprovalsResponse)
async def list_pending(
    session: SessionDep,
    auth: AdminDep,
) -> PendingApprovalsResponse:
    """Everything awaiting a decision, grouped by entity type (admin only)."""
    return await approval_service.list_pending(session, auth)


# The concrete response type depends on the entity type, so these routes
# return the service result as-is instead of narrowing it to a base schema.
@approvals_router.post("/{entity_type}/{entity_id}/approve", response_model=None)
async def approve(
    entity_type: str,
    entity_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
    payload: DecisionPayload | None = None,
) -> Any:
    """Approve a pending change (admin only)."""
    return await approval_service.approve_change(session, auth, entity_type, entity_id, payload or DecisionPayload())


@approvals_router.post("/{entity_type}/{entity_id}/reject", response_model=None)
async def reject(
    entity_type: str,
    entity_id: uuid.UUID,
    payload: RejectPayload,
    session: SessionDep,
    auth: AdminDep,
) -> Any:
    """Reject a pending change with a reason (admin only)."""
    return await approval_service.reject_change(session, auth, entity_type, entity_id, payload)
