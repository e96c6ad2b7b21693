# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from siteledger.api.deps import AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.notification import NotificationListResponse, NotificationResponse
from siteledger.services import notification as notification_service

notifications_router = APIRouter(
    prefix="/organizations/{organization_id}/notifications",
    tags=["notifications"],
    dependencies=[Depends(validate_organization_scope)],
)


class MarkAllReadResponse(BaseModel):
    updated: int


@notifications_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    session: SessionDep,
    auth: AuthDep,
    unread_only: bool = Query(default=False),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> NotificationListResponse:
    """The caller's notifications, newest first. Admins also see admin-wide messages."""
    return await notification_service.list_notifications(session, auth, unread_only, offset, limit)


@notifications_router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    session: SessionDep,
    auth: AuthDep,
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await notification_service.mark_all_read(session, auth))


@notifications_router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> NotificationResponse:
    return await notification_service.mark_read(session, auth, notification_id)
