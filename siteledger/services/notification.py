# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel
from sqlalchemy import func, or_, select, update
from sqlmodel import col

from siteledger.exceptions import NotFoundError
from siteledger.models.enums import NotificationType
from siteledger.models.notification import Notification
from siteledger.schemas.notification import NotificationListResponse, NotificationResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


class NotificationMessage(BaseModel):
    """A human-readable message about a state transition.

    ``user_id`` of ``None`` addresses every admin of the organization.
    """

    organization_id: uuid.UUID
    user_id: uuid.UUID | None
    message: str
    type: NotificationType
    item_id: uuid.UUID | None = None
    item_type: str | None = None


@runtime_checkable
class NotificationSink(Protocol):
    """Destination for workflow notifications."""

    async def push(self, session: AsyncSession, message: NotificationMessage) -> None:
        """Deliver one message."""
        ...


class DatabaseNotificationSink:
    """Stores notifications in the ``notification`` table, committing on its own."""

    async def push(self, session: AsyncSession, message: NotificationMessage) -> None:
        session.add(Notification(**message.model_dump()))
        await session.commit()


class InMemoryNotificationSink:
    """Collects messages in a list, for tests."""

    def __init__(self) -> None:
        self.messages: list[NotificationMessage] = []

    async def push(self, session: AsyncSession, message: NotificationMessage) -> None:
        self.messages.append(message)


_notification_sink: NotificationSink = DatabaseNotificationSink()


def get_notification_sink() -> NotificationSink:
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


async def notify(session: AsyncSession, message: NotificationMessage) -> None:
    """Fire-and-forget delivery. Must be called after the business write has committed."""
    try:
        await _notification_sink.push(session, message)
    except Exception:
        logger.exception("Notification delivery failed for %s %s", message.item_type, message.item_id)
        await session.rollback()


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------


def _inbox_filter(auth: AuthContext) -> list:
    filters = [col(Notification.organization_id) == auth.organization_id]
    if auth.is_admin:
        filters.append(or_(col(Notification.user_id).is_(None), col(Notification.user_id) == auth.user_id))
    else:
        filters.append(col(Notification.user_id) == auth.user_id)
    return filters


async def list_notifications(
    session: AsyncSession,
    auth: AuthContext,
    unread_only: bool = False,
    offset: int = 0,
    limit: int = 50,
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    filters = _inbox_filter(auth)
    unread_result = await session.execute(
        select(func.count()).select_from(Notification).where(*filters, col(Notification.is_read).is_(False))
    )
    unread = unread_result.scalar_one()
    if unread_only:
        filters.append(col(Notification.is_read).is_(False))

    count_result = await session.execute(select(func.count()).select_from(Notification).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Notification)
        .where(*filters)
        .order_by(col(Notification.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    items = [NotificationResponse.model_validate(n) for n in result.scalars().all()]
    return NotificationListResponse(items=items, total=total, unread=unread)


async def mark_read(session: AsyncSession, auth: AuthContext, notification_id: uuid.UUID) -> NotificationResponse:
    result = await session.execute(
        select(Notification).where(col(Notification.id) == notification_id, *_inbox_filter(auth))
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    await session.commit()
    await session.refresh(notification)
    return NotificationResponse.model_validate(notification)


async def mark_all_read(session: AsyncSession, auth: AuthContext) -> int:
    result = await session.execute(
        update(Notification).where(*_inbox_filter(auth), col(Notification.is_read).is_(False)).values(is_read=True)
    )
    await session.commit()
    return result.rowcount or 0
