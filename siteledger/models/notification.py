# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import UUIDBase


def _now_utc() -> datetime:
    return datetime.now(UTC)


class Notification(UUIDBase, table=True):
    """A message for one user, or for every admin when ``user_id`` is null."""

    __tablename__ = "notification"

    organization_id: uuid.UUID = Field(index=True)
    user_id: uuid.UUID | None = Field(default=None, index=True)
    message: str = Field(max_length=1000)
    item_id: uuid.UUID | None = None
    item_type: str | None = Field(default=None, max_length=50)
    type: str = Field(max_length=20)
    is_read: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
