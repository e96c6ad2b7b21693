# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from siteledger.models.enums import ApprovalStatus


def _uuid_factory() -> uuid.UUID:
    """Generate a new UUID v4."""
    return uuid.uuid4()


def _now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


class UUIDBase(SQLModel):
    """Base model with UUID primary key."""

    id: uuid.UUID = Field(
        default_factory=_uuid_factory,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class ApprovableMixin(SQLModel):
    """Approval-workflow columns shared by every approvable entity.

    ``pending_payload`` holds the proposed field values of a pending edit and
    is populated only while ``approval_status`` is ``pending-edit``. A
    pending-create row keeps its proposed values in its own columns; a
    pending-delete row keeps its last-approved values.

    ``rejected_status`` remembers which pending state was last rejected so a
    resubmission follows the same path. ``version`` increases on every write
    and backs the optimistic check on approval decisions.
    """

    approval_status: str = Field(
        default=ApprovalStatus.APPROVED,
        max_length=20,
        index=True,
        sa_column_kwargs={"server_default": "approved"},
    )
    created_by: uuid.UUID | None = None
    submitted_by: uuid.UUID | None = None
    pending_payload: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    request_message: str | None = Field(default=None, max_length=1000)
    remarks: str | None = Field(default=None, max_length=1000)
    rejection_count: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    rejected_status: str | None = Field(default=None, max_length=20)
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
