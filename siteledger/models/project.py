# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import TimestampMixin, UUIDBase


class Project(UUIDBase, TimestampMixin, table=True):
    """A construction site. Deleting it removes everything recorded against it."""

    __tablename__ = "project"
    __table_args__ = (sa.UniqueConstraint("organization_id", "name", name="uq_project_name"),)

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    location: str | None = Field(default=None, max_length=255)
