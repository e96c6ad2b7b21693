# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase
from siteledger.models.enums import TaskStatus


def _project_fk() -> sa.Column:
    return sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True)


class Task(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    __tablename__ = "task"

    organization_id: uuid.UUID = Field(index=True)
    project_id: uuid.UUID = Field(sa_column=_project_fk())
    title: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: str = Field(default=TaskStatus.TODO, max_length=20)
    due_date: date | None = None


class Photo(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    __tablename__ = "photo"

    organization_id: uuid.UUID = Field(index=True)
    project_id: uuid.UUID = Field(sa_column=_project_fk())
    image_url: str = Field(max_length=1000)
    description: str = Field(default="", max_length=1000)


class Document(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    __tablename__ = "document"

    organization_id: uuid.UUID = Field(index=True)
    project_id: uuid.UUID = Field(sa_column=_project_fk())
    document_url: str = Field(max_length=1000)
    document_name: str = Field(max_length=255)
    description: str = Field(default="", max_length=1000)
