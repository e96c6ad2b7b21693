# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from siteledger.models.enums import TaskStatus
from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload

# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(StagedPayload):
    project_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus = TaskStatus.TODO
    due_date: date | None = None


class TaskUpdate(PartialUpdate):
    required_fields = frozenset({"project_id", "title", "status"})

    project_id: uuid.UUID | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus | None = None
    due_date: date | None = None


class TaskResponse(ApprovableResponse):
    project_id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    due_date: date | None


class TaskListResponse(BaseModel):
    items: list[TaskResponse]
    total: int


# ---------------------------------------------------------------------------
# Photos and documents (the blob itself lives in external storage)
# ---------------------------------------------------------------------------


class PhotoCreate(StagedPayload):
    project_id: uuid.UUID
    image_url: str = Field(min_length=1, max_length=1000)
    description: str = Field(default="", max_length=1000)


class PhotoUpdate(PartialUpdate):
    required_fields = frozenset({"project_id", "image_url", "description"})

    project_id: uuid.UUID | None = None
    image_url: str | None = Field(default=None, min_length=1, max_length=1000)
    description: str | None = Field(default=None, max_length=1000)


class PhotoResponse(ApprovableResponse):
    project_id: uuid.UUID
    image_url: str
    description: str


class PhotoListResponse(BaseModel):
    items: list[PhotoResponse]
    total: int


class DocumentCreate(StagedPayload):
    project_id: uuid.UUID
    document_url: str = Field(min_length=1, max_length=1000)
    document_name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)


class DocumentUpdate(PartialUpdate):
    required_fields = frozenset({"project_id", "document_url", "document_name", "description"})

    project_id: uuid.UUID | None = None
    document_url: str | None = Field(default=None, min_length=1, max_length=1000)
    document_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)


class DocumentResponse(ApprovableResponse):
    project_id: uuid.UUID
    document_url: str
    document_name: str
    description: str


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total: int
