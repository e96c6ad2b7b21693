# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, ClassVar, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from siteledger.models.enums import ApprovalStatus

# ---------------------------------------------------------------------------
# Payload bases
# ---------------------------------------------------------------------------


class StagedPayload(BaseModel):
    """Base for create and edit bodies: the submitter may explain the change."""

    # Nested values stored in JSON columns, dumped JSON-safe.
    json_fields: ClassVar[frozenset[str]] = frozenset()

    request_message: str | None = Field(default=None, max_length=1000)

    def field_values(self, *, partial: bool = False) -> dict[str, Any]:
        """Entity field values carried by the payload, without the request message."""
        values = self.model_dump(exclude={"request_message"}, exclude_unset=partial)
        for name in self.json_fields & values.keys():
            values[name] = self.model_dump(mode="json", include={name})[name]
        return values

    def pending_values(self) -> dict[str, Any]:
        """JSON-safe partial diff, as stored in ``pending_payload``.

        Nested values are dumped whole since approval replaces them wholesale.
        """
        values = self.model_dump(mode="json", exclude={"request_message"}, exclude_unset=True)
        for name in self.json_fields & values.keys():
            values[name] = self.model_dump(mode="json", include={name})[name]
        return values


class PartialUpdate(StagedPayload):
    """A partial edit. Fields left out are untouched; non-nullable fields may not be cleared."""

    required_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_cleared_required(self) -> Self:
        cleared = sorted(f for f in self.model_fields_set & self.required_fields if getattr(self, f) is None)
        if cleared:
            msg = f"Fields cannot be cleared: {', '.join(cleared)}"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class DecisionPayload(BaseModel):
    """Request body for approve actions."""

    remarks: str | None = Field(default=None, max_length=1000)
    expected_version: int | None = Field(default=None, ge=1)


class RejectPayload(BaseModel):
    """Request body for reject actions. A reason is mandatory."""

    remarks: str = Field(min_length=1, max_length=1000)
    expected_version: int | None = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApprovableResponse(BaseModel):
    """Workflow fields shared by every approvable response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    approval_status: ApprovalStatus
    created_by: uuid.UUID | None
    submitted_by: uuid.UUID | None
    pending_payload: dict[str, Any] | None
    request_message: str | None
    remarks: str | None
    rejection_count: int
    rejected_status: ApprovalStatus | None
    version: int
    created_at: datetime


class DeletedResponse(BaseModel):
    """Returned when a delete was applied physically."""

    deleted: Literal[True] = True
    id: uuid.UUID


class PendingItem(BaseModel):
    """One entry of the approval queue.

    ``current`` is the row as stored; ``proposed`` overlays a pending edit on
    it so the reviewer sees what approval would produce.
    """

    entity_type: str
    id: uuid.UUID
    approval_status: ApprovalStatus
    submitted_by: uuid.UUID | None
    request_message: str | None
    version: int
    current: dict[str, Any]
    proposed: dict[str, Any]


class PendingApprovalsResponse(BaseModel):
    groups: dict[str, list[PendingItem]]
    total: int
