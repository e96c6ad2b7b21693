# ruff: noqa: TC003
from __future__ import annotations

from pydantic import BaseModel, Field

from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload


class LedgerCreate(StagedPayload):
    name: str = Field(min_length=1, max_length=255)
    is_gst_registered: bool = False
    gst_number: str | None = Field(default=None, max_length=20)
    billing_address: str | None = Field(default=None, max_length=500)
    state: str | None = Field(default=None, max_length=100)


class LedgerUpdate(PartialUpdate):
    required_fields = frozenset({"name", "is_gst_registered"})

    name: str | None = Field(default=None, min_length=1, max_length=255)
    is_gst_registered: bool | None = None
    gst_number: str | None = Field(default=None, max_length=20)
    billing_address: str | None = Field(default=None, max_length=500)
    state: str | None = Field(default=None, max_length=100)


class LedgerResponse(ApprovableResponse):
    name: str
    is_system: bool
    is_gst_registered: bool
    gst_number: str | None
    billing_address: str | None
    state: str | None


class LedgerListResponse(BaseModel):
    items: list[LedgerResponse]
    total: int
