# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, Field

from siteledger.models.enums import MaterialMovementType
from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload


class MaterialCreate(StagedPayload):
    name: str = Field(min_length=1, max_length=255)
    unit: str = Field(min_length=1, max_length=50)


class MaterialUpdate(PartialUpdate):
    required_fields = frozenset({"name", "unit"})

    name: str | None = Field(default=None, min_length=1, max_length=255)
    unit: str | None = Field(default=None, min_length=1, max_length=50)


class MaterialResponse(ApprovableResponse):
    name: str
    unit: str


class MaterialListResponse(BaseModel):
    items: list[MaterialResponse]
    total: int


class MaterialMovementCreate(StagedPayload):
    material_id: uuid.UUID
    project_id: uuid.UUID
    date: datetime.date
    type: MaterialMovementType
    quantity: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    description: str | None = Field(default=None, max_length=1000)
    challan_url: str | None = Field(default=None, max_length=1000)


class MaterialMovementUpdate(PartialUpdate):
    required_fields = frozenset({"material_id", "project_id", "date", "type", "quantity"})

    material_id: uuid.UUID | None = None
    project_id: uuid.UUID | None = None
    date: datetime.date | None = None
    type: MaterialMovementType | None = None
    quantity: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=3)
    description: str | None = Field(default=None, max_length=1000)
    challan_url: str | None = Field(default=None, max_length=1000)


class MaterialMovementResponse(ApprovableResponse):
    material_id: uuid.UUID
    project_id: uuid.UUID
    date: datetime.date
    type: MaterialMovementType
    quantity: Decimal
    description: str | None
    challan_url: str | None


class MaterialMovementListResponse(BaseModel):
    items: list[MaterialMovementResponse]
    total: int
