# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase


class Material(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    __tablename__ = "material"

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    unit: str = Field(max_length=50)


class MaterialLedgerEntry(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    """A stock movement of a material into or out of a project."""

    __tablename__ = "material_ledger_entry"

    organization_id: uuid.UUID = Field(index=True)
    material_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("material.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    project_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    date: datetime.date
    type: str = Field(max_length=5)
    quantity: Decimal = Field(max_digits=14, decimal_places=3)
    description: str | None = Field(default=None, max_length=1000)
    challan_url: str | None = Field(default=None, max_length=1000)
