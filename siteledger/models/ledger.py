# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from siteledger.models.base import ApprovableMixin, TimestampMixin, UUIDBase


def normalize_ledger_name(name: str) -> str:
    """Case-insensitive uniqueness key for ledger names."""
    return " ".join(name.split()).casefold()


class Ledger(UUIDBase, TimestampMixin, ApprovableMixin, table=True):
    """A cost-code used to tag transactions and records."""

    __tablename__ = "ledger"
    __table_args__ = (sa.UniqueConstraint("organization_id", "name_key", name="uq_ledger_name"),)

    organization_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    name_key: str = Field(max_length=255)
    is_system: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    is_gst_registered: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    gst_number: str | None = Field(default=None, max_length=20)
    billing_address: str | None = Field(default=None, max_length=500)
    state: str | None = Field(default=None, max_length=100)
