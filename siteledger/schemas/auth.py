# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from siteledger.models.enums import Role


class AuthContext(BaseModel):
    """Actor context extracted from request headers."""

    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: Role = Role.USER
    user_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.user_name or str(self.user_id)
