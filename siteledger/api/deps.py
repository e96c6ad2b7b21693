# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path, status

from siteledger.exceptions import InvalidStateError
from siteledger.models.enums import Role
from siteledger.schemas.auth import AuthContext


async def get_auth_context(
    x_organization_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.USER),
    x_user_name: str | None = Header(default=None),
) -> AuthContext:
    """Extract the actor from request headers."""
    return AuthContext(organization_id=x_organization_id, user_id=x_user_id, role=x_role, user_name=x_user_name)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise InvalidStateError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def validate_organization_scope(
    organization_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path organization_id matches the auth header organization."""
    if organization_id != auth.organization_id:
        raise InvalidStateError("Organization ID mismatch", status_code=status.HTTP_403_FORBIDDEN)
    return auth
