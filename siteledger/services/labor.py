# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from siteledger.exceptions import NotFoundError
from siteledger.models.attendance import Labor
from siteledger.models.enums import AuditAction, AuditEntityType
from siteledger.schemas.attendance import LaborListResponse, LaborResponse
from siteledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.attendance import LaborCreate
    from siteledger.schemas.auth import AuthContext


async def get_labor(session: AsyncSession, organization_id: uuid.UUID, labor_id: uuid.UUID) -> Labor:
    """Fetch a worker by ID scoped to the organization. Raises 404 if not found."""
    result = await session.execute(
        select(Labor).where(col(Labor.id) == labor_id, col(Labor.organization_id) == organization_id)
    )
    labor = result.scalar_one_or_none()
    if labor is None:
        raise NotFoundError("Labor not found")
    return labor


async def create_labor(session: AsyncSession, auth: AuthContext, payload: LaborCreate) -> LaborResponse:
    labor = Labor(organization_id=auth.organization_id, **payload.model_dump())
    session.add(labor)
    await session.flush()
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.LABOR,
        entity_id=labor.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(labor),
    )
    await session.commit()
    await session.refresh(labor)
    return LaborResponse.model_validate(labor)


async def list_labors(
    session: AsyncSession,
    organization_id: uuid.UUID,
    offset: int = 0,
    limit: int = 100,
) -> LaborListResponse:
    base = select(Labor).where(col(Labor.organization_id) == organization_id)
    count_result = await session.execute(select(func.count()).select_from(base.subquery()))
    result = await session.execute(base.order_by(col(Labor.name)).offset(offset).limit(limit))
    items = [LaborResponse.model_validate(labor) for labor in result.scalars().all()]
    return LaborListResponse(items=items, total=count_result.scalar_one())
