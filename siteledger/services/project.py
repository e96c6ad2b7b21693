# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from siteledger.exceptions import InvalidStateError, NotFoundError
from siteledger.models.attendance import Hajari
from siteledger.models.content import Document, Photo, Task
from siteledger.models.enums import AuditAction, AuditEntityType
from siteledger.models.material import MaterialLedgerEntry
from siteledger.models.project import Project
from siteledger.models.record import Recordable, RecordSettlement
from siteledger.models.transaction import Transaction
from siteledger.schemas.project import ProjectListResponse, ProjectResponse
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext
    from siteledger.schemas.project import ProjectCreate

logger = logging.getLogger(__name__)

# Children removed with a project, in dependency order.
_PROJECT_CHILDREN = (Transaction, Hajari, Task, Photo, Document, MaterialLedgerEntry)


async def get_project(session: AsyncSession, organization_id: uuid.UUID, project_id: uuid.UUID) -> Project:
    """Fetch a project by ID scoped to the organization. Raises 404 if not found."""
    result = await session.execute(
        select(Project).where(col(Project.id) == project_id, col(Project.organization_id) == organization_id)
    )
    project = result.scalar_one_or_none()
    if project is None:
        raise NotFoundError("Project not found")
    return project


async def create_project(session: AsyncSession, auth: AuthContext, payload: ProjectCreate) -> ProjectResponse:
    project = Project(organization_id=auth.organization_id, name=payload.name, location=payload.location)
    session.add(project)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise InvalidStateError(f"Project {payload.name!r} already exists") from exc

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.PROJECT,
        entity_id=project.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(project),
    )
    await session.commit()
    await session.refresh(project)
    return ProjectResponse.model_validate(project)


async def list_projects(
    session: AsyncSession,
    organization_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> ProjectListResponse:
    base = select(Project).where(col(Project.organization_id) == organization_id)
    count_result = await session.execute(select(func.count()).select_from(base.subquery()))
    total = count_result.scalar_one()
    result = await session.execute(base.order_by(col(Project.name)).offset(offset).limit(limit))
    items = [ProjectResponse.model_validate(p) for p in result.scalars().all()]
    return ProjectListResponse(items=items, total=total)


async def delete_project(session: AsyncSession, auth: AuthContext, project_id: uuid.UUID) -> None:
    """Delete a project and everything recorded against it.

    Children are removed explicitly so the cascade does not depend on the
    database enforcing foreign keys.
    """
    project = await get_project(session, auth.organization_id, project_id)
    before = model_to_audit_dict(project)

    record_ids = select(Recordable.id).where(col(Recordable.project_id) == project_id)
    await session.execute(delete(RecordSettlement).where(col(RecordSettlement.record_id).in_(record_ids)))
    await session.execute(delete(Recordable).where(col(Recordable.project_id) == project_id))
    for model in _PROJECT_CHILDREN:
        await session.execute(delete(model).where(col(model.project_id) == project_id))
    await session.delete(project)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.PROJECT,
        entity_id=project_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
    logger.info("Deleted project %s with its records", project_id)
    await invalidate_reports(auth.organization_id)
