# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, InvalidStateError
from siteledger.models.enums import ApprovalStatus, AuditAction, NotificationType
from siteledger.schemas.approvable import ApprovableResponse, DeletedResponse
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports
from siteledger.services.effective import is_unapproved_create
from siteledger.services.notification import NotificationMessage, notify

if TYPE_CHECKING:
    from pydantic import BaseModel
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.approvable import PartialUpdate, StagedPayload
    from siteledger.schemas.auth import AuthContext
    from siteledger.services.staged import StagedMutable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def notify_admins(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity: Any,
    verb: str,
) -> None:
    await notify(
        session,
        NotificationMessage(
            organization_id=auth.organization_id,
            user_id=None,
            message=f"{auth.display_name} requested to {verb} {handler.describe(entity)}",
            type=NotificationType.SUBMITTED,
            item_id=entity.id,
            item_type=handler.entity_type.value,
        ),
    )


def _mark_approved(entity: Any) -> None:
    entity.approval_status = ApprovalStatus.APPROVED.value
    entity.pending_payload = None
    entity.rejected_status = None


async def _finish(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity: Any,
    verb: str,
) -> ApprovableResponse:
    """Commit a staged write, then run the post-commit side effects."""
    await session.commit()
    await session.refresh(entity)
    await invalidate_reports(auth.organization_id)
    if not auth.is_admin:
        await notify_admins(session, auth, handler, entity, verb)
    return handler.to_response(entity)


# ---------------------------------------------------------------------------
# Staging (no commit)
# ---------------------------------------------------------------------------


async def stage_create(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    payload: StagedPayload,
) -> Any:
    """Add a new row inside the caller's transaction.

    Admin writes are approved at once. Anyone else creates a
    ``pending-create`` row whose own fields hold the proposed values.
    """
    values = await handler.prepare_create(session, auth, payload)
    entity = handler.model(
        organization_id=auth.organization_id,
        created_by=auth.user_id,
        submitted_by=auth.user_id,
        request_message=payload.request_message,
        **values,
    )
    entity.approval_status = ApprovalStatus.APPROVED.value if auth.is_admin else ApprovalStatus.PENDING_CREATE.value
    session.add(entity)
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=handler.audit_entity_type,
        entity_id=entity.id,
        action=AuditAction.CREATE if auth.is_admin else AuditAction.REQUEST_CREATE,
        after_json=model_to_audit_dict(entity),
    )
    return entity


async def stage_edit(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity: Any,
    payload: PartialUpdate,
) -> None:
    """Apply or stage an edit of a loaded row inside the caller's transaction.

    1. Admin: write the values in place; the row ends up approved and any
       pending request on it is discarded.
    2. Non-admin on a row that was never approved: rewrite the proposed
       values in place, the row stays ``pending-create``.
    3. Non-admin otherwise: keep the visible values, store the diff in
       ``pending_payload`` and mark the row ``pending-edit``.
    """
    if not payload.field_values(partial=True):
        raise DomainValidationError("No changes supplied")
    await handler.check_mutable(session, auth, entity, deleting=False)
    before = model_to_audit_dict(entity)

    if auth.is_admin:
        values = await handler.prepare_edit(session, auth, entity, payload)
        handler.apply(entity, values)
        _mark_approved(entity)
        action = AuditAction.UPDATE
    elif is_unapproved_create(entity):
        values = await handler.prepare_edit(session, auth, entity, payload)
        handler.apply(entity, values)
        entity.approval_status = ApprovalStatus.PENDING_CREATE.value
        entity.pending_payload = None
        action = AuditAction.REQUEST_CREATE
    else:
        # Validate now so a broken request cannot reach the approval queue.
        await handler.prepare_edit(session, auth, entity, payload)
        entity.pending_payload = payload.pending_values()
        entity.approval_status = ApprovalStatus.PENDING_EDIT.value
        action = AuditAction.REQUEST_EDIT

    entity.submitted_by = auth.user_id
    entity.request_message = payload.request_message
    entity.version += 1
    session.add(entity)
    await session.flush()

    await write_audit_log(
        session,
        auth=auth,
        entity_type=handler.audit_entity_type,
        entity_id=entity.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(entity),
    )


async def stage_delete(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity: Any,
    request_message: str | None = None,
) -> bool:
    """Delete or stage the deletion of a loaded row. Returns True if the row is gone.

    Admin deletes and withdrawals of a submitter's own unapproved row are
    physical, children included. Any other non-admin delete marks the row
    ``pending-delete``; it keeps its approved values and keeps counting.
    """
    await handler.check_mutable(session, auth, entity, deleting=True)
    before = model_to_audit_dict(entity)

    if not auth.is_admin and is_unapproved_create(entity) and entity.submitted_by != auth.user_id:
        raise InvalidStateError(f"Only the submitter can withdraw this {handler.label.lower()}")

    if auth.is_admin or is_unapproved_create(entity):
        await handler.delete_owned(session, entity)
        await session.delete(entity)
        await write_audit_log(
            session,
            auth=auth,
            entity_type=handler.audit_entity_type,
            entity_id=entity.id,
            action=AuditAction.DELETE,
            before_json=before,
        )
        await session.flush()
        return True

    entity.approval_status = ApprovalStatus.PENDING_DELETE.value
    entity.pending_payload = None
    entity.submitted_by = auth.user_id
    entity.request_message = request_message
    entity.version += 1
    session.add(entity)
    await write_audit_log(
        session,
        auth=auth,
        entity_type=handler.audit_entity_type,
        entity_id=entity.id,
        action=AuditAction.REQUEST_DELETE,
        before_json=before,
        after_json=model_to_audit_dict(entity),
    )
    await session.flush()
    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_entity(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    payload: StagedPayload,
) -> ApprovableResponse:
    entity = await stage_create(session, auth, handler, payload)
    logger.debug("Staged %s %s as %s", handler.entity_type, entity.id, entity.approval_status)
    return await _finish(session, auth, handler, entity, "add")


async def edit_entity(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity_id: uuid.UUID,
    payload: PartialUpdate,
) -> ApprovableResponse:
    entity = await handler.load(session, auth.organization_id, entity_id, for_update=True)
    await stage_edit(session, auth, handler, entity, payload)
    return await _finish(session, auth, handler, entity, "edit")


async def delete_entity(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity_id: uuid.UUID,
    request_message: str | None = None,
) -> ApprovableResponse | DeletedResponse:
    entity = await handler.load(session, auth.organization_id, entity_id, for_update=True)
    deleted = await stage_delete(session, auth, handler, entity, request_message)
    if not deleted:
        return await _finish(session, auth, handler, entity, "delete")

    await session.commit()
    await invalidate_reports(auth.organization_id)
    logger.info("Deleted %s %s", handler.entity_type, entity_id)
    return DeletedResponse(id=entity_id)


async def get_entity(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity_id: uuid.UUID,
) -> ApprovableResponse:
    """Raw row as stored, pending payload included."""
    entity = await handler.load(session, auth.organization_id, entity_id)
    return handler.to_response(entity)


async def list_entities(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    approval_status: ApprovalStatus | None = None,
    project_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> BaseModel:
    """List raw rows of one entity type, newest first."""
    model: Any = handler.model
    filters = [col(model.organization_id) == auth.organization_id]
    if approval_status is not None:
        filters.append(col(model.approval_status) == approval_status.value)
    if project_id is not None and hasattr(model, "project_id"):
        filters.append(col(model.project_id) == project_id)

    count_result = await session.execute(select(func.count()).select_from(model).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(model).where(*filters).order_by(col(model.created_at).desc()).offset(offset).limit(limit)
    )
    items = [handler.to_response(e) for e in result.scalars().all()]
    return handler.list_schema(items=items, total=total)
