# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from fastapi import status
from sqlalchemy import select
from sqlmodel import col

from siteledger.exceptions import InvalidStateError
from siteledger.models.enums import ApprovalStatus, AuditAction, NotificationType
from siteledger.schemas.approvable import (
    ApprovableResponse,
    DeletedResponse,
    PendingApprovalsResponse,
    PendingItem,
)
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports
from siteledger.services.effective import current_status, proposed_values
from siteledger.services.notification import NotificationMessage, notify
from siteledger.services.registry import REGISTRY, get_handler

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.models.enums import EntityType
    from siteledger.schemas.approvable import DecisionPayload, RejectPayload
    from siteledger.schemas.auth import AuthContext
    from siteledger.services.staged import StagedMutable

logger = logging.getLogger(__name__)

_PENDING_STATUSES = (
    ApprovalStatus.PENDING_CREATE.value,
    ApprovalStatus.PENDING_EDIT.value,
    ApprovalStatus.PENDING_DELETE.value,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _require_admin(auth: AuthContext) -> None:
    if not auth.is_admin:
        raise InvalidStateError("Only admins can resolve pending changes", status_code=status.HTTP_403_FORBIDDEN)


async def _load_pending(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    entity_id: uuid.UUID,
    expected_version: int | None,
) -> tuple[Any, ApprovalStatus]:
    """Lock the row and check it can be resolved."""
    entity = await handler.load(session, auth.organization_id, entity_id, for_update=True)
    if expected_version is not None and entity.version != expected_version:
        raise InvalidStateError(
            f"Stale version: {handler.label.lower()} is at version {entity.version}, not {expected_version}"
        )
    prior = current_status(entity)
    if not prior.is_pending:
        raise InvalidStateError(f"{handler.label} is not pending approval (status {prior})")
    return entity, prior


async def _notify_submitter(
    session: AsyncSession,
    auth: AuthContext,
    handler: StagedMutable,
    submitter: uuid.UUID | None,
    entity_id: uuid.UUID,
    message: str,
    notification_type: NotificationType,
) -> None:
    if submitter is None:
        return
    await notify(
        session,
        NotificationMessage(
            organization_id=auth.organization_id,
            user_id=submitter,
            message=message,
            type=notification_type,
            item_id=entity_id,
            item_type=handler.entity_type.value,
        ),
    )


_REQUEST_NOUN = {
    ApprovalStatus.PENDING_CREATE: "request to add",
    ApprovalStatus.PENDING_EDIT: "edit request for",
    ApprovalStatus.PENDING_DELETE: "delete request for",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def approve_change(
    session: AsyncSession,
    auth: AuthContext,
    entity_type: EntityType | str,
    entity_id: uuid.UUID,
    payload: DecisionPayload,
) -> ApprovableResponse | DeletedResponse:
    """Accept a pending change.

    1. Lock the row and check it is pending at the expected version.
    2. pending-delete: remove the row and its owned children.
    3. pending-edit: write the stored diff field by field.
    4. pending-create: keep the fields as they are.
    5. Run the entity type's approval hook in the same unit, commit,
       then notify the submitter.
    """
    _require_admin(auth)
    handler = get_handler(entity_type)
    entity, prior = await _load_pending(session, auth, handler, entity_id, payload.expected_version)
    submitter = entity.submitted_by
    description = handler.describe(entity)
    before = model_to_audit_dict(entity)

    if prior == ApprovalStatus.PENDING_DELETE:
        await handler.delete_owned(session, entity)
        await session.delete(entity)
        await write_audit_log(
            session,
            auth=auth,
            entity_type=handler.audit_entity_type,
            entity_id=entity_id,
            action=AuditAction.APPROVE,
            before_json=before,
        )
        await session.commit()
        logger.info("Approved deletion of %s %s", handler.entity_type, entity_id)
        await invalidate_reports(auth.organization_id)
        await _notify_submitter(
            session,
            auth,
            handler,
            submitter,
            entity_id,
            f"Your {_REQUEST_NOUN[prior]} {description} was approved",
            NotificationType.APPROVED,
        )
        return DeletedResponse(id=entity_id)

    if prior == ApprovalStatus.PENDING_EDIT:
        update = handler.parse_pending(entity)
        values = await handler.prepare_edit(session, auth, entity, update)
        handler.apply(entity, values)

    entity.approval_status = ApprovalStatus.APPROVED.value
    entity.pending_payload = None
    entity.rejected_status = None
    entity.remarks = payload.remarks
    entity.version += 1
    session.add(entity)
    await handler.on_approved(session, auth, entity, prior)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=handler.audit_entity_type,
        entity_id=entity_id,
        action=AuditAction.APPROVE,
        before_json=before,
        after_json=model_to_audit_dict(entity),
    )
    await session.commit()
    await session.refresh(entity)
    logger.info("Approved %s of %s %s", prior, handler.entity_type, entity_id)
    await invalidate_reports(auth.organization_id)
    await _notify_submitter(
        session,
        auth,
        handler,
        submitter,
        entity_id,
        f"Your {_REQUEST_NOUN[prior]} {description} was approved",
        NotificationType.APPROVED,
    )
    return handler.to_response(entity)


async def reject_change(
    session: AsyncSession,
    auth: AuthContext,
    entity_type: EntityType | str,
    entity_id: uuid.UUID,
    payload: RejectPayload,
) -> ApprovableResponse:
    """Turn down a pending change.

    Field values and any stored diff stay as they are so the submitter can
    revise and resubmit; the row stops counting toward totals.
    """
    _require_admin(auth)
    handler = get_handler(entity_type)
    entity, prior = await _load_pending(session, auth, handler, entity_id, payload.expected_version)
    before = model_to_audit_dict(entity)

    entity.rejected_status = prior.value
    entity.approval_status = ApprovalStatus.REJECTED.value
    entity.remarks = payload.remarks
    entity.rejection_count += 1
    entity.version += 1
    session.add(entity)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=handler.audit_entity_type,
        entity_id=entity_id,
        action=AuditAction.REJECT,
        before_json=before,
        after_json=model_to_audit_dict(entity),
    )
    await session.commit()
    await session.refresh(entity)
    logger.info("Rejected %s of %s %s", prior, handler.entity_type, entity_id)
    await invalidate_reports(auth.organization_id)
    await _notify_submitter(
        session,
        auth,
        handler,
        entity.submitted_by,
        entity_id,
        f"Your {_REQUEST_NOUN[prior]} {handler.describe(entity)} was rejected: {payload.remarks}",
        NotificationType.REJECTED,
    )
    return handler.to_response(entity)


async def list_pending(session: AsyncSession, auth: AuthContext) -> PendingApprovalsResponse:
    """Every pending row across the registered entity types, grouped by type."""
    _require_admin(auth)
    groups: dict[str, list[PendingItem]] = {}
    for entity_type, handler in REGISTRY.items():
        model: Any = handler.model
        result = await session.execute(
            select(model)
            .where(
                col(model.organization_id) == auth.organization_id,
                col(model.approval_status).in_(_PENDING_STATUSES),
            )
            .order_by(col(model.created_at))
        )
        items = []
        for entity in result.scalars().all():
            current = handler.to_response(entity).model_dump(mode="json")
            items.append(
                PendingItem(
                    entity_type=entity_type.value,
                    id=entity.id,
                    approval_status=ApprovalStatus(entity.approval_status),
                    submitted_by=entity.submitted_by,
                    request_message=entity.request_message,
                    version=entity.version,
                    current=current,
                    proposed=proposed_values(entity, current),
                )
            )
        if items:
            groups[entity_type.value] = items
    return PendingApprovalsResponse(groups=groups, total=sum(len(v) for v in groups.values()))
