# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, NotFoundError
from siteledger.models.enums import AccountType, AuditAction, AuditEntityType, JournalMode
from siteledger.models.journal import JournalEntry
from siteledger.schemas.journal import JournalEntryListResponse, JournalEntryResponse
from siteledger.services.account import get_account
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports
from siteledger.services.provisioning import get_ledger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext
    from siteledger.schemas.journal import JournalEntryCreate

logger = logging.getLogger(__name__)


async def _check_side(
    session: AsyncSession,
    auth: AuthContext,
    mode: JournalMode,
    ledger_id: uuid.UUID | None,
    account_id: uuid.UUID | None,
) -> None:
    if mode == JournalMode.LEDGER:
        if ledger_id is not None:
            await get_ledger(session, auth.organization_id, ledger_id)
        return
    if account_id is None:
        return
    account = await get_account(session, auth.organization_id, account_id)
    expected = AccountType.CASH if mode == JournalMode.CASH else AccountType.BANK
    if account.type != expected:
        raise DomainValidationError(f"Account {account.name!r} is not a {mode} account")


async def _get_entry_or_404(session: AsyncSession, auth: AuthContext, entry_id: uuid.UUID) -> JournalEntry:
    result = await session.execute(
        select(JournalEntry).where(
            col(JournalEntry.id) == entry_id,
            col(JournalEntry.organization_id) == auth.organization_id,
        )
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Journal entry not found")
    return entry


async def create_entry(session: AsyncSession, auth: AuthContext, payload: JournalEntryCreate) -> JournalEntryResponse:
    """Post a double-entry adjustment. Journal entries are not subject to approval."""
    await _check_side(session, auth, payload.debit_mode, payload.debit_ledger_id, payload.debit_account_id)
    await _check_side(session, auth, payload.credit_mode, payload.credit_ledger_id, payload.credit_account_id)

    entry = JournalEntry(
        organization_id=auth.organization_id,
        created_by=auth.user_id,
        **payload.model_dump(mode="python"),
    )
    session.add(entry)
    await session.flush()
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.JOURNAL_ENTRY,
        entity_id=entry.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(entry),
    )
    await session.commit()
    await session.refresh(entry)
    await invalidate_reports(auth.organization_id)
    return JournalEntryResponse.model_validate(entry)


async def get_entry(session: AsyncSession, auth: AuthContext, entry_id: uuid.UUID) -> JournalEntryResponse:
    return JournalEntryResponse.model_validate(await _get_entry_or_404(session, auth, entry_id))


async def list_entries(
    session: AsyncSession,
    auth: AuthContext,
    ledger_id: uuid.UUID | None = None,
    account_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 50,
) -> JournalEntryListResponse:
    filters = [col(JournalEntry.organization_id) == auth.organization_id]
    if ledger_id is not None:
        filters.append(
            or_(col(JournalEntry.debit_ledger_id) == ledger_id, col(JournalEntry.credit_ledger_id) == ledger_id)
        )
    if account_id is not None:
        filters.append(
            or_(col(JournalEntry.debit_account_id) == account_id, col(JournalEntry.credit_account_id) == account_id)
        )

    count_result = await session.execute(select(func.count()).select_from(JournalEntry).where(*filters))
    result = await session.execute(
        select(JournalEntry)
        .where(*filters)
        .order_by(col(JournalEntry.date).desc(), col(JournalEntry.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    items = [JournalEntryResponse.model_validate(e) for e in result.scalars().all()]
    return JournalEntryListResponse(items=items, total=count_result.scalar_one())


async def update_entry(
    session: AsyncSession,
    auth: AuthContext,
    entry_id: uuid.UUID,
    payload: JournalEntryCreate,
) -> JournalEntryResponse:
    """Replace every field of an entry."""
    entry = await _get_entry_or_404(session, auth, entry_id)
    await _check_side(session, auth, payload.debit_mode, payload.debit_ledger_id, payload.debit_account_id)
    await _check_side(session, auth, payload.credit_mode, payload.credit_ledger_id, payload.credit_account_id)

    before = model_to_audit_dict(entry)
    for name, value in payload.model_dump(mode="python").items():
        setattr(entry, name, value)
    session.add(entry)
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.JOURNAL_ENTRY,
        entity_id=entry.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(entry),
    )
    await session.commit()
    await session.refresh(entry)
    await invalidate_reports(auth.organization_id)
    return JournalEntryResponse.model_validate(entry)


async def delete_entry(session: AsyncSession, auth: AuthContext, entry_id: uuid.UUID) -> None:
    entry = await _get_entry_or_404(session, auth, entry_id)
    before = model_to_audit_dict(entry)
    await session.delete(entry)
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.JOURNAL_ENTRY,
        entity_id=entry_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
    logger.info("Deleted journal entry %s", entry_id)
    await invalidate_reports(auth.organization_id)
