# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from siteledger.api.deps import AdminDep, AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.journal import JournalEntryCreate, JournalEntryListResponse, JournalEntryResponse
from siteledger.services import journal as journal_service

journal_router = APIRouter(
    prefix="/organizations/{organization_id}/journal",
    tags=["journal"],
    dependencies=[Depends(validate_organization_scope)],
)


@journal_router.post("", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    payload: JournalEntryCreate,
    session: SessionDep,
    auth: AuthDep,
) -> JournalEntryResponse:
    """Post a double-entry adjustment."""
    return await journal_service.create_entry(session, auth, payload)


@journal_router.get("", response_model=JournalEntryListResponse)
async def list_entries(
    session: SessionDep,
    auth: AuthDep,
    ledger_id: uuid.UUID | None = Query(default=None),
    account_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> JournalEntryListResponse:
    return await journal_service.list_entries(session, auth, ledger_id, account_id, offset, limit)


@journal_router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> JournalEntryResponse:
    return await journal_service.get_entry(session, auth, entry_id)


@journal_router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: uuid.UUID,
    payload: JournalEntryCreate,
    session: SessionDep,
    auth: AdminDep,
) -> JournalEntryResponse:
    """Replace a journal entry (admin only)."""
    return await journal_service.update_entry(session, auth, entry_id, payload)


@journal_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a journal entry (admin only)."""
    await journal_service.delete_entry(session, auth, entry_id)
