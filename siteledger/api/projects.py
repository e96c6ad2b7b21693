# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status

from siteledger.api.deps import AdminDep, AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.schemas.project import (
    FinancialAccountCreate,
    FinancialAccountListResponse,
    FinancialAccountResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
)
from siteledger.services import account as account_service
from siteledger.services import project as project_service

projects_router = APIRouter(
    prefix="/organizations/{organization_id}/projects",
    tags=["projects"],
    dependencies=[Depends(validate_organization_scope)],
)

accounts_router = APIRouter(
    prefix="/organizations/{organization_id}/accounts",
    tags=["accounts"],
    dependencies=[Depends(validate_organization_scope)],
)


@projects_router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    session: SessionDep,
    auth: AdminDep,
) -> ProjectResponse:
    """Create a project (admin only)."""
    return await project_service.create_project(session, auth, payload)


@projects_router.get("", response_model=ProjectListResponse)
async def list_projects(
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> ProjectListResponse:
    return await project_service.list_projects(session, auth.organization_id, offset, limit)


@projects_router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a project and everything recorded against it (admin only)."""
    await project_service.delete_project(session, auth, project_id)


@accounts_router.post("", response_model=FinancialAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: FinancialAccountCreate,
    session: SessionDep,
    auth: AdminDep,
) -> FinancialAccountResponse:
    """Open a cash or bank account (admin only)."""
    return await account_service.create_account(session, auth, payload)


@accounts_router.get("", response_model=FinancialAccountListResponse)
async def list_accounts(
    session: SessionDep,
    auth: AuthDep,
) -> FinancialAccountListResponse:
    return await account_service.list_accounts(session, auth.organization_id)
