"""CRUD routes for every approvable entity type, generated from the registry.

Annotations here are evaluated eagerly: the route signatures use each
handler's own schemas, which are only known inside the factory.
"""

# ruff: noqa: B008
import uuid

from fastapi import APIRouter, Depends, Query, status

from siteledger.api.deps import AuthDep, validate_organization_scope
from siteledger.db import SessionDep
from siteledger.models.enums import ApprovalStatus
from siteledger.schemas.approvable import DeletedResponse
from siteledger.services import staging
from siteledger.services.registry import REGISTRY
from siteledger.services.staged import StagedMutable


def build_entity_router(handler: StagedMutable) -> APIRouter:
    """Create, list, fetch, edit and delete routes for one entity type."""
    create_schema = handler.create_schema
    update_schema = handler.update_schema
    response_schema = handler.response_schema
    list_schema = handler.list_schema
    key = handler.entity_type.value

    router = APIRouter(
        prefix=f"/organizations/{{organization_id}}/{handler.collection}",
        tags=[handler.collection],
        dependencies=[Depends(validate_organization_scope)],
    )

    @router.post("", response_model=response_schema, status_code=status.HTTP_201_CREATED, name=f"create_{key}")
    async def create(payload: create_schema, session: SessionDep, auth: AuthDep):  # type: ignore[valid-type]
        return await staging.create_entity(session, auth, handler, payload)

    @router.get("", response_model=list_schema, name=f"list_{key}")
    async def list_all(
        session: SessionDep,
        auth: AuthDep,
        approval_status: ApprovalStatus | None = Query(default=None),
        project_id: uuid.UUID | None = Query(default=None),
        offset: int = Query(default=0, ge=0),
        limit: int = Query(default=50, ge=1, le=200),
    ):
        return await staging.list_entities(session, auth, handler, approval_status, project_id, offset, limit)

    @router.get("/{entity_id}", response_model=response_schema, name=f"get_{key}")
    async def get_one(entity_id: uuid.UUID, session: SessionDep, auth: AuthDep):
        return await staging.get_entity(session, auth, handler, entity_id)

    @router.put("/{entity_id}", response_model=response_schema, name=f"edit_{key}")
    async def edit(
        entity_id: uuid.UUID,
        payload: update_schema,  # type: ignore[valid-type]
        session: SessionDep,
        auth: AuthDep,
    ):
        return await staging.edit_entity(session, auth, handler, entity_id, payload)

    @router.delete("/{entity_id}", response_model=response_schema | DeletedResponse, name=f"delete_{key}")
    async def delete(
        entity_id: uuid.UUID,
        session: SessionDep,
        auth: AuthDep,
        request_message: str | None = Query(default=None, max_length=1000),
    ):
        return await staging.delete_entity(session, auth, handler, entity_id, request_message)

    return router


entity_routers = [build_entity_router(handler) for handler in REGISTRY.values()]
