"""Per-entity-type behaviour plugged into the generic staging and approval flows.

Each approvable entity type has one :class:`StagedMutable` subclass. The flows
in :mod:`siteledger.services.staging` and :mod:`siteledger.services.approval`
own the workflow (role branching, status transitions, auditing, commit); a
handler only knows how its own rows are validated, written and torn down.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, NotFoundError

if TYPE_CHECKING:
    import uuid

    from pydantic import BaseModel
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.models.enums import ApprovalStatus, AuditEntityType, EntityType
    from siteledger.schemas.approvable import ApprovableResponse, PartialUpdate, StagedPayload
    from siteledger.schemas.auth import AuthContext

ModelT = TypeVar("ModelT")


class StagedMutable(Generic[ModelT]):
    """Behaviour of one approvable entity type."""

    entity_type: ClassVar[EntityType]
    audit_entity_type: ClassVar[AuditEntityType]
    label: ClassVar[str]
    collection: ClassVar[str]
    model: type[ModelT]
    create_schema: type[StagedPayload]
    update_schema: type[PartialUpdate]
    response_schema: type[ApprovableResponse]
    list_schema: type[BaseModel]

    # -- loading -----------------------------------------------------------

    async def load(
        self,
        session: AsyncSession,
        organization_id: uuid.UUID,
        entity_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> ModelT:
        """Fetch a row scoped to the organization. Raises 404 if not found."""
        model: Any = self.model
        query = select(model).where(col(model.id) == entity_id, col(model.organization_id) == organization_id)
        if for_update:
            query = query.with_for_update()
        result = await session.execute(query)
        entity = result.scalar_one_or_none()
        if entity is None:
            raise NotFoundError(f"{self.label} not found")
        return entity

    # -- writes ------------------------------------------------------------

    async def prepare_create(self, session: AsyncSession, auth: AuthContext, payload: StagedPayload) -> dict[str, Any]:
        """Column values for a new row, after checking references."""
        values = payload.field_values()
        await self.check_references(session, auth, values, None)
        return values

    async def prepare_edit(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: ModelT,
        payload: PartialUpdate,
    ) -> dict[str, Any]:
        """Column values an edit would write, after checking references."""
        values = payload.field_values(partial=True)
        await self.check_references(session, auth, values, entity)
        return values

    async def check_references(
        self,
        session: AsyncSession,
        auth: AuthContext,
        values: dict[str, Any],
        current: ModelT | None,
    ) -> None:
        """Raise if any id in ``values`` does not resolve inside the organization.

        ``current`` is the row being edited, or ``None`` for a create.
        """

    def apply(self, entity: ModelT, values: dict[str, Any]) -> None:
        """Overwrite fields one by one. Nested values are replaced, never merged."""
        for name, value in values.items():
            setattr(entity, name, value)

    def parse_pending(self, entity: ModelT) -> PartialUpdate:
        """Rebuild the typed partial update stored in ``pending_payload``."""
        try:
            return self.update_schema.model_validate(getattr(entity, "pending_payload", None) or {})
        except ValidationError as exc:
            raise DomainValidationError(f"Stored change for {self.label} is no longer valid: {exc}") from exc

    async def check_mutable(self, session: AsyncSession, auth: AuthContext, entity: ModelT, *, deleting: bool) -> None:
        """Raise if the caller may not change this row at all."""

    async def delete_owned(self, session: AsyncSession, entity: ModelT) -> None:
        """Remove children that cannot outlive the row."""

    async def on_approved(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: ModelT,
        prior_status: ApprovalStatus,
    ) -> None:
        """Extra writes that must land in the same unit as an approval."""

    # -- presentation ------------------------------------------------------

    def describe(self, entity: ModelT) -> str:
        """Short human description used in notifications."""
        return self.label.lower()

    def to_response(self, entity: ModelT) -> ApprovableResponse:
        return self.response_schema.model_validate(entity)


async def delete_where(session: AsyncSession, model: Any, *criteria: Any) -> None:
    """Bulk delete helper for cascades."""
    await session.execute(delete(model).where(*criteria))
