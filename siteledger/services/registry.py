"""Routing table from entity-type key to its :class:`StagedMutable` handler."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import or_, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, InvalidStateError, NotFoundError, RegistryError
from siteledger.models.attendance import Hajari
from siteledger.models.content import Document, Photo, Task
from siteledger.models.enums import (
    ApprovalStatus,
    AttendanceStatus,
    AuditEntityType,
    EntityType,
    RecordStatus,
    RecordType,
)
from siteledger.models.journal import JournalEntry
from siteledger.models.ledger import Ledger, normalize_ledger_name
from siteledger.models.material import Material, MaterialLedgerEntry
from siteledger.models.record import Recordable, RecordSettlement
from siteledger.models.transaction import Transaction
from siteledger.schemas.attendance import HajariCreate, HajariListResponse, HajariResponse, HajariUpdate
from siteledger.schemas.content import (
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
    PhotoCreate,
    PhotoListResponse,
    PhotoResponse,
    PhotoUpdate,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from siteledger.schemas.ledger import LedgerCreate, LedgerListResponse, LedgerResponse, LedgerUpdate
from siteledger.schemas.material import (
    MaterialCreate,
    MaterialListResponse,
    MaterialMovementCreate,
    MaterialMovementListResponse,
    MaterialMovementResponse,
    MaterialMovementUpdate,
    MaterialResponse,
    MaterialUpdate,
)
from siteledger.schemas.record import RecordCreate, RecordListResponse, RecordResponse, RecordUpdate
from siteledger.schemas.transaction import (
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from siteledger.services.account import check_payment_mode, get_account
from siteledger.services.labor import get_labor
from siteledger.services.payout import create_payout_transaction
from siteledger.services.project import get_project
from siteledger.services.provisioning import (
    find_ledger_by_name,
    get_ledger,
    is_reserved_ledger_name,
    resolve_ledger_reference,
)
from siteledger.services.staged import StagedMutable, delete_where

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.approvable import PartialUpdate, StagedPayload
    from siteledger.schemas.auth import AuthContext


def record_status(amount: Decimal, paid: Decimal) -> RecordStatus:
    if paid <= 0:
        return RecordStatus.PENDING
    if paid >= amount:
        return RecordStatus.PAID
    return RecordStatus.PARTIAL


def apply_payment(record: Recordable, amount: Decimal) -> None:
    """Credit ``amount`` to a record, or undo a credit when negative."""
    record.paid_amount += amount
    record.balance_amount = record.amount - record.paid_amount
    record.status = record_status(record.amount, record.paid_amount).value
    record.version += 1


async def _check_project(session: AsyncSession, auth: AuthContext, values: dict[str, Any]) -> None:
    project_id = values.get("project_id")
    if project_id is not None:
        await get_project(session, auth.organization_id, project_id)


async def _resolve_ledger_name(session: AsyncSession, auth: AuthContext, values: dict[str, Any]) -> None:
    """Replace ``ledger_name`` in create values with the id it resolves to."""
    ledger = await resolve_ledger_reference(session, auth, values.get("ledger_id"), values.pop("ledger_name", None))
    values["ledger_id"] = ledger.id


class _MoneyHandler(StagedMutable):
    """Shared reference checks for transactions and records."""

    async def check_references(
        self,
        session: AsyncSession,
        auth: AuthContext,
        values: dict[str, Any],
        current: Any,
    ) -> None:
        await _check_project(session, auth, values)
        if "ledger_id" in values and current is not None:
            await get_ledger(session, auth.organization_id, values["ledger_id"])
        account_id = values.get("financial_account_id")
        if account_id is None and current is not None and "financial_account_id" not in values:
            account_id = getattr(current, "financial_account_id", None)
        if account_id is not None:
            account = await get_account(session, auth.organization_id, account_id)
            payment_mode = values.get("payment_mode") or getattr(current, "payment_mode", None)
            if payment_mode is not None:
                check_payment_mode(account, payment_mode)

    async def prepare_create(self, session: AsyncSession, auth: AuthContext, payload: StagedPayload) -> dict[str, Any]:
        values = payload.field_values()
        await _resolve_ledger_name(session, auth, values)
        await self.check_references(session, auth, values, None)
        return values


class TransactionHandler(_MoneyHandler):
    entity_type = EntityType.TRANSACTION
    audit_entity_type = AuditEntityType.TRANSACTION
    label = "Transaction"
    collection = "transactions"
    model = Transaction
    create_schema = TransactionCreate
    update_schema = TransactionUpdate
    response_schema = TransactionResponse
    list_schema = TransactionListResponse

    async def check_mutable(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: Transaction,
        *,
        deleting: bool,
    ) -> None:
        automated = entity.hajari_settlement_id is not None or entity.converted_from_record_id is not None
        if automated and not deleting:
            raise InvalidStateError("Automated transactions cannot be edited, delete it to revert")

    async def _converted_settlement(self, session: AsyncSession, entity: Transaction) -> RecordSettlement | None:
        if entity.converted_from_record_id is None:
            return None
        result = await session.execute(
            select(RecordSettlement).where(col(RecordSettlement.transaction_id) == entity.id).with_for_update()
        )
        return result.scalars().first()

    async def on_approved(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: Transaction,
        prior_status: ApprovalStatus,
    ) -> None:
        """Approving a converted settlement credits its record in the same unit."""
        if prior_status != ApprovalStatus.PENDING_CREATE:
            return
        settlement = await self._converted_settlement(session, entity)
        if settlement is None or settlement.is_applied:
            return
        record = await session.get(Recordable, settlement.record_id, with_for_update=True)
        if record is None:
            return
        open_balance = record.amount - record.paid_amount
        if settlement.amount_paid > open_balance:
            raise DomainValidationError(
                f"Payment of {settlement.amount_paid} exceeds the open balance of {open_balance}"
            )
        apply_payment(record, settlement.amount_paid)
        settlement.is_applied = True
        session.add(record)
        session.add(settlement)

    async def delete_owned(self, session: AsyncSession, entity: Transaction) -> None:
        """Removing a converted transaction reverts the settlement behind it."""
        settlement = await self._converted_settlement(session, entity)
        if settlement is None:
            return
        if settlement.is_applied:
            record = await session.get(Recordable, settlement.record_id, with_for_update=True)
            if record is not None:
                apply_payment(record, -settlement.amount_paid)
                session.add(record)
        await session.delete(settlement)

    def describe(self, entity: Transaction) -> str:
        return f"{entity.type} of {entity.amount}"


class RecordableHandler(_MoneyHandler):
    entity_type = EntityType.RECORDABLE
    audit_entity_type = AuditEntityType.RECORDABLE
    label = "Record"
    collection = "records"
    model = Recordable
    create_schema = RecordCreate
    update_schema = RecordUpdate
    response_schema = RecordResponse
    list_schema = RecordListResponse

    async def prepare_create(self, session: AsyncSession, auth: AuthContext, payload: StagedPayload) -> dict[str, Any]:
        values = await super().prepare_create(session, auth, payload)
        values["paid_amount"] = Decimal("0")
        values["balance_amount"] = values["amount"]
        values["status"] = RecordStatus.PENDING.value
        return values

    async def prepare_edit(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: Recordable,
        payload: PartialUpdate,
    ) -> dict[str, Any]:
        values = await super().prepare_edit(session, auth, entity, payload)
        amount = values.get("amount")
        if amount is not None and amount < entity.paid_amount:
            raise DomainValidationError(f"Amount cannot be below the {entity.paid_amount} already paid")
        return values

    def apply(self, entity: Recordable, values: dict[str, Any]) -> None:
        super().apply(entity, values)
        if "amount" in values:
            entity.balance_amount = entity.amount - entity.paid_amount
            entity.status = record_status(entity.amount, entity.paid_amount).value

    async def delete_owned(self, session: AsyncSession, entity: Recordable) -> None:
        await delete_where(session, RecordSettlement, col(RecordSettlement.record_id) == entity.id)

    def describe(self, entity: Recordable) -> str:
        kind = "receivable" if entity.type == RecordType.ASSET else "payable"
        return f"{kind} of {entity.amount}"


class LedgerHandler(StagedMutable):
    entity_type = EntityType.LEDGER
    audit_entity_type = AuditEntityType.LEDGER
    label = "Ledger"
    collection = "ledgers"
    model = Ledger
    create_schema = LedgerCreate
    update_schema = LedgerUpdate
    response_schema = LedgerResponse
    list_schema = LedgerListResponse

    def _check_not_reserved(self, name: str) -> None:
        if is_reserved_ledger_name(name):
            raise InvalidStateError(f"Ledger name {name!r} is reserved")

    async def _check_name_free(self, session: AsyncSession, auth: AuthContext, name: str, own_id: Any) -> None:
        existing = await find_ledger_by_name(session, auth.organization_id, name)
        if existing is not None and existing.id != own_id:
            raise InvalidStateError(f"Ledger {existing.name!r} already exists")

    async def prepare_create(self, session: AsyncSession, auth: AuthContext, payload: StagedPayload) -> dict[str, Any]:
        values = payload.field_values()
        self._check_not_reserved(values["name"])
        await self._check_name_free(session, auth, values["name"], None)
        values["name_key"] = normalize_ledger_name(values["name"])
        return values

    async def prepare_edit(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: Ledger,
        payload: PartialUpdate,
    ) -> dict[str, Any]:
        values = payload.field_values(partial=True)
        if "name" in values:
            name_key = normalize_ledger_name(values["name"])
            if entity.is_system and name_key != entity.name_key:
                raise InvalidStateError("Reserved ledgers cannot be renamed")
            if not entity.is_system:
                self._check_not_reserved(values["name"])
            await self._check_name_free(session, auth, values["name"], entity.id)
            values["name_key"] = name_key
        return values

    async def check_mutable(self, session: AsyncSession, auth: AuthContext, entity: Ledger, *, deleting: bool) -> None:
        if deleting and entity.is_system:
            raise InvalidStateError("Reserved ledgers cannot be deleted")

    async def delete_owned(self, session: AsyncSession, entity: Ledger) -> None:
        record_ids = select(Recordable.id).where(col(Recordable.ledger_id) == entity.id)
        await delete_where(session, RecordSettlement, col(RecordSettlement.record_id).in_(record_ids))
        await delete_where(session, Recordable, col(Recordable.ledger_id) == entity.id)
        await delete_where(session, Transaction, col(Transaction.ledger_id) == entity.id)
        await delete_where(
            session,
            JournalEntry,
            or_(col(JournalEntry.debit_ledger_id) == entity.id, col(JournalEntry.credit_ledger_id) == entity.id),
        )

    def describe(self, entity: Ledger) -> str:
        return f"ledger {entity.name!r}"


class HajariHandler(StagedMutable):
    entity_type = EntityType.HAJARI
    audit_entity_type = AuditEntityType.HAJARI
    label = "Attendance record"
    collection = "hajari"
    model = Hajari
    create_schema = HajariCreate
    update_schema = HajariUpdate
    response_schema = HajariResponse
    list_schema = HajariListResponse

    async def check_references(
        self,
        session: AsyncSession,
        auth: AuthContext,
        values: dict[str, Any],
        current: Any,
    ) -> None:
        if values.get("labor_id") is not None:
            await get_labor(session, auth.organization_id, values["labor_id"])
        await _check_project(session, auth, values)

    async def check_mutable(self, session: AsyncSession, auth: AuthContext, entity: Hajari, *, deleting: bool) -> None:
        if not deleting and AttendanceStatus(entity.status).is_settlement:
            raise InvalidStateError("Settlement rows cannot be edited, delete and request again")

    async def on_approved(
        self,
        session: AsyncSession,
        auth: AuthContext,
        entity: Hajari,
        prior_status: ApprovalStatus,
    ) -> None:
        """Confirming a settlement request pays it out in the same unit."""
        if prior_status != ApprovalStatus.PENDING_CREATE or entity.status != AttendanceStatus.PENDING_SETTLEMENT:
            return
        labor = await get_labor(session, auth.organization_id, entity.labor_id)
        entity.status = AttendanceStatus.SETTLEMENT.value
        await create_payout_transaction(session, auth, entity, labor)

    async def delete_owned(self, session: AsyncSession, entity: Hajari) -> None:
        await delete_where(session, Transaction, col(Transaction.hajari_settlement_id) == entity.id)

    def describe(self, entity: Hajari) -> str:
        if AttendanceStatus(entity.status).is_settlement:
            return f"settlement of {entity.upad} for {entity.date.month}/{entity.date.year}"
        return f"attendance for {entity.date}"


class _ProjectContentHandler(StagedMutable):
    async def check_references(
        self,
        session: AsyncSession,
        auth: AuthContext,
        values: dict[str, Any],
        current: Any,
    ) -> None:
        await _check_project(session, auth, values)


class TaskHandler(_ProjectContentHandler):
    entity_type = EntityType.TASK
    audit_entity_type = AuditEntityType.TASK
    label = "Task"
    collection = "tasks"
    model = Task
    create_schema = TaskCreate
    update_schema = TaskUpdate
    response_schema = TaskResponse
    list_schema = TaskListResponse

    def describe(self, entity: Task) -> str:
        return f"task {entity.title!r}"


class PhotoHandler(_ProjectContentHandler):
    entity_type = EntityType.PHOTO
    audit_entity_type = AuditEntityType.PHOTO
    label = "Photo"
    collection = "photos"
    model = Photo
    create_schema = PhotoCreate
    update_schema = PhotoUpdate
    response_schema = PhotoResponse
    list_schema = PhotoListResponse


class DocumentHandler(_ProjectContentHandler):
    entity_type = EntityType.DOCUMENT
    audit_entity_type = AuditEntityType.DOCUMENT
    label = "Document"
    collection = "documents"
    model = Document
    create_schema = DocumentCreate
    update_schema = DocumentUpdate
    response_schema = DocumentResponse
    list_schema = DocumentListResponse

    def describe(self, entity: Document) -> str:
        return f"document {entity.document_name!r}"


class MaterialHandler(StagedMutable):
    entity_type = EntityType.MATERIAL
    audit_entity_type = AuditEntityType.MATERIAL
    label = "Material"
    collection = "materials"
    model = Material
    create_schema = MaterialCreate
    update_schema = MaterialUpdate
    response_schema = MaterialResponse
    list_schema = MaterialListResponse

    async def delete_owned(self, session: AsyncSession, entity: Material) -> None:
        await delete_where(session, MaterialLedgerEntry, col(MaterialLedgerEntry.material_id) == entity.id)

    def describe(self, entity: Material) -> str:
        return f"material {entity.name!r}"


class MaterialLedgerEntryHandler(StagedMutable):
    entity_type = EntityType.MATERIAL_LEDGER_ENTRY
    audit_entity_type = AuditEntityType.MATERIAL_LEDGER_ENTRY
    label = "Material movement"
    collection = "material-ledger"
    model = MaterialLedgerEntry
    create_schema = MaterialMovementCreate
    update_schema = MaterialMovementUpdate
    response_schema = MaterialMovementResponse
    list_schema = MaterialMovementListResponse

    async def check_references(
        self,
        session: AsyncSession,
        auth: AuthContext,
        values: dict[str, Any],
        current: Any,
    ) -> None:
        material_id = values.get("material_id")
        if material_id is not None:
            result = await session.execute(
                select(Material.id).where(
                    col(Material.id) == material_id,
                    col(Material.organization_id) == auth.organization_id,
                )
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Material not found")
        await _check_project(session, auth, values)

    def describe(self, entity: MaterialLedgerEntry) -> str:
        return f"stock {entity.type} of {entity.quantity}"


REGISTRY: dict[EntityType, StagedMutable] = {
    handler.entity_type: handler
    for handler in (
        TransactionHandler(),
        RecordableHandler(),
        LedgerHandler(),
        TaskHandler(),
        PhotoHandler(),
        DocumentHandler(),
        HajariHandler(),
        MaterialHandler(),
        MaterialLedgerEntryHandler(),
    )
}


def get_handler(entity_type: EntityType | str) -> StagedMutable:
    """Look up the handler for an entity type.

    Raises ``RegistryError`` for a known type with no handler, which would
    otherwise let approvals silently do nothing.
    """
    try:
        key = EntityType(entity_type)
    except ValueError as exc:
        raise NotFoundError(f"Unknown entity type {entity_type!r}") from exc
    try:
        return REGISTRY[key]
    except KeyError as exc:
        raise RegistryError(f"No handler registered for entity type {entity_type!r}") from exc

