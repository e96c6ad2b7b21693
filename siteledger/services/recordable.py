# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from fastapi import status
from sqlalchemy import func, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, InvalidStateError
from siteledger.models.enums import (
    ApprovalStatus,
    AuditAction,
    AuditEntityType,
    EntityType,
    RecordType,
    TransactionType,
)
from siteledger.models.record import Recordable, RecordSettlement
from siteledger.models.transaction import Transaction
from siteledger.schemas.record import RecordResponse, RecordSettlementResponse, RecordSettlementResult
from siteledger.services.account import check_payment_mode, get_account
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports
from siteledger.services.effective import resolve_effective
from siteledger.services.registry import apply_payment, get_handler
from siteledger.services.staging import notify_admins

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext
    from siteledger.schemas.record import RecordSettlementCreate

logger = logging.getLogger(__name__)


async def _awaiting_approval(session: AsyncSession, record_id: uuid.UUID) -> Decimal:
    """Sum of settlements whose converted transaction is still waiting for an admin."""
    result = await session.execute(
        select(func.coalesce(func.sum(RecordSettlement.amount_paid), 0))
        .join(Transaction, col(Transaction.id) == col(RecordSettlement.transaction_id))
        .where(
            col(RecordSettlement.record_id) == record_id,
            col(RecordSettlement.is_applied).is_(False),
            col(Transaction.approval_status) == ApprovalStatus.PENDING_CREATE.value,
        )
    )
    return Decimal(result.scalar_one())


def _settlement_transaction(
    auth: AuthContext,
    record: Recordable,
    settlement: RecordSettlement,
) -> Transaction:
    """Cash movement for a settlement: money in for a receivable, out for a payable."""
    return Transaction(
        organization_id=auth.organization_id,
        type=(TransactionType.INCOME if record.type == RecordType.ASSET else TransactionType.EXPENSE).value,
        amount=settlement.amount_paid,
        description=f"Settlement: {record.description or record.invoice_number or 'record'}",
        date=settlement.settlement_date,
        project_id=record.project_id,
        ledger_id=record.ledger_id,
        payment_mode=settlement.payment_mode,
        financial_account_id=settlement.financial_account_id,
        converted_from_record_id=record.id,
        approval_status=(ApprovalStatus.APPROVED if auth.is_admin else ApprovalStatus.PENDING_CREATE).value,
        created_by=auth.user_id,
        submitted_by=auth.user_id,
    )


async def add_settlement(
    session: AsyncSession,
    auth: AuthContext,
    record_id: uuid.UUID,
    payload: RecordSettlementCreate,
) -> RecordSettlementResult:
    """Record a partial or full payment against a record.

    1. Lock the record; it must count as effective.
    2. Refuse payments beyond the open balance, less requests still awaiting approval.
    3. Add the settlement and, if asked, the matching transaction.
    4. Admins: recompute paid amount, balance and status in the same unit.
       Others: the transaction is staged and the record is credited when
       an admin approves it.
    """
    handler = get_handler(EntityType.RECORDABLE)
    record: Recordable = await handler.load(session, auth.organization_id, record_id, for_update=True)
    if resolve_effective(record) is None:
        raise InvalidStateError("Only approved records can be settled")

    if not auth.is_admin and not payload.convert_to_transaction:
        raise InvalidStateError(
            "Settlements by non-admins must be converted to a transaction for approval",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    open_balance = record.amount - record.paid_amount - await _awaiting_approval(session, record.id)
    if payload.amount_paid > open_balance:
        raise DomainValidationError(f"Payment of {payload.amount_paid} exceeds the open balance of {open_balance}")
    if payload.financial_account_id is not None:
        account = await get_account(session, auth.organization_id, payload.financial_account_id)
        check_payment_mode(account, payload.payment_mode)

    before = model_to_audit_dict(record)
    settlement = RecordSettlement(
        organization_id=auth.organization_id,
        record_id=record.id,
        settlement_date=payload.settlement_date,
        amount_paid=payload.amount_paid,
        payment_mode=payload.payment_mode.value,
        financial_account_id=payload.financial_account_id,
        remarks=payload.remarks,
        is_applied=auth.is_admin,
        created_by=auth.user_id,
    )
    session.add(settlement)
    await session.flush()

    transaction = None
    if payload.convert_to_transaction:
        transaction = _settlement_transaction(auth, record, settlement)
        session.add(transaction)
        await session.flush()
        settlement.transaction_id = transaction.id
        await write_audit_log(
            session,
            auth=auth,
            entity_type=AuditEntityType.TRANSACTION,
            entity_id=transaction.id,
            action=AuditAction.CREATE if auth.is_admin else AuditAction.REQUEST_CREATE,
            after_json=model_to_audit_dict(transaction),
        )

    if settlement.is_applied:
        apply_payment(record, payload.amount_paid)
        session.add(record)

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.RECORD_SETTLEMENT,
        entity_id=settlement.id,
        action=AuditAction.SETTLE,
        before_json=before,
        after_json=model_to_audit_dict(record),
    )
    await session.commit()
    await session.refresh(record)
    await session.refresh(settlement)
    logger.info(
        "%s %s against record %s, status now %s",
        "Settled" if settlement.is_applied else "Requested settlement of",
        payload.amount_paid,
        record.id,
        record.status,
    )
    await invalidate_reports(auth.organization_id)
    if transaction is not None and not auth.is_admin:
        await notify_admins(session, auth, get_handler(EntityType.TRANSACTION), transaction, "add")
    return RecordSettlementResult(
        settlement=RecordSettlementResponse.model_validate(settlement),
        record=RecordResponse.model_validate(record),
    )


async def list_settlements(
    session: AsyncSession,
    auth: AuthContext,
    record_id: uuid.UUID,
) -> list[RecordSettlementResponse]:
    handler = get_handler(EntityType.RECORDABLE)
    await handler.load(session, auth.organization_id, record_id)
    result = await session.execute(
        select(RecordSettlement)
        .where(col(RecordSettlement.record_id) == record_id)
        .order_by(col(RecordSettlement.settlement_date), col(RecordSettlement.created_at))
    )
    return [RecordSettlementResponse.model_validate(s) for s in result.scalars().all()]
