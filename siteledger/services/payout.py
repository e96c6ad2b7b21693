from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from siteledger.exceptions import AtomicCompositeError
from siteledger.models.enums import ApprovalStatus, AuditAction, AuditEntityType, PaymentMode, TransactionType
from siteledger.models.transaction import Transaction
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.provisioning import ensure_payroll_ledger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.models.attendance import Hajari, Labor
    from siteledger.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


def payout_description(labor: Labor, settlement: Hajari) -> str:
    return f"Hajari Payout: {labor.name} ({settlement.date.month}/{settlement.date.year})"


async def create_payout_transaction(
    session: AsyncSession,
    auth: AuthContext,
    settlement: Hajari,
    labor: Labor,
) -> Transaction:
    """Add the approved payroll expense that pays out a settlement row.

    Runs inside the caller's transaction. If the row cannot be written the
    whole unit is rolled back, so a settlement never exists without its
    payout or the other way round.
    """
    ledger = await ensure_payroll_ledger(session, auth.organization_id, auth.user_id)
    transaction = Transaction(
        organization_id=auth.organization_id,
        type=TransactionType.EXPENSE.value,
        amount=settlement.upad,
        description=payout_description(labor, settlement),
        date=date.today(),
        project_id=settlement.project_id,
        ledger_id=ledger.id,
        payment_mode=settlement.payment_mode or PaymentMode.CASH.value,
        financial_account_id=settlement.financial_account_id,
        hajari_settlement_id=settlement.id,
        approval_status=ApprovalStatus.APPROVED.value,
        created_by=auth.user_id,
        submitted_by=auth.user_id,
    )
    session.add(transaction)
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Payout for settlement %s could not be written", settlement.id)
        raise AtomicCompositeError(f"Payout for settlement {settlement.id} could not be written") from exc

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.TRANSACTION,
        entity_id=transaction.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(transaction),
    )
    logger.info("Created payout %s for settlement %s", transaction.id, settlement.id)
    return transaction
