"""Running-balance statements and cost-code totals.

Everything here is read-only. Source rows go through the effective-value
resolver before they are summed, and results are served through the report
cache, which every committed write invalidates.
"""

# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import or_, select
from sqlmodel import col

from siteledger.models.enums import MaterialMovementType, RecordType, TransactionType
from siteledger.models.journal import JournalEntry
from siteledger.models.material import Material, MaterialLedgerEntry
from siteledger.models.record import Recordable
from siteledger.models.transaction import Transaction
from siteledger.schemas.statement import (
    AccountStatementResponse,
    LedgerTotalsResponse,
    MaterialStockLine,
    MaterialStockResponse,
    OrganizationSummaryResponse,
    StatementLine,
)
from siteledger.services.account import get_account
from siteledger.services.cache import cached_report, report_key
from siteledger.services.effective import effective_only
from siteledger.services.provisioning import get_ledger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


@dataclass
class StatementRow:
    """A transaction or journal side, classified for one account."""

    source: Literal["transaction", "journal"]
    id: uuid.UUID
    date: datetime.date
    description: str
    type: TransactionType
    amount: Decimal
    project_id: uuid.UUID | None = None
    ledger_id: uuid.UUID | None = None
    approval_status: str | None = None


@dataclass
class StatementWalk:
    lines: list[StatementLine]
    total_income: Decimal
    total_expense: Decimal
    closing_balance: Decimal


def walk_statement(opening_balance: Decimal, rows: Iterable[StatementRow]) -> StatementWalk:
    """Order rows by date and accumulate a running balance.

    The sort is stable, so rows on the same date keep the order they were
    given in.
    """
    ordered = sorted(rows, key=lambda r: r.date)
    balance = opening_balance
    total_income = _ZERO
    total_expense = _ZERO
    lines: list[StatementLine] = []
    for row in ordered:
        if row.type == TransactionType.INCOME:
            balance += row.amount
            total_income += row.amount
        else:
            balance -= row.amount
            total_expense += row.amount
        lines.append(
            StatementLine(
                source=row.source,
                id=row.id,
                date=row.date,
                description=row.description,
                type=row.type,
                amount=row.amount,
                running_balance=balance,
                project_id=row.project_id,
                ledger_id=row.ledger_id,
                approval_status=row.approval_status,
            )
        )
    return StatementWalk(
        lines=lines,
        total_income=total_income,
        total_expense=total_expense,
        closing_balance=opening_balance + total_income - total_expense,
    )


def signed_amount(row: StatementRow) -> Decimal:
    return row.amount if row.type == TransactionType.INCOME else -row.amount


def transaction_row(transaction: Transaction) -> StatementRow:
    return StatementRow(
        source="transaction",
        id=transaction.id,
        date=transaction.date,
        description=transaction.description,
        type=TransactionType(transaction.type),
        amount=transaction.amount,
        project_id=transaction.project_id,
        ledger_id=transaction.ledger_id,
        approval_status=transaction.approval_status,
    )


def journal_row(entry: JournalEntry, account_id: uuid.UUID) -> StatementRow:
    """The debit side receives (income-like), the credit side gives (expense-like)."""
    incoming = entry.debit_account_id == account_id
    return StatementRow(
        source="journal",
        id=entry.id,
        date=entry.date,
        description=entry.description or "Journal entry",
        type=TransactionType.INCOME if incoming else TransactionType.EXPENSE,
        amount=entry.amount,
        ledger_id=entry.credit_ledger_id if incoming else entry.debit_ledger_id,
    )


def outstanding(record: Recordable) -> Decimal:
    if record.balance_amount is not None:
        return record.balance_amount
    return record.amount - record.paid_amount


def split_outstanding(records: Iterable[Recordable]) -> tuple[Decimal, Decimal]:
    """Return (receivable, payable) still open across the records."""
    receivable = _ZERO
    payable = _ZERO
    for record in records:
        if record.type == RecordType.ASSET:
            receivable += outstanding(record)
        else:
            payable += outstanding(record)
    return receivable, payable


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _effective_transactions(session: AsyncSession, *filters: Any) -> list[Transaction]:
    result = await session.execute(select(Transaction).where(*filters).order_by(col(Transaction.created_at)))
    return effective_only(result.scalars().all())


async def _effective_records(session: AsyncSession, *filters: Any) -> list[Recordable]:
    result = await session.execute(select(Recordable).where(*filters).order_by(col(Recordable.created_at)))
    return effective_only(result.scalars().all())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def get_account_statement(
    session: AsyncSession,
    auth: AuthContext,
    account_id: uuid.UUID,
    project_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
    date_from: datetime.date | None = None,
    date_to: datetime.date | None = None,
) -> AccountStatementResponse:
    """Cash or bank book of one financial account.

    Journal entries carry no project, so a project filter leaves them out.
    Rows dated before ``date_from`` are folded into the opening balance.
    """
    account = await get_account(session, auth.organization_id, account_id)

    async def compute() -> AccountStatementResponse:
        filters = [
            col(Transaction.organization_id) == auth.organization_id,
            col(Transaction.financial_account_id) == account_id,
        ]
        if project_id is not None:
            filters.append(col(Transaction.project_id) == project_id)
        if user_id is not None:
            filters.append(col(Transaction.created_by) == user_id)
        rows = [transaction_row(t) for t in await _effective_transactions(session, *filters)]

        if project_id is None:
            journal_filters = [
                col(JournalEntry.organization_id) == auth.organization_id,
                or_(
                    col(JournalEntry.debit_account_id) == account_id,
                    col(JournalEntry.credit_account_id) == account_id,
                ),
            ]
            if user_id is not None:
                journal_filters.append(col(JournalEntry.created_by) == user_id)
            result = await session.execute(
                select(JournalEntry).where(*journal_filters).order_by(col(JournalEntry.created_at))
            )
            rows.extend(journal_row(e, account_id) for e in result.scalars().all())

        opening = account.opening_balance
        if date_from is not None:
            opening += sum((signed_amount(r) for r in rows if r.date < date_from), _ZERO)
            rows = [r for r in rows if r.date >= date_from]
        if date_to is not None:
            rows = [r for r in rows if r.date <= date_to]

        walk = walk_statement(opening, rows)
        return AccountStatementResponse(
            account_id=account.id,
            account_name=account.name,
            opening_balance=opening,
            lines=walk.lines,
            total_income=walk.total_income,
            total_expense=walk.total_expense,
            closing_balance=walk.closing_balance,
        )

    key = report_key(auth.organization_id, "statement", account_id, project_id, user_id, date_from, date_to)
    return await cached_report(key, AccountStatementResponse, compute)


async def get_ledger_totals(
    session: AsyncSession,
    auth: AuthContext,
    ledger_id: uuid.UUID,
    project_id: uuid.UUID | None = None,
) -> LedgerTotalsResponse:
    """Cost-code totals of one ledger. Journal entries count only without a project filter."""
    ledger = await get_ledger(session, auth.organization_id, ledger_id)

    async def compute() -> LedgerTotalsResponse:
        txn_filters = [
            col(Transaction.organization_id) == auth.organization_id,
            col(Transaction.ledger_id) == ledger_id,
        ]
        rec_filters = [
            col(Recordable.organization_id) == auth.organization_id,
            col(Recordable.ledger_id) == ledger_id,
        ]
        if project_id is not None:
            txn_filters.append(col(Transaction.project_id) == project_id)
            rec_filters.append(col(Recordable.project_id) == project_id)

        transactions = await _effective_transactions(session, *txn_filters)
        total_income = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), _ZERO)
        total_expense = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), _ZERO)
        receivable, payable = split_outstanding(await _effective_records(session, *rec_filters))

        journal_debit = _ZERO
        journal_credit = _ZERO
        if project_id is None:
            result = await session.execute(
                select(JournalEntry).where(
                    col(JournalEntry.organization_id) == auth.organization_id,
                    or_(
                        col(JournalEntry.debit_ledger_id) == ledger_id,
                        col(JournalEntry.credit_ledger_id) == ledger_id,
                    ),
                )
            )
            for entry in result.scalars().all():
                if entry.debit_ledger_id == ledger_id:
                    journal_debit += entry.amount
                if entry.credit_ledger_id == ledger_id:
                    journal_credit += entry.amount

        return LedgerTotalsResponse(
            ledger_id=ledger.id,
            ledger_name=ledger.name,
            project_id=project_id,
            total_income=total_income,
            total_expense=total_expense,
            journal_debit=journal_debit,
            journal_credit=journal_credit,
            net=total_income - total_expense + journal_debit - journal_credit,
            total_receivable=receivable,
            total_payable=payable,
            transaction_count=len(transactions),
        )

    key = report_key(auth.organization_id, "ledger", ledger_id, project_id)
    return await cached_report(key, LedgerTotalsResponse, compute)


async def get_summary(
    session: AsyncSession,
    auth: AuthContext,
    project_id: uuid.UUID | None = None,
) -> OrganizationSummaryResponse:
    """Income, expense and open receivables/payables of the organization or one project."""

    async def compute() -> OrganizationSummaryResponse:
        txn_filters = [col(Transaction.organization_id) == auth.organization_id]
        rec_filters = [col(Recordable.organization_id) == auth.organization_id]
        if project_id is not None:
            txn_filters.append(col(Transaction.project_id) == project_id)
            rec_filters.append(col(Recordable.project_id) == project_id)

        transactions = await _effective_transactions(session, *txn_filters)
        total_income = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), _ZERO)
        total_expense = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), _ZERO)
        receivable, payable = split_outstanding(await _effective_records(session, *rec_filters))
        return OrganizationSummaryResponse(
            project_id=project_id,
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
            total_receivable=receivable,
            total_payable=payable,
        )

    key = report_key(auth.organization_id, "summary", project_id)
    return await cached_report(key, OrganizationSummaryResponse, compute)


async def get_material_stock(
    session: AsyncSession,
    auth: AuthContext,
    project_id: uuid.UUID | None = None,
) -> MaterialStockResponse:
    """Quantity in, out and on hand per material."""

    async def compute() -> MaterialStockResponse:
        result = await session.execute(
            select(Material)
            .where(col(Material.organization_id) == auth.organization_id)
            .order_by(col(Material.name))
        )
        materials = effective_only(result.scalars().all())

        filters = [col(MaterialLedgerEntry.organization_id) == auth.organization_id]
        if project_id is not None:
            filters.append(col(MaterialLedgerEntry.project_id) == project_id)
        result = await session.execute(select(MaterialLedgerEntry).where(*filters))
        quantities: dict[uuid.UUID, dict[str, Decimal]] = defaultdict(lambda: {"in": _ZERO, "out": _ZERO})
        for movement in effective_only(result.scalars().all()):
            quantities[movement.material_id][MaterialMovementType(movement.type).value] += movement.quantity

        items = []
        for material in materials:
            moved = quantities[material.id]
            items.append(
                MaterialStockLine(
                    material_id=material.id,
                    material_name=material.name,
                    unit=material.unit,
                    quantity_in=moved["in"],
                    quantity_out=moved["out"],
                    on_hand=moved["in"] - moved["out"],
                )
            )
        return MaterialStockResponse(project_id=project_id, items=items)

    key = report_key(auth.organization_id, "stock", project_id)
    return await cached_report(key, MaterialStockResponse, compute)
