# ruff: noqa: TC003
from __future__ import annotations

import datetime
import logging
import uuid
from calendar import monthrange
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from siteledger.exceptions import InvalidStateError
from siteledger.models.attendance import Hajari
from siteledger.models.enums import (
    ApprovalStatus,
    AttendanceStatus,
    AuditAction,
    AuditEntityType,
    EntityType,
    NotificationType,
)
from siteledger.schemas.attendance import (
    DailyWageLine,
    HajariListResponse,
    HajariResponse,
    MonthlyAttendanceSummary,
    SettlementResponse,
)
from siteledger.services.account import check_payment_mode, get_account
from siteledger.services.audit import model_to_audit_dict, write_audit_log
from siteledger.services.cache import invalidate_reports
from siteledger.services.effective import resolve_effective
from siteledger.services.labor import get_labor
from siteledger.services.notification import NotificationMessage, notify
from siteledger.services.payout import create_payout_transaction
from siteledger.services.project import get_project
from siteledger.services.registry import get_handler
from siteledger.services.staging import notify_admins, stage_create

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.attendance import AttendanceSheetPayload, SettlementRequestPayload
    from siteledger.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HOURS_PER_DAY = Decimal("8")
_OVERTIME_MULTIPLIER = Decimal("1.5")


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def day_wage(rate: Decimal, status: AttendanceStatus | str) -> Decimal:
    """Base pay for the day: full rate present, half rate half-day, nothing otherwise."""
    if status == AttendanceStatus.PRESENT:
        return rate
    if status == AttendanceStatus.HALF_DAY:
        return rate / 2
    return _ZERO


def overtime_pay(rate: Decimal, overtime_hours: Decimal) -> Decimal:
    """Time and a half on the hourly rate. Applies whatever the day's status."""
    if overtime_hours <= 0:
        return _ZERO
    return rate / _HOURS_PER_DAY * overtime_hours * _OVERTIME_MULTIPLIER


def summarize_month(
    labor_id: uuid.UUID,
    rate: Decimal,
    year: int,
    month: int,
    rows: Iterable[Hajari],
) -> MonthlyAttendanceSummary:
    """Wage, advances and settlements of one worker for one month.

    Ordinary rows count once they resolve as effective. Approved settlement
    rows feed ``total_settled``; a ``pending-settlement`` row only raises
    ``has_pending_settlement``. Rejected rows are ignored entirely.
    """
    lines: list[DailyWageLine] = []
    total_wage = _ZERO
    total_upad = _ZERO
    total_settled = _ZERO
    total_overtime = _ZERO
    days = {AttendanceStatus.PRESENT: 0, AttendanceStatus.HALF_DAY: 0, AttendanceStatus.ABSENT: 0}
    has_pending_settlement = False

    for row in sorted(rows, key=lambda r: r.date):
        status = AttendanceStatus(row.status)
        if row.approval_status == ApprovalStatus.REJECTED:
            continue
        if status == AttendanceStatus.PENDING_SETTLEMENT:
            has_pending_settlement = True
            continue
        if resolve_effective(row) is None:
            continue
        if status == AttendanceStatus.SETTLEMENT:
            total_settled += row.upad
            continue

        base = day_wage(rate, status)
        extra = overtime_pay(rate, row.overtime_hours)
        total_wage += base + extra
        total_upad += row.upad
        total_overtime += row.overtime_hours
        days[status] += 1
        lines.append(
            DailyWageLine(
                hajari_id=row.id,
                date=row.date,
                status=status,
                overtime_hours=row.overtime_hours,
                day_wage=base,
                overtime_pay=extra,
                daily_total=base + extra,
                upad=row.upad,
            )
        )

    final_amount = total_wage - total_upad
    return MonthlyAttendanceSummary(
        labor_id=labor_id,
        year=year,
        month=month,
        rate=rate,
        lines=lines,
        days_present=days[AttendanceStatus.PRESENT],
        days_half=days[AttendanceStatus.HALF_DAY],
        days_absent=days[AttendanceStatus.ABSENT],
        total_overtime_hours=total_overtime,
        total_wage=total_wage,
        total_upad=total_upad,
        final_amount=final_amount,
        total_settled=total_settled,
        payable_amount=final_amount - total_settled,
        has_pending_settlement=has_pending_settlement,
    )


def month_bounds(year: int, month: int) -> tuple[datetime.date, datetime.date]:
    """Return (first, last) day of the month, both inclusive."""
    _, days_in_month = monthrange(year, month)
    return datetime.date(year, month, 1), datetime.date(year, month, days_in_month)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _month_rows(
    session: AsyncSession,
    organization_id: uuid.UUID,
    labor_id: uuid.UUID,
    year: int,
    month: int,
    *,
    for_update: bool = False,
) -> list[Hajari]:
    first, last = month_bounds(year, month)
    query = select(Hajari).where(
        col(Hajari.organization_id) == organization_id,
        col(Hajari.labor_id) == labor_id,
        col(Hajari.date) >= first,
        col(Hajari.date) <= last,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query.order_by(col(Hajari.date), col(Hajari.created_at)))
    return list(result.scalars().all())


async def get_monthly_summary(
    session: AsyncSession,
    auth: AuthContext,
    labor_id: uuid.UUID,
    year: int,
    month: int,
) -> MonthlyAttendanceSummary:
    labor = await get_labor(session, auth.organization_id, labor_id)
    rows = await _month_rows(session, auth.organization_id, labor_id, year, month)
    return summarize_month(labor.id, labor.rate, year, month, rows)


async def list_labor_hajari(
    session: AsyncSession,
    auth: AuthContext,
    labor_id: uuid.UUID,
    year: int,
    month: int,
) -> HajariListResponse:
    """Raw attendance and settlement rows of a worker's month, pending ones included."""
    await get_labor(session, auth.organization_id, labor_id)
    rows = await _month_rows(session, auth.organization_id, labor_id, year, month)
    items = [HajariResponse.model_validate(r) for r in rows]
    return HajariListResponse(items=items, total=len(items))


# ---------------------------------------------------------------------------
# Settlements
# ---------------------------------------------------------------------------


async def request_settlement(
    session: AsyncSession,
    auth: AuthContext,
    labor_id: uuid.UUID,
    payload: SettlementRequestPayload,
) -> SettlementResponse:
    """Pay out, or ask to pay out, a worker's month.

    1. Lock the worker's month and refuse a second unresolved request.
    2. Admin: add an approved ``settlement`` row and its payout transaction
       in one unit.
    3. Anyone else: add a ``pending-settlement`` row awaiting approval; no
       money moves until an admin approves it.
    """
    labor = await get_labor(session, auth.organization_id, labor_id)
    if payload.project_id is not None:
        await get_project(session, auth.organization_id, payload.project_id)
    if payload.financial_account_id is not None:
        account = await get_account(session, auth.organization_id, payload.financial_account_id)
        check_payment_mode(account, payload.payment_mode)

    rows = await _month_rows(session, auth.organization_id, labor_id, payload.year, payload.month, for_update=True)
    if any(
        r.status == AttendanceStatus.PENDING_SETTLEMENT and r.approval_status != ApprovalStatus.REJECTED for r in rows
    ):
        raise InvalidStateError(
            f"A settlement request for {labor.name} ({payload.month}/{payload.year}) is already pending"
        )

    first, _ = month_bounds(payload.year, payload.month)
    settlement = Hajari(
        organization_id=auth.organization_id,
        labor_id=labor.id,
        project_id=payload.project_id,
        date=first,
        status=(AttendanceStatus.SETTLEMENT if auth.is_admin else AttendanceStatus.PENDING_SETTLEMENT).value,
        overtime_hours=_ZERO,
        upad=payload.amount,
        payment_mode=payload.payment_mode.value,
        financial_account_id=payload.financial_account_id,
        approval_status=(ApprovalStatus.APPROVED if auth.is_admin else ApprovalStatus.PENDING_CREATE).value,
        created_by=auth.user_id,
        submitted_by=auth.user_id,
        request_message=payload.request_message,
    )
    session.add(settlement)
    await session.flush()

    transaction_id = None
    if auth.is_admin:
        transaction = await create_payout_transaction(session, auth, settlement, labor)
        transaction_id = transaction.id

    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.HAJARI,
        entity_id=settlement.id,
        action=AuditAction.SETTLE if auth.is_admin else AuditAction.REQUEST_CREATE,
        after_json=model_to_audit_dict(settlement),
    )
    await session.commit()
    await session.refresh(settlement)
    logger.info(
        "%s settlement %s of %s for labor %s",
        "Recorded" if auth.is_admin else "Requested",
        settlement.id,
        payload.amount,
        labor.id,
    )
    await invalidate_reports(auth.organization_id)
    if not auth.is_admin:
        await notify_admins(session, auth, get_handler(EntityType.HAJARI), settlement, "pay out")
    return SettlementResponse(hajari=HajariResponse.model_validate(settlement), transaction_id=transaction_id)


# ---------------------------------------------------------------------------
# Attendance sheets
# ---------------------------------------------------------------------------


async def save_attendance_sheet(
    session: AsyncSession,
    auth: AuthContext,
    payload: AttendanceSheetPayload,
) -> HajariListResponse:
    """Stage several attendance rows as a single unit: all of them land or none."""
    handler = get_handler(EntityType.HAJARI)
    staged = []
    for record in payload.records:
        row = record
        if row.request_message is None and payload.request_message is not None:
            row = record.model_copy(update={"request_message": payload.request_message})
        staged.append(await stage_create(session, auth, handler, row))
    await session.commit()
    for entity in staged:
        await session.refresh(entity)
    logger.info("Saved attendance sheet of %d rows", len(staged))
    await invalidate_reports(auth.organization_id)
    if not auth.is_admin:
        await notify(
            session,
            NotificationMessage(
                organization_id=auth.organization_id,
                user_id=None,
                message=f"{auth.display_name} submitted an attendance sheet of {len(staged)} rows",
                type=NotificationType.SUBMITTED,
                item_type=handler.entity_type.value,
            ),
        )
    items = [HajariResponse.model_validate(e) for e in staged]
    return HajariListResponse(items=items, total=len(items))
