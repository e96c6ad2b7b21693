# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from siteledger.exceptions import DomainValidationError, NotFoundError
from siteledger.models.account import FinancialAccount
from siteledger.models.enums import AccountType, AuditAction, AuditEntityType, PaymentMode
from siteledger.schemas.project import FinancialAccountListResponse, FinancialAccountResponse
from siteledger.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext
    from siteledger.schemas.project import FinancialAccountCreate


async def get_account(session: AsyncSession, organization_id: uuid.UUID, account_id: uuid.UUID) -> FinancialAccount:
    """Fetch a financial account scoped to the organization. Raises 404 if not found."""
    result = await session.execute(
        select(FinancialAccount).where(
            col(FinancialAccount.id) == account_id,
            col(FinancialAccount.organization_id) == organization_id,
        )
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError("Financial account not found")
    return account


def check_payment_mode(account: FinancialAccount, payment_mode: str) -> None:
    """A cash payment must hit a cash account, a bank payment a bank account."""
    expected = AccountType.CASH if payment_mode == PaymentMode.CASH else AccountType.BANK
    if account.type != expected:
        msg = f"Payment mode {payment_mode} does not match {account.type} account {account.name!r}"
        raise DomainValidationError(msg)


async def create_account(
    session: AsyncSession,
    auth: AuthContext,
    payload: FinancialAccountCreate,
) -> FinancialAccountResponse:
    account = FinancialAccount(organization_id=auth.organization_id, **payload.model_dump())
    session.add(account)
    await session.flush()
    await write_audit_log(
        session,
        auth=auth,
        entity_type=AuditEntityType.FINANCIAL_ACCOUNT,
        entity_id=account.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(account),
    )
    await session.commit()
    await session.refresh(account)
    return FinancialAccountResponse.model_validate(account)


async def list_accounts(session: AsyncSession, organization_id: uuid.UUID) -> FinancialAccountListResponse:
    result = await session.execute(
        select(FinancialAccount)
        .where(col(FinancialAccount.organization_id) == organization_id)
        .order_by(col(FinancialAccount.name))
    )
    items = [FinancialAccountResponse.model_validate(a) for a in result.scalars().all()]
    count_result = await session.execute(
        select(func.count())
        .select_from(FinancialAccount)
        .where(col(FinancialAccount.organization_id) == organization_id)
    )
    return FinancialAccountListResponse(items=items, total=count_result.scalar_one())
