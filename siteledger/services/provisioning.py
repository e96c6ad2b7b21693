# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col

from siteledger.config import get_settings
from siteledger.exceptions import NotFoundError, ProvisioningError
from siteledger.models.enums import ApprovalStatus
from siteledger.models.ledger import Ledger, normalize_ledger_name

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


def petty_cash_ledger_name(auth: AuthContext) -> str:
    """Name of the caller's own petty cash ledger."""
    return f"{auth.display_name} {get_settings().petty_cash_suffix}"


def reserved_ledger_name(name: str, auth: AuthContext) -> str | None:
    """Map a ledger reference to its reserved canonical name, or ``None`` if it is not reserved.

    ``Petty Cash`` on its own means the caller's petty cash ledger.
    """
    settings = get_settings()
    key = normalize_ledger_name(name)
    if key == normalize_ledger_name(settings.payroll_ledger_name):
        return settings.payroll_ledger_name
    own_petty_cash = petty_cash_ledger_name(auth)
    if key in (normalize_ledger_name(settings.petty_cash_suffix), normalize_ledger_name(own_petty_cash)):
        return own_petty_cash
    return None


def is_reserved_ledger_name(name: str) -> bool:
    """True for the payroll ledger name and any ``... Petty Cash`` name."""
    settings = get_settings()
    key = normalize_ledger_name(name)
    suffix = normalize_ledger_name(settings.petty_cash_suffix)
    return key in (normalize_ledger_name(settings.payroll_ledger_name), suffix) or key.endswith(f" {suffix}")


async def find_ledger_by_name(
    session: AsyncSession,
    organization_id: uuid.UUID,
    name: str,
    *,
    for_update: bool = False,
) -> Ledger | None:
    query = select(Ledger).where(
        col(Ledger.organization_id) == organization_id,
        col(Ledger.name_key) == normalize_ledger_name(name),
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def ensure_ledger(
    session: AsyncSession,
    organization_id: uuid.UUID,
    name: str,
    *,
    actor_id: uuid.UUID,
) -> Ledger:
    """Return the named system ledger, creating it approved if it does not exist yet.

    An ordinary ledger holding the name is never taken over.
    """
    ledger = await find_ledger_by_name(session, organization_id, name, for_update=True)
    if ledger is not None:
        if not ledger.is_system:
            logger.error("Ledger %s holds reserved name %r in organization %s", ledger.id, name, organization_id)
            raise ProvisioningError(f"Ledger name {name!r} is taken by an ordinary ledger")
        return ledger

    ledger = Ledger(
        organization_id=organization_id,
        name=name,
        name_key=normalize_ledger_name(name),
        is_system=True,
        approval_status=ApprovalStatus.APPROVED.value,
        created_by=actor_id,
    )
    session.add(ledger)
    try:
        await session.flush()
    except SQLAlchemyError as exc:
        logger.exception("Provisioning of ledger %r failed for organization %s", name, organization_id)
        raise ProvisioningError(f"Could not provision ledger {name!r}") from exc
    logger.info("Provisioned ledger %r for organization %s", name, organization_id)
    return ledger


async def ensure_payroll_ledger(session: AsyncSession, organization_id: uuid.UUID, actor_id: uuid.UUID) -> Ledger:
    return await ensure_ledger(session, organization_id, get_settings().payroll_ledger_name, actor_id=actor_id)


async def get_ledger(session: AsyncSession, organization_id: uuid.UUID, ledger_id: uuid.UUID) -> Ledger:
    """Fetch a ledger by ID scoped to the organization. Raises 404 if not found."""
    result = await session.execute(
        select(Ledger).where(col(Ledger.id) == ledger_id, col(Ledger.organization_id) == organization_id)
    )
    ledger = result.scalar_one_or_none()
    if ledger is None:
        raise NotFoundError("Ledger not found")
    return ledger


async def resolve_ledger_reference(
    session: AsyncSession,
    auth: AuthContext,
    ledger_id: uuid.UUID | None,
    ledger_name: str | None,
) -> Ledger:
    """Turn a ledger id or name from a payload into a ledger, provisioning reserved names."""
    if ledger_id is not None:
        return await get_ledger(session, auth.organization_id, ledger_id)
    if ledger_name is None:
        raise NotFoundError("Ledger not found")

    reserved = reserved_ledger_name(ledger_name, auth)
    if reserved is not None:
        return await ensure_ledger(session, auth.organization_id, reserved, actor_id=auth.user_id)

    ledger = await find_ledger_by_name(session, auth.organization_id, ledger_name)
    if ledger is None:
        raise NotFoundError(f"Ledger {ledger_name!r} not found")
    return ledger
