"""Tests for ledger naming rules and on-demand provisioning of reserved ledgers."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, select
from sqlmodel import col

from siteledger.exceptions import ProvisioningError
from siteledger.models.ledger import Ledger, normalize_ledger_name
from siteledger.schemas.auth import AuthContext
from siteledger.services.provisioning import ensure_payroll_ledger, is_reserved_ledger_name, reserved_ledger_name

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
USER_ID = uuid.uuid4()

ADMIN_HEADERS = {
    "X-Organization-Id": str(ORG_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
    "X-User-Name": "Meera",
}
USER_HEADERS = {
    "X-Organization-Id": str(ORG_ID),
    "X-User-Id": str(USER_ID),
    "X-Role": "user",
    "X-User-Name": "Ravi",
}
BASE = f"/organizations/{ORG_ID}"


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def test_normalize_ledger_name() -> None:
    assert normalize_ledger_name("  Cement   Supplier ") == "cement supplier"
    assert normalize_ledger_name("STEEL") == normalize_ledger_name("steel")


def test_reserved_ledger_names() -> None:
    auth = AuthContext(organization_id=ORG_ID, user_id=USER_ID, user_name="Ravi")
    assert reserved_ledger_name("salary/hajari", auth) == "Salary/Hajari"
    assert reserved_ledger_name("Petty Cash", auth) == "Ravi Petty Cash"
    assert reserved_ledger_name("ravi petty cash", auth) == "Ravi Petty Cash"
    assert reserved_ledger_name("Cement", auth) is None


async def test_ensure_payroll_ledger_is_idempotent(db_session: AsyncSession) -> None:
    first = await ensure_payroll_ledger(db_session, ORG_ID, ADMIN_ID)
    second = await ensure_payroll_ledger(db_session, ORG_ID, ADMIN_ID)
    await db_session.commit()

    assert first.id == second.id
    assert first.is_system is True
    assert first.approval_status == "approved"
    count = await db_session.execute(
        select(func.count()).select_from(Ledger).where(col(Ledger.organization_id) == ORG_ID)
    )
    assert count.scalar_one() == 1


def test_is_reserved_ledger_name() -> None:
    assert is_reserved_ledger_name(" SALARY/hajari ")
    assert is_reserved_ledger_name("Petty Cash")
    assert is_reserved_ledger_name("Someone Else petty cash")
    assert not is_reserved_ledger_name("Pettycash Traders")
    assert not is_reserved_ledger_name("Cement")


async def test_ensure_ledger_never_adopts_ordinary_ledger(db_session: AsyncSession) -> None:
    db_session.add(
        Ledger(
            organization_id=ORG_ID,
            name="Salary/Hajari",
            name_key=normalize_ledger_name("Salary/Hajari"),
            approval_status="pending-create",
            created_by=USER_ID,
        )
    )
    await db_session.flush()

    with pytest.raises(ProvisioningError):
        await ensure_payroll_ledger(db_session, ORG_ID, ADMIN_ID)



# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _setup_site(client: AsyncClient) -> dict[str, str]:
    resp = await client.post(f"{BASE}/projects", json={"name": "Row houses"}, headers=ADMIN_HEADERS)
    project_id = resp.json()["id"]
    resp = await client.post(
        f"{BASE}/accounts",
        json={"name": "Site cash", "type": "CASH"},
        headers=ADMIN_HEADERS,
    )
    return {"project_id": project_id, "account_id": resp.json()["id"]}


async def _transaction_by_name(
    client: AsyncClient,
    site: dict[str, str],
    ledger_name: str,
    headers: dict[str, str] = ADMIN_HEADERS,
) -> Any:
    return await client.post(
        f"{BASE}/transactions",
        json={
            "type": "expense",
            "amount": "25",
            "date": "2025-03-10",
            "project_id": site["project_id"],
            "ledger_name": ledger_name,
            "payment_mode": "cash",
            "financial_account_id": site["account_id"],
        },
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


async def test_ledger_names_are_unique_case_insensitively(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "Cement"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "  CEMENT "}, headers=USER_HEADERS)
    assert resp.status_code == 409


async def test_rename_onto_existing_name_is_409(async_client: AsyncClient) -> None:
    await async_client.post(f"{BASE}/ledgers", json={"name": "Cement"}, headers=ADMIN_HEADERS)
    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "Sand"}, headers=ADMIN_HEADERS)
    sand_id = resp.json()["id"]

    resp = await async_client.put(f"{BASE}/ledgers/{sand_id}", json={"name": "cement"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 409
    resp = await async_client.put(f"{BASE}/ledgers/{sand_id}", json={"name": "SAND"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["name"] == "SAND"


async def test_reserved_names_cannot_be_claimed(async_client: AsyncClient) -> None:
    for name in ("salary/hajari", "Petty Cash", "Ravi Petty Cash", "Meera petty  cash"):
        resp = await async_client.post(f"{BASE}/ledgers", json={"name": name}, headers=USER_HEADERS)
        assert resp.status_code == 409, name
        assert "reserved" in resp.json()["detail"]

    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "Sand"}, headers=ADMIN_HEADERS)
    sand_id = resp.json()["id"]
    resp = await async_client.put(f"{BASE}/ledgers/{sand_id}", json={"name": "Salary/Hajari"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 409

    # Payroll provisioning still works since nothing took the name.
    site = await _setup_site(async_client)
    resp = await _transaction_by_name(async_client, site, "Salary/Hajari")
    assert resp.status_code == 201, resp.text



async def test_user_ledger_is_pending(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        f"{BASE}/ledgers",
        json={"name": "Sharma Traders", "is_gst_registered": True, "gst_number": "27AAAPL1234C1ZV"},
        headers=USER_HEADERS,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["approval_status"] == "pending-create"
    assert data["is_system"] is False
    assert data["gst_number"] == "27AAAPL1234C1ZV"


# ---------------------------------------------------------------------------
# Reserved ledgers
# ---------------------------------------------------------------------------


async def test_payroll_ledger_provisioned_on_first_use(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    first = await _transaction_by_name(async_client, site, "salary/hajari")
    assert first.status_code == 201, first.text
    second = await _transaction_by_name(async_client, site, "Salary/Hajari", headers=USER_HEADERS)
    assert second.status_code == 201
    assert first.json()["ledger_id"] == second.json()["ledger_id"]

    resp = await async_client.get(f"{BASE}/ledgers/{first.json()['ledger_id']}", headers=ADMIN_HEADERS)
    ledger = resp.json()
    assert ledger["name"] == "Salary/Hajari"
    assert ledger["is_system"] is True
    assert ledger["approval_status"] == "approved"


async def test_petty_cash_is_per_user(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    mine = await _transaction_by_name(async_client, site, "Petty Cash", headers=USER_HEADERS)
    theirs = await _transaction_by_name(async_client, site, "Petty Cash", headers=ADMIN_HEADERS)
    assert mine.json()["ledger_id"] != theirs.json()["ledger_id"]

    resp = await async_client.get(f"{BASE}/ledgers/{mine.json()['ledger_id']}", headers=ADMIN_HEADERS)
    assert resp.json()["name"] == "Ravi Petty Cash"


async def test_unknown_ledger_name_is_404(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    resp = await _transaction_by_name(async_client, site, "Nobody Traders")
    assert resp.status_code == 404


async def test_ledger_id_and_name_together_is_422(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "Cement"}, headers=ADMIN_HEADERS)
    resp = await async_client.post(
        f"{BASE}/transactions",
        json={
            "type": "expense",
            "amount": "25",
            "date": "2025-03-10",
            "project_id": site["project_id"],
            "ledger_id": resp.json()["id"],
            "ledger_name": "Cement",
            "payment_mode": "cash",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422


async def test_reserved_ledger_cannot_be_renamed_or_deleted(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    resp = await _transaction_by_name(async_client, site, "Salary/Hajari")
    ledger_id = resp.json()["ledger_id"]

    resp = await async_client.put(f"{BASE}/ledgers/{ledger_id}", json={"name": "Wages"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 409
    resp = await async_client.delete(f"{BASE}/ledgers/{ledger_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 409

    resp = await async_client.put(f"{BASE}/ledgers/{ledger_id}", json={"state": "Gujarat"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200


async def test_deleting_ledger_removes_its_transactions(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    resp = await async_client.post(f"{BASE}/ledgers", json={"name": "Bricks"}, headers=ADMIN_HEADERS)
    ledger_id = resp.json()["id"]
    resp = await _transaction_by_name(async_client, site, "Bricks")
    transaction_id = resp.json()["id"]

    resp = await async_client.delete(f"{BASE}/ledgers/{ledger_id}", headers=ADMIN_HEADERS)
    assert resp.json()["deleted"] is True
    resp = await async_client.get(f"{BASE}/transactions/{transaction_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404
