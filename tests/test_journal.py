"""Tests for double-entry journal adjustments."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from httpx import AsyncClient

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
USER_ID = uuid.uuid4()

ADMIN_HEADERS = {"X-Organization-Id": str(ORG_ID), "X-User-Id": str(ADMIN_ID), "X-Role": "admin"}
USER_HEADERS = {"X-Organization-Id": str(ORG_ID), "X-User-Id": str(USER_ID), "X-Role": "user"}
BASE = f"/organizations/{ORG_ID}"
JOURNAL_URL = f"{BASE}/journal"


async def _setup_books(client: AsyncClient) -> dict[str, str]:
    resp = await client.post(f"{BASE}/accounts", json={"name": "Cash"}, headers=ADMIN_HEADERS)
    cash_id = resp.json()["id"]
    resp = await client.post(
        f"{BASE}/accounts",
        json={"name": "Bank", "type": "BANK", "bank_name": "Axis", "account_number": "9170"},
        headers=ADMIN_HEADERS,
    )
    bank_id = resp.json()["id"]
    resp = await client.post(f"{BASE}/ledgers", json={"name": "Contractor"}, headers=ADMIN_HEADERS)
    return {"cash_id": cash_id, "bank_id": bank_id, "ledger_id": resp.json()["id"]}


def _cash_withdrawal(books: dict[str, str], amount: str = "5000") -> dict[str, Any]:
    """Money moves from the bank into the cash box."""
    return {
        "date": "2025-03-15",
        "description": "ATM withdrawal",
        "amount": amount,
        "debit_mode": "cash",
        "debit_account_id": books["cash_id"],
        "credit_mode": "bank",
        "credit_account_id": books["bank_id"],
    }


async def _closing(client: AsyncClient, account_id: str) -> Decimal:
    resp = await client.get(f"{BASE}/accounts/{account_id}/statement", headers=ADMIN_HEADERS)
    return Decimal(resp.json()["closing_balance"])


async def test_contra_entry_moves_money_between_accounts(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    resp = await async_client.post(JOURNAL_URL, json=_cash_withdrawal(books), headers=USER_HEADERS)
    assert resp.status_code == 201, resp.text
    assert resp.json()["created_by"] == str(USER_ID)

    assert await _closing(async_client, books["cash_id"]) == Decimal("5000")
    assert await _closing(async_client, books["bank_id"]) == Decimal("-5000")


async def test_list_filters_by_account_and_ledger(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    await async_client.post(JOURNAL_URL, json=_cash_withdrawal(books), headers=ADMIN_HEADERS)
    await async_client.post(
        JOURNAL_URL,
        json={
            "date": "2025-03-16",
            "amount": "700",
            "debit_mode": "ledger",
            "debit_ledger_id": books["ledger_id"],
            "credit_mode": "cash",
            "credit_account_id": books["cash_id"],
        },
        headers=ADMIN_HEADERS,
    )

    resp = await async_client.get(JOURNAL_URL, params={"account_id": books["cash_id"]}, headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 2
    resp = await async_client.get(JOURNAL_URL, params={"ledger_id": books["ledger_id"]}, headers=ADMIN_HEADERS)
    data = resp.json()
    assert data["total"] == 1
    assert Decimal(data["items"][0]["amount"]) == Decimal("700")


async def test_sides_must_match_mode(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    body = {**_cash_withdrawal(books), "debit_ledger_id": books["ledger_id"]}
    resp = await async_client.post(JOURNAL_URL, json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422


async def test_same_target_on_both_sides_is_422(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    body = {**_cash_withdrawal(books), "credit_mode": "cash", "credit_account_id": books["cash_id"]}
    resp = await async_client.post(JOURNAL_URL, json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422

    resp = await async_client.post(JOURNAL_URL, json=_cash_withdrawal(books), headers=ADMIN_HEADERS)
    entry_id = resp.json()["id"]
    resp = await async_client.put(f"{JOURNAL_URL}/{entry_id}", json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422
    assert await _closing(async_client, books["cash_id"]) == Decimal("5000")


async def test_account_type_must_match_mode(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    body = {**_cash_withdrawal(books), "debit_account_id": books["bank_id"], "credit_account_id": books["cash_id"]}
    resp = await async_client.post(JOURNAL_URL, json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422


async def test_unknown_ledger_is_404(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    body = {
        "date": "2025-03-16",
        "amount": "10",
        "debit_mode": "ledger",
        "debit_ledger_id": str(uuid.uuid4()),
        "credit_mode": "cash",
        "credit_account_id": books["cash_id"],
    }
    resp = await async_client.post(JOURNAL_URL, json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_update_replaces_entry_and_requires_admin(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    resp = await async_client.post(JOURNAL_URL, json=_cash_withdrawal(books), headers=ADMIN_HEADERS)
    entry_id = resp.json()["id"]

    body = _cash_withdrawal(books, amount="4000")
    resp = await async_client.put(f"{JOURNAL_URL}/{entry_id}", json=body, headers=USER_HEADERS)
    assert resp.status_code == 403

    resp = await async_client.put(f"{JOURNAL_URL}/{entry_id}", json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert Decimal(resp.json()["amount"]) == Decimal("4000")
    assert await _closing(async_client, books["cash_id"]) == Decimal("4000")


async def test_delete_requires_admin(async_client: AsyncClient) -> None:
    books = await _setup_books(async_client)
    resp = await async_client.post(JOURNAL_URL, json=_cash_withdrawal(books), headers=ADMIN_HEADERS)
    entry_id = resp.json()["id"]

    resp = await async_client.delete(f"{JOURNAL_URL}/{entry_id}", headers=USER_HEADERS)
    assert resp.status_code == 403
    resp = await async_client.delete(f"{JOURNAL_URL}/{entry_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 204
    resp = await async_client.get(f"{JOURNAL_URL}/{entry_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404
    assert await _closing(async_client, books["cash_id"]) == Decimal("0")
