"""Tests for the approval workflow: staged creates, edits and deletes, approve and
reject, resubmission, stale versions, withdrawal and notifications.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from siteledger.models.audit import AuditLog
from siteledger.models.enums import NotificationType

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from siteledger.services.notification import InMemoryNotificationSink

ORG_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
USER_ID = uuid.uuid4()
OTHER_USER_ID = uuid.uuid4()

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
OTHER_USER_HEADERS = {
    "X-Organization-Id": str(ORG_ID),
    "X-User-Id": str(OTHER_USER_ID),
    "X-Role": "user",
    "X-User-Name": "Sunil",
}
BASE = f"/organizations/{ORG_ID}"


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _setup_site(client: AsyncClient) -> dict[str, str]:
    """Create a project, a cash account and a ledger; return their IDs."""
    resp = await client.post(f"{BASE}/projects", json={"name": "Tower A"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    project_id = resp.json()["id"]
    resp = await client.post(
        f"{BASE}/accounts",
        json={"name": "Site cash", "type": "CASH", "opening_balance": "1000"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201
    account_id = resp.json()["id"]
    resp = await client.post(f"{BASE}/ledgers", json={"name": "Cement"}, headers=ADMIN_HEADERS)
    assert resp.status_code == 201
    return {"project_id": project_id, "account_id": account_id, "ledger_id": resp.json()["id"]}


def _transaction(site: dict[str, str], amount: str, txn_type: str = "expense", **extra: Any) -> dict[str, Any]:
    return {
        "type": txn_type,
        "amount": amount,
        "date": "2025-03-10",
        "project_id": site["project_id"],
        "ledger_id": site["ledger_id"],
        "payment_mode": "cash",
        "financial_account_id": site["account_id"],
        **extra,
    }


async def _create_transaction(
    client: AsyncClient,
    site: dict[str, str],
    amount: str,
    headers: dict[str, str],
    txn_type: str = "expense",
) -> dict[str, Any]:
    resp = await client.post(f"{BASE}/transactions", json=_transaction(site, amount, txn_type), headers=headers)
    assert resp.status_code == 201, resp.text
    result: dict[str, Any] = resp.json()
    return result


async def _total_expense(client: AsyncClient) -> Decimal:
    resp = await client.get(f"{BASE}/summary", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    return Decimal(resp.json()["total_expense"])


async def _approve(client: AsyncClient, entity_type: str, entity_id: str, **body: Any) -> Any:
    return await client.post(
        f"{BASE}/approvals/{entity_type}/{entity_id}/approve",
        json=body or None,
        headers=ADMIN_HEADERS,
    )


async def _reject(client: AsyncClient, entity_type: str, entity_id: str, remarks: str = "Bill missing") -> Any:
    return await client.post(
        f"{BASE}/approvals/{entity_type}/{entity_id}/reject",
        json={"remarks": remarks},
        headers=ADMIN_HEADERS,
    )


# ---------------------------------------------------------------------------
# Creates
# ---------------------------------------------------------------------------


async def test_admin_create_is_approved_immediately(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "250", ADMIN_HEADERS)

    assert txn["approval_status"] == "approved"
    assert txn["created_by"] == str(ADMIN_ID)
    assert txn["version"] == 1
    assert await _total_expense(async_client) == Decimal("250")


async def test_user_create_excluded_until_approved(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    await _create_transaction(async_client, site, "300", ADMIN_HEADERS)
    before = await _total_expense(async_client)

    txn = await _create_transaction(async_client, site, "200", USER_HEADERS)
    assert txn["approval_status"] == "pending-create"
    assert txn["submitted_by"] == str(USER_ID)
    assert await _total_expense(async_client) == before

    resp = await _approve(async_client, "transaction", txn["id"], remarks="Checked")
    assert resp.status_code == 200
    approved = resp.json()
    assert approved["approval_status"] == "approved"
    assert approved["remarks"] == "Checked"
    assert approved["version"] == 2
    assert await _total_expense(async_client) == before + Decimal("200")


async def test_user_create_with_request_message(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    body = _transaction(site, "90", request_message="Diesel for the mixer")
    resp = await async_client.post(f"{BASE}/transactions", json=body, headers=USER_HEADERS)
    assert resp.status_code == 201
    assert resp.json()["request_message"] == "Diesel for the mixer"


async def test_create_with_unknown_project_is_404(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    site["project_id"] = str(uuid.uuid4())
    resp = await async_client.post(f"{BASE}/transactions", json=_transaction(site, "10"), headers=USER_HEADERS)
    assert resp.status_code == 404


async def test_create_with_mismatched_account_mode_is_422(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    body = _transaction(site, "10", payment_mode="bank")
    resp = await async_client.post(f"{BASE}/transactions", json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


async def test_user_edit_is_staged_until_approved(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)

    resp = await async_client.put(
        f"{BASE}/transactions/{txn['id']}",
        json={"amount": "800.00", "request_message": "Second bill arrived"},
        headers=USER_HEADERS,
    )
    assert resp.status_code == 200
    staged = resp.json()
    assert staged["approval_status"] == "pending-edit"
    assert Decimal(staged["amount"]) == Decimal("500")
    assert Decimal(staged["pending_payload"]["amount"]) == Decimal("800")
    assert staged["request_message"] == "Second bill arrived"
    assert await _total_expense(async_client) == Decimal("500")

    resp = await _approve(async_client, "transaction", txn["id"])
    assert resp.status_code == 200
    approved = resp.json()
    assert Decimal(approved["amount"]) == Decimal("800")
    assert approved["pending_payload"] is None
    assert await _total_expense(async_client) == Decimal("800")


async def test_user_edit_of_own_pending_create_rewrites_in_place(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "120", USER_HEADERS)

    resp = await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "150"}, headers=USER_HEADERS)
    assert resp.status_code == 200
    edited = resp.json()
    assert edited["approval_status"] == "pending-create"
    assert Decimal(edited["amount"]) == Decimal("150")
    assert edited["pending_payload"] is None


async def test_admin_edit_discards_pending_request(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "900"}, headers=USER_HEADERS)

    resp = await async_client.put(
        f"{BASE}/transactions/{txn['id']}",
        json={"description": "Cement bags"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["approval_status"] == "approved"
    assert data["pending_payload"] is None
    assert data["description"] == "Cement bags"
    assert Decimal(data["amount"]) == Decimal("500")


async def test_empty_edit_is_422(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    resp = await async_client.put(
        f"{BASE}/transactions/{txn['id']}",
        json={"request_message": "nothing really"},
        headers=USER_HEADERS,
    )
    assert resp.status_code == 422


async def test_clearing_required_field_is_422(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    resp = await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": None}, headers=ADMIN_HEADERS)
    assert resp.status_code == 422


async def test_every_write_bumps_version(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    resp = await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "510"}, headers=ADMIN_HEADERS)
    assert resp.json()["version"] == 2
    resp = await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "520"}, headers=USER_HEADERS)
    assert resp.json()["version"] == 3


# ---------------------------------------------------------------------------
# Reject and resubmit
# ---------------------------------------------------------------------------


async def test_rejected_create_resubmits_and_counts_one_rejection(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    resp = await async_client.post(
        f"{BASE}/tasks",
        json={"project_id": site["project_id"], "title": "Shuttering"},
        headers=USER_HEADERS,
    )
    task = resp.json()
    assert task["approval_status"] == "pending-create"

    resp = await _reject(async_client, "task", task["id"], remarks="Wrong floor")
    assert resp.status_code == 200
    rejected = resp.json()
    assert rejected["approval_status"] == "rejected"
    assert rejected["rejected_status"] == "pending-create"
    assert rejected["rejection_count"] == 1
    assert rejected["remarks"] == "Wrong floor"

    resp = await async_client.put(
        f"{BASE}/tasks/{task['id']}",
        json={"title": "Shuttering, 3rd floor"},
        headers=USER_HEADERS,
    )
    resubmitted = resp.json()
    assert resubmitted["approval_status"] == "pending-create"
    assert resubmitted["title"] == "Shuttering, 3rd floor"

    resp = await _approve(async_client, "task", task["id"])
    final = resp.json()
    assert final["approval_status"] == "approved"
    assert final["rejected_status"] is None
    assert final["rejection_count"] == 1


async def test_rejected_edit_keeps_payload_and_resubmits(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "800"}, headers=USER_HEADERS)

    resp = await _reject(async_client, "transaction", txn["id"])
    rejected = resp.json()
    assert rejected["approval_status"] == "rejected"
    assert rejected["rejected_status"] == "pending-edit"
    assert Decimal(rejected["pending_payload"]["amount"]) == Decimal("800")
    # A rejected row stops counting until it is resubmitted.
    assert await _total_expense(async_client) == Decimal("0")

    resp = await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "700"}, headers=USER_HEADERS)
    resubmitted = resp.json()
    assert resubmitted["approval_status"] == "pending-edit"
    assert Decimal(resubmitted["pending_payload"]["amount"]) == Decimal("700")
    assert await _total_expense(async_client) == Decimal("500")

    resp = await _approve(async_client, "transaction", txn["id"])
    final = resp.json()
    assert Decimal(final["amount"]) == Decimal("700")
    assert final["rejection_count"] == 1
    assert await _total_expense(async_client) == Decimal("700")


async def test_reject_requires_remarks(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "40", USER_HEADERS)
    resp = await async_client.post(
        f"{BASE}/approvals/transaction/{txn['id']}/reject",
        json={},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Decision guards
# ---------------------------------------------------------------------------


async def test_stale_version_is_409(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "60", USER_HEADERS)

    resp = await _approve(async_client, "transaction", txn["id"], expected_version=txn["version"] + 1)
    assert resp.status_code == 409
    assert "Stale version" in resp.json()["detail"]

    resp = await _approve(async_client, "transaction", txn["id"], expected_version=txn["version"])
    assert resp.status_code == 200


async def test_approving_non_pending_is_409(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "60", ADMIN_HEADERS)
    resp = await _approve(async_client, "transaction", txn["id"])
    assert resp.status_code == 409


async def test_second_approval_is_409(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "60", USER_HEADERS)
    assert (await _approve(async_client, "transaction", txn["id"])).status_code == 200
    assert (await _approve(async_client, "transaction", txn["id"])).status_code == 409
    assert (await _reject(async_client, "transaction", txn["id"])).status_code == 409


async def test_non_admin_cannot_decide(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "60", USER_HEADERS)
    resp = await async_client.post(
        f"{BASE}/approvals/transaction/{txn['id']}/approve",
        headers=OTHER_USER_HEADERS,
    )
    assert resp.status_code == 403
    resp = await async_client.get(f"{BASE}/approvals", headers=USER_HEADERS)
    assert resp.status_code == 403


async def test_unknown_entity_type_is_404(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE}/approvals/invoice/{uuid.uuid4()}/approve", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_missing_entity_is_404(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE}/approvals/transaction/{uuid.uuid4()}/approve", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_organization_mismatch_is_403(async_client: AsyncClient) -> None:
    headers = {**ADMIN_HEADERS, "X-Organization-Id": str(uuid.uuid4())}
    resp = await async_client.get(f"{BASE}/transactions", headers=headers)
    assert resp.status_code == 403


async def test_rows_are_scoped_to_organization(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "60", ADMIN_HEADERS)
    other_org = uuid.uuid4()
    headers = {**ADMIN_HEADERS, "X-Organization-Id": str(other_org)}
    resp = await async_client.get(f"/organizations/{other_org}/transactions/{txn['id']}", headers=headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Deletes and withdrawal
# ---------------------------------------------------------------------------


async def test_user_delete_is_staged_and_keeps_counting(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "400", ADMIN_HEADERS)

    resp = await async_client.delete(
        f"{BASE}/transactions/{txn['id']}",
        params={"request_message": "Duplicate entry"},
        headers=USER_HEADERS,
    )
    assert resp.status_code == 200
    staged = resp.json()
    assert staged["approval_status"] == "pending-delete"
    assert staged["request_message"] == "Duplicate entry"
    assert await _total_expense(async_client) == Decimal("400")

    resp = await _approve(async_client, "transaction", txn["id"])
    assert resp.status_code == 200
    assert resp.json() == {"deleted": True, "id": txn["id"]}
    assert await _total_expense(async_client) == Decimal("0")
    resp = await async_client.get(f"{BASE}/transactions/{txn['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_rejected_delete_leaves_row_in_place(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "400", ADMIN_HEADERS)
    await async_client.delete(f"{BASE}/transactions/{txn['id']}", headers=USER_HEADERS)

    resp = await _reject(async_client, "transaction", txn["id"], remarks="Not a duplicate")
    assert resp.status_code == 200
    assert resp.json()["rejected_status"] == "pending-delete"
    resp = await async_client.get(f"{BASE}/transactions/{txn['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200


async def test_admin_delete_is_physical(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "400", ADMIN_HEADERS)
    resp = await async_client.delete(f"{BASE}/transactions/{txn['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["deleted"] is True
    assert await _total_expense(async_client) == Decimal("0")


async def test_submitter_withdraws_own_pending_create(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "75", USER_HEADERS)

    resp = await async_client.delete(f"{BASE}/transactions/{txn['id']}", headers=USER_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"deleted": True, "id": txn["id"]}
    resp = await async_client.get(f"{BASE}/transactions/{txn['id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404


async def test_submitter_withdraws_own_rejected_create(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "75", USER_HEADERS)
    await _reject(async_client, "transaction", txn["id"])

    resp = await async_client.delete(f"{BASE}/transactions/{txn['id']}", headers=USER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["deleted"] is True


async def test_other_user_cannot_withdraw(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "75", USER_HEADERS)

    resp = await async_client.delete(f"{BASE}/transactions/{txn['id']}", headers=OTHER_USER_HEADERS)
    assert resp.status_code == 409
    resp = await async_client.get(f"{BASE}/transactions/{txn['id']}", headers=ADMIN_HEADERS)
    assert resp.json()["approval_status"] == "pending-create"


# ---------------------------------------------------------------------------
# Queue, listing, notifications and audit
# ---------------------------------------------------------------------------


async def test_pending_queue_groups_and_projects_edits(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    edited = await _create_transaction(async_client, site, "500", ADMIN_HEADERS)
    await async_client.put(f"{BASE}/transactions/{edited['id']}", json={"amount": "800"}, headers=USER_HEADERS)
    await _create_transaction(async_client, site, "20", USER_HEADERS)
    await async_client.post(
        f"{BASE}/tasks",
        json={"project_id": site["project_id"], "title": "Curing"},
        headers=USER_HEADERS,
    )

    resp = await async_client.get(f"{BASE}/approvals", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert set(data["groups"]) == {"transaction", "task"}

    by_id = {item["id"]: item for item in data["groups"]["transaction"]}
    item = by_id[edited["id"]]
    assert item["approval_status"] == "pending-edit"
    assert Decimal(item["current"]["amount"]) == Decimal("500")
    assert Decimal(item["proposed"]["amount"]) == Decimal("800")


async def test_list_filters_by_approval_status(async_client: AsyncClient) -> None:
    site = await _setup_site(async_client)
    await _create_transaction(async_client, site, "10", ADMIN_HEADERS)
    await _create_transaction(async_client, site, "20", USER_HEADERS)

    resp = await async_client.get(
        f"{BASE}/transactions",
        params={"approval_status": "pending-create"},
        headers=ADMIN_HEADERS,
    )
    data = resp.json()
    assert data["total"] == 1
    assert Decimal(data["items"][0]["amount"]) == Decimal("20")

    resp = await async_client.get(f"{BASE}/transactions", headers=ADMIN_HEADERS)
    assert resp.json()["total"] == 2


async def test_notifications_follow_the_workflow(
    async_client: AsyncClient,
    notifications: InMemoryNotificationSink,
) -> None:
    site = await _setup_site(async_client)
    assert notifications.messages == []

    txn = await _create_transaction(async_client, site, "35", USER_HEADERS)
    submitted = notifications.messages[-1]
    assert submitted.type == NotificationType.SUBMITTED
    assert submitted.user_id is None
    assert submitted.item_id == uuid.UUID(txn["id"])
    assert submitted.message.startswith("Ravi requested to add")

    await _reject(async_client, "transaction", txn["id"], remarks="Blurry bill")
    rejected = notifications.messages[-1]
    assert rejected.type == NotificationType.REJECTED
    assert rejected.user_id == USER_ID
    assert "Blurry bill" in rejected.message

    await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "36"}, headers=USER_HEADERS)
    await _approve(async_client, "transaction", txn["id"])
    approved = notifications.messages[-1]
    assert approved.type == NotificationType.APPROVED
    assert approved.user_id == USER_ID


async def test_admin_writes_do_not_notify(
    async_client: AsyncClient,
    notifications: InMemoryNotificationSink,
) -> None:
    site = await _setup_site(async_client)
    await _create_transaction(async_client, site, "35", ADMIN_HEADERS)
    assert notifications.messages == []


async def test_workflow_is_audited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    site = await _setup_site(async_client)
    txn = await _create_transaction(async_client, site, "35", USER_HEADERS)
    await async_client.put(f"{BASE}/transactions/{txn['id']}", json={"amount": "36"}, headers=USER_HEADERS)
    await _approve(async_client, "transaction", txn["id"])

    result = await db_session.execute(
        select(AuditLog).where(col(AuditLog.entity_id) == uuid.UUID(txn["id"]))
    )
    entries = result.scalars().all()
    assert {e.action for e in entries} == {"REQUEST_CREATE", "APPROVE"}
    assert {e.actor_id for e in entries} == {USER_ID, ADMIN_ID}
    assert all(e.entity_type == "transaction" for e in entries)
