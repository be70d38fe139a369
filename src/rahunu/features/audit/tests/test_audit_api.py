import pytest
from fastapi import status
from httpx import AsyncClient

AUDIT_URL = "/api/v1/audit"
ENTRIES_URL = "/api/v1/entries"

ENTRY = {
    "address": "Sunset Villa (reg 2477)",
    "island": "S.Hithadhoo",
    "branch": "BML Hithadhoo Branch",
    "form_number": "41/2025",
    "agreement_number": "S2C-B/2025/31",
    "agreement_date": "2025-06-01",
    "status": "ONGOING",
    "loan_amount": "700000.00",
    "borrowers": [{"full_name": "Mariyam Mahaa Abdul Samad", "national_id": "A354960"}],
}


@pytest.mark.asyncio
async def test_admin_lists_entry_history_newest_first(admin_client: AsyncClient, data_entry_client: AsyncClient):
    created = await data_entry_client.post(f"{ENTRIES_URL}/", json=ENTRY)
    entry_id = created.json()["public_id"]
    await admin_client.get(f"{ENTRIES_URL}/{entry_id}")

    response = await admin_client.get(f"{AUDIT_URL}/", params={"entity": "entry", "target": entry_id})

    assert response.status_code == status.HTTP_200_OK
    logs = response.json()
    assert [log["action"] for log in logs] == ["ENTRY_VIEWED", "ENTRY_CREATED"]
    assert logs[0]["actor"]["username"] == "adminfixture"
    assert logs[1]["actor"]["username"] == "dataentryfixture"
    assert logs[1]["target_entry"] == {"public_id": entry_id, "number": 1, "agreement_number": "S2C-B/2025/31"}
    assert logs[1]["details"] == {"number": 1, "agreement_number": "S2C-B/2025/31"}


@pytest.mark.asyncio
async def test_filter_by_user_entity_and_action(admin_client: AsyncClient, data_entry_client: AsyncClient):
    await data_entry_client.post(f"{ENTRIES_URL}/", json=ENTRY)

    response = await admin_client.get(f"{AUDIT_URL}/", params={"entity": "user"})
    logs = response.json()
    assert {log["action"] for log in logs} == {"USER_SIGNED_IN"}
    assert {log["target_user"]["username"] for log in logs} == {"adminfixture", "dataentryfixture"}
    assert all(log["target_entry"] is None for log in logs)

    response = await admin_client.get(f"{AUDIT_URL}/", params={"action": "USER_SIGNED_IN", "limit": 1})
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_audit_log_is_admin_only(viewer_client: AsyncClient, admin_client: AsyncClient):
    response = await viewer_client.get(f"{AUDIT_URL}/")
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await admin_client.get(f"{AUDIT_URL}/", params={"limit": 500})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
