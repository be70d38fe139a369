import pytest
from fastapi import status
from httpx import AsyncClient

from rahunu.features.audit.models import AuditAction, AuditLog
from rahunu.features.settings.models import SettingCategory, SystemSetting

SETTINGS_URL = "/api/v1/settings"


async def add_setting(category: SettingCategory, value: str, sort_order: int = 0, is_active: bool = True):
    return await SystemSetting.create(category=category, value=value, sort_order=sort_order, is_active=is_active)


@pytest.mark.asyncio
async def test_admin_creates_setting_and_it_is_audited(admin_client: AsyncClient):
    response = await admin_client.post(f"{SETTINGS_URL}/", json={"category": "ISLAND", "value": "  S.Hithadhoo "})

    assert response.status_code == status.HTTP_201_CREATED, response.text
    data = response.json()
    assert data["value"] == "S.Hithadhoo"
    assert data["display_name"] == "S.Hithadhoo"
    assert data["is_active"] is True

    log = await AuditLog.get(action=AuditAction.SETTINGS_UPDATED)
    assert log.details == {"action": "create", "category": "ISLAND", "value": "S.Hithadhoo"}


@pytest.mark.asyncio
async def test_duplicate_value_in_same_category_is_rejected(admin_client: AsyncClient):
    await add_setting(SettingCategory.BANK_BRANCH, "Branch A")

    response = await admin_client.post(f"{SETTINGS_URL}/", json={"category": "BANK_BRANCH", "value": "Branch A"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await admin_client.post(f"{SETTINGS_URL}/", json={"category": "REGION", "value": "Branch A"})
    assert response.status_code == status.HTTP_201_CREATED


@pytest.mark.asyncio
async def test_every_role_lists_settings_by_category(viewer_client: AsyncClient):
    await add_setting(SettingCategory.ISLAND, "Male'", sort_order=2)
    await add_setting(SettingCategory.ISLAND, "Addu", sort_order=2)
    await add_setting(SettingCategory.ISLAND, "S.Hithadhoo", sort_order=1)
    await add_setting(SettingCategory.ISLAND, "Fuvahmulah", is_active=False)
    await add_setting(SettingCategory.BANK_BRANCH, "Branch A")

    response = await viewer_client.get(f"{SETTINGS_URL}/", params={"category": "ISLAND"})
    assert response.status_code == status.HTTP_200_OK
    assert [item["value"] for item in response.json()] == ["Fuvahmulah", "S.Hithadhoo", "Addu", "Male'"]

    response = await viewer_client.get(f"{SETTINGS_URL}/", params={"category": "ISLAND", "active_only": True})
    assert [item["value"] for item in response.json()] == ["S.Hithadhoo", "Addu", "Male'"]


@pytest.mark.asyncio
async def test_update_and_delete_setting(admin_client: AsyncClient):
    setting = await add_setting(SettingCategory.ISLAND, "Addu")

    response = await admin_client.patch(
        f"{SETTINGS_URL}/{setting.public_id}", json={"display_name": "Addu City", "is_active": False}
    )
    assert response.status_code == status.HTTP_200_OK, response.text
    assert response.json()["display_name"] == "Addu City"
    assert response.json()["is_active"] is False

    response = await admin_client.patch(f"{SETTINGS_URL}/{setting.public_id}", json={})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await admin_client.delete(f"{SETTINGS_URL}/{setting.public_id}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert not await SystemSetting.exists(id=setting.id)

    response = await admin_client.delete(f"{SETTINGS_URL}/{setting.public_id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND

    logs = await AuditLog.filter(action=AuditAction.SETTINGS_UPDATED).order_by("id")
    details = [log.details for log in logs]
    assert [d["action"] for d in details] == ["update", "delete"]
    assert details[0]["changes"] == {"display_name": "Addu City", "is_active": False}


@pytest.mark.asyncio
async def test_only_admins_change_settings(data_entry_client: AsyncClient):
    setting = await add_setting(SettingCategory.ISLAND, "Addu")

    response = await data_entry_client.post(f"{SETTINGS_URL}/", json={"category": "ISLAND", "value": "Male'"})
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await data_entry_client.patch(f"{SETTINGS_URL}/{setting.public_id}", json={"sort_order": 3})
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await data_entry_client.delete(f"{SETTINGS_URL}/{setting.public_id}")
    assert response.status_code == status.HTTP_403_FORBIDDEN
