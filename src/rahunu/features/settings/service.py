import logging
from typing import List, Optional

from fastapi import HTTPException, status
from tortoise.transactions import in_transaction

from ..audit.models import AuditAction
from ..audit.service import record_audit
from ..auth.models import User as AuthUser
from .models import SettingCategory, SystemSetting
from .schemas import SettingCreate, SettingUpdate

logger = logging.getLogger(__name__)


async def list_settings(category: Optional[SettingCategory] = None, active_only: bool = False) -> List[SystemSetting]:
    query = SystemSetting.all()
    if category:
        query = query.filter(category=category)
    if active_only:
        query = query.filter(is_active=True)
    return await query


async def get_setting(setting_public_id: str) -> SystemSetting:
    setting = await SystemSetting.get_or_none(public_id=setting_public_id)
    if setting is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
    return setting


async def create_setting(setting_in: SettingCreate, current_user: AuthUser) -> SystemSetting:
    """
    Adds a value to a reference-data category.

    Args:
        setting_in: Category, value and optional display name and sort order.
        current_user: The administrator making the change.

    Returns:
        The new setting. Its display name falls back to the value.
    """
    if await SystemSetting.exists(category=setting_in.category, value=setting_in.value):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A setting with this value already exists in this category",
        )
    async with in_transaction() as conn:
        setting = await SystemSetting.create(
            category=setting_in.category,
            value=setting_in.value,
            display_name=setting_in.display_name or setting_in.value,
            sort_order=setting_in.sort_order,
            using_db=conn,
        )
        await record_audit(
            AuditAction.SETTINGS_UPDATED,
            actor_id=current_user.id,
            details={"action": "create", "category": setting.category.value, "value": setting.value},
            using_db=conn,
        )
    logger.info(f"Setting {setting} created by {current_user.username}")
    return setting


async def update_setting(setting_public_id: str, setting_in: SettingUpdate, current_user: AuthUser) -> SystemSetting:
    setting = await get_setting(setting_public_id)
    update_data = setting_in.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No changes provided")

    for key, value in update_data.items():
        setattr(setting, key, value)
    async with in_transaction() as conn:
        await setting.save(using_db=conn, update_fields=[*update_data, "updated_at"])
        await record_audit(
            AuditAction.SETTINGS_UPDATED,
            actor_id=current_user.id,
            details={"action": "update", "setting_id": setting.public_id, "changes": update_data},
            using_db=conn,
        )
    return setting


async def delete_setting(setting_public_id: str, current_user: AuthUser) -> None:
    # Entries store the value as text, so existing entries are unaffected
    setting = await get_setting(setting_public_id)
    async with in_transaction() as conn:
        await setting.delete(using_db=conn)
        await record_audit(
            AuditAction.SETTINGS_UPDATED,
            actor_id=current_user.id,
            details={"action": "delete", "category": setting.category.value, "value": setting.value},
            using_db=conn,
        )
    logger.info(f"Setting {setting} deleted by {current_user.username}")
