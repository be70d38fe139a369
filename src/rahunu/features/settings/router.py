from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, status

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_admin_user, get_current_reader
from . import service
from .models import SettingCategory
from .schemas import SettingCreate, SettingResponse, SettingUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("/", response_model=List[SettingResponse], summary="List reference data")
async def list_settings(
    current_user: Annotated[AuthUser, Depends(get_current_reader)],
    category: Optional[SettingCategory] = None,
    active_only: bool = False,
):
    # Every role reads settings, the entry form needs them
    return await service.list_settings(category, active_only)


@router.post("/", response_model=SettingResponse, status_code=status.HTTP_201_CREATED, summary="Add a setting")
async def create_setting(
    setting_in: SettingCreate,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await service.create_setting(setting_in, current_admin)


@router.patch("/{setting_public_id}", response_model=SettingResponse, summary="Update a setting")
async def update_setting(
    setting_public_id: str,
    setting_in: SettingUpdate,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    return await service.update_setting(setting_public_id, setting_in, current_admin)


@router.delete("/{setting_public_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a setting")
async def delete_setting(
    setting_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
):
    await service.delete_setting(setting_public_id, current_admin)
    return None
