import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import SettingCategory


class SettingCreate(BaseModel):
    category: SettingCategory
    value: str = Field(..., min_length=1, max_length=120, description="Stored on entries, e.g. S.Hithadhoo")
    display_name: Optional[str] = Field(None, max_length=120, description="Defaults to the value")
    sort_order: int = Field(default=0, ge=0)

    @field_validator("value")
    @classmethod
    def strip_value(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("value must not be blank")
        return value


class SettingUpdate(BaseModel):
    # category and value are fixed once entries may reference them
    display_name: Optional[str] = Field(None, min_length=1, max_length=120)
    is_active: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)


class SettingResponse(BaseModel):
    public_id: str
    category: SettingCategory
    value: str
    display_name: Optional[str] = None
    is_active: bool
    sort_order: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
