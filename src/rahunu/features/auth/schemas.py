"""Request and response shapes for user accounts and access tokens.

Accounts are provisioned by administrators, so there is no self-service
sign-up schema. Passwords only ever travel inbound."""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .models import Role


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.\-]+$")
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=120)

    @field_validator("full_name")
    @classmethod
    def blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        return (value.strip() or None) if value else None


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    role: Role = Role.VIEWER
    is_active: bool = True


class UserUpdate(BaseModel):
    """Administrative changes to an existing account; at least one must be given."""
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    reset_password: Optional[str] = Field(None, min_length=8)

    @model_validator(mode="after")
    def require_a_change(self) -> "UserUpdate":
        if self.role is None and self.is_active is None and not self.reset_password:
            raise ValueError("No changes provided")
        return self


class UserResponse(UserBase):
    public_id: str
    role: Role
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
