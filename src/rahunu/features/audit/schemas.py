import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from .models import AuditAction


class AuditEntity(str, Enum):
    USER = "user"
    ENTRY = "entry"


class AuditUserRef(BaseModel):
    public_id: str
    username: str
    email: str


class AuditEntryRef(BaseModel):
    public_id: str
    number: int
    agreement_number: str


class AuditLogResponse(BaseModel):
    public_id: str
    action: AuditAction
    actor: Optional[AuditUserRef] = None
    target_user: Optional[AuditUserRef] = None
    target_entry: Optional[AuditEntryRef] = None
    details: Optional[Any] = None
    created_at: datetime.datetime
