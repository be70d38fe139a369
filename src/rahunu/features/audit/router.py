from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_admin_user
from .models import AuditAction
from .schemas import AuditEntity, AuditLogResponse
from .service import list_audit_logs, to_audit_log_response

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/", response_model=List[AuditLogResponse])
async def read_audit_logs(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    action: Optional[AuditAction] = None,
    entity: Optional[AuditEntity] = None,
    target: Optional[str] = Query(None, description="Public id of the user or entry named by `entity`"),
    limit: int = Query(100, ge=1, le=200),
):
    logs = await list_audit_logs(action, entity, target, limit)
    return [to_audit_log_response(log) for log in logs]
