import logging
from typing import Any, List, Optional

from tortoise.backends.base.client import BaseDBAsyncClient

from ..auth.models import User
from .models import AuditAction, AuditLog
from .schemas import AuditEntity, AuditEntryRef, AuditLogResponse, AuditUserRef

logger = logging.getLogger(__name__)


async def record_audit(
    action: AuditAction,
    actor_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    target_entry_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    using_db: Optional[BaseDBAsyncClient] = None,
) -> AuditLog:
    """Appends one row to the audit trail.

    Pass ``using_db`` from inside ``in_transaction()`` so the audit row commits
    or rolls back together with the change it describes.
    """
    log = await AuditLog.create(
        action=action,
        actor_id=actor_id,
        target_user_id=target_user_id,
        target_entry_id=target_entry_id,
        details=details,
        using_db=using_db,
    )
    logger.debug(f"Audit {action.value} recorded (actor={actor_id}, entry={target_entry_id}, user={target_user_id})")
    return log


async def list_audit_logs(
    action: Optional[AuditAction] = None,
    entity: Optional[AuditEntity] = None,
    target: Optional[str] = None,
    limit: int = 100,
) -> List[AuditLog]:
    """Most recent audit rows first, optionally narrowed to one action or target.

    ``entity`` keeps only rows about users or about entries; ``target`` is the
    public id of that user or entry and is ignored without ``entity``.
    """
    query = AuditLog.all()
    if action:
        query = query.filter(action=action)
    if entity == AuditEntity.USER:
        query = query.filter(target_user_id__isnull=False)
        if target:
            query = query.filter(target_user__public_id=target)
    elif entity == AuditEntity.ENTRY:
        query = query.filter(target_entry_id__isnull=False)
        if target:
            query = query.filter(target_entry__public_id=target)
    return await query.order_by("-created_at", "-id").limit(limit).prefetch_related(
        "actor", "target_user", "target_entry"
    )


def _user_ref(user: Optional[User]) -> Optional[AuditUserRef]:
    if user is None:
        return None
    return AuditUserRef(public_id=user.public_id, username=user.username, email=user.email)


def to_audit_log_response(log: AuditLog) -> AuditLogResponse:
    # actor, target_user and target_entry must be prefetched
    entry = log.target_entry
    return AuditLogResponse(
        public_id=log.public_id,
        action=log.action,
        actor=_user_ref(log.actor),
        target_user=_user_ref(log.target_user),
        target_entry=(
            AuditEntryRef(public_id=entry.public_id, number=entry.number, agreement_number=entry.agreement_number)
            if entry
            else None
        ),
        details=log.details,
        created_at=log.created_at,
    )
