import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from pydantic_core import to_jsonable_python
from tortoise.expressions import Q
from tortoise.transactions import in_transaction

from ..audit.models import AuditAction, AuditLog
from ..audit.service import record_audit
from ..auth.models import User as AuthUser
from .models import Borrower, EntryStatus, RegistryEntry
from .schemas import BorrowerSchema, EntryCreateSchema, EntryPublicSchema, EntryUpdateSchema

logger = logging.getLogger(__name__)


async def get_entry_by_public_id(entry_public_id: str, include_deleted: bool = False) -> RegistryEntry:
    query = RegistryEntry.filter(public_id=entry_public_id)
    if not include_deleted:
        query = query.filter(is_deleted=False)
    entry = await query.prefetch_related("borrowers").first()
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Entry {entry_public_id} not found.")
    return entry


async def list_entries(
    page: int,
    size: int,
    status_filter: Optional[EntryStatus] = None,
    island: Optional[str] = None,
    branch: Optional[str] = None,
    search: Optional[str] = None,
    deleted: bool = False,
) -> List[RegistryEntry]:
    offset = (page - 1) * size
    query = RegistryEntry.filter(is_deleted=deleted)
    if status_filter:
        query = query.filter(status=status_filter)
    if island:
        query = query.filter(island=island)
    if branch:
        query = query.filter(branch=branch)
    if search and search.strip():
        term = search.strip()
        query = query.filter(
            Q(agreement_number__icontains=term) | Q(borrowers__full_name__icontains=term)
        ).distinct()
    return await query.order_by("-agreement_date", "number").offset(offset).limit(size).prefetch_related("borrowers")


async def create_entry(entry_data: EntryCreateSchema, current_user: AuthUser) -> RegistryEntry:
    async with in_transaction() as conn:
        number = entry_data.number or await RegistryEntry.next_number(using_db=conn)
        if await RegistryEntry.filter(number=number).using_db(conn).exists():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Registry number {number} is already used.")

        entry = await RegistryEntry.create(
            number=number,
            **entry_data.model_dump(exclude={"number", "borrowers"}),
            created_by=current_user,
            updated_by=current_user,
            using_db=conn,
        )
        for borrower in entry_data.borrowers:
            await Borrower.create(
                entry=entry, full_name=borrower.full_name, national_id=borrower.national_id, using_db=conn
            )
        await record_audit(
            AuditAction.ENTRY_CREATED,
            actor_id=current_user.id,
            target_entry_id=entry.id,
            details={"number": entry.number, "agreement_number": entry.agreement_number},
            using_db=conn,
        )

    logger.info(f"Entry #{entry.number} created by {current_user.username}")
    return await RegistryEntry.get(id=entry.id).prefetch_related("borrowers")


async def view_entry(entry_public_id: str, current_user: AuthUser, view_context: str = "view") -> RegistryEntry:
    """Fetches a live entry and records who looked at it, and from where."""
    entry = await get_entry_by_public_id(entry_public_id)
    await record_audit(
        AuditAction.ENTRY_VIEWED,
        actor_id=current_user.id,
        target_entry_id=entry.id,
        details={"number": entry.number, "agreement_number": entry.agreement_number, "view_context": view_context},
    )
    return entry


def _diff_entry(entry: RegistryEntry, changes: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    # Compared as Python values, so Decimal("5") and Decimal("5.00") are equal
    return {
        field: {"from": to_jsonable_python(getattr(entry, field)), "to": to_jsonable_python(value)}
        for field, value in changes.items()
        if getattr(entry, field) != value
    }


async def update_entry(entry_public_id: str, entry_data: EntryUpdateSchema, current_user: AuthUser) -> RegistryEntry:
    """
    Replaces a live entry's fields and borrowers.

    The audit row holds a ``{field: {from, to}}`` diff of the entry's own
    fields; borrower changes are not diffed.

    Raises:
        HTTPException: 404 for unknown or deleted entries, 400 when the new
            registry number is taken.
    """
    entry = await get_entry_by_public_id(entry_public_id)
    changes = entry_data.model_dump(exclude={"borrowers"})
    if changes["number"] is None:
        changes["number"] = entry.number
    diffs = _diff_entry(entry, changes)

    async with in_transaction() as conn:
        if "number" in diffs and await RegistryEntry.filter(number=changes["number"]).using_db(conn).exists():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=f"Registry number {changes['number']} is already used."
            )
        for field, value in changes.items():
            setattr(entry, field, value)
        entry.updated_by_id = current_user.id
        await entry.save(using_db=conn)

        await Borrower.filter(entry_id=entry.id).using_db(conn).delete()
        for borrower in entry_data.borrowers:
            await Borrower.create(
                entry=entry, full_name=borrower.full_name, national_id=borrower.national_id, using_db=conn
            )
        await record_audit(
            AuditAction.ENTRY_UPDATED,
            actor_id=current_user.id,
            target_entry_id=entry.id,
            details={"changes": diffs},
            using_db=conn,
        )

    logger.info(f"Entry #{entry.number} updated by {current_user.username} ({', '.join(diffs) or 'no field changes'})")
    return await RegistryEntry.get(id=entry.id).prefetch_related("borrowers")


async def soft_delete_entry(entry_public_id: str, current_user: AuthUser) -> RegistryEntry:
    entry = await get_entry_by_public_id(entry_public_id)
    async with in_transaction() as conn:
        entry.mark_deleted()
        entry.updated_by_id = current_user.id
        await entry.save(using_db=conn, update_fields=[*entry.SOFT_DELETE_FIELDS, "updated_by_id", "updated_at"])
        await record_audit(
            AuditAction.ENTRY_DELETED,
            actor_id=current_user.id,
            target_entry_id=entry.id,
            details={"number": entry.number},
            using_db=conn,
        )
    return entry


async def restore_entry(entry_public_id: str, current_user: AuthUser) -> RegistryEntry:
    entry = await get_entry_by_public_id(entry_public_id, include_deleted=True)
    if not entry.is_deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Entry is not deleted.")
    async with in_transaction() as conn:
        entry.mark_restored()
        entry.updated_by_id = current_user.id
        await entry.save(using_db=conn, update_fields=[*entry.SOFT_DELETE_FIELDS, "updated_by_id", "updated_at"])
        await record_audit(
            AuditAction.ENTRY_RESTORED,
            actor_id=current_user.id,
            target_entry_id=entry.id,
            details={"number": entry.number},
            using_db=conn,
        )
    return entry


async def purge_entry(entry_public_id: str, current_user: AuthUser) -> None:
    """Permanently removes a soft-deleted entry and its borrowers.

    Its audit history is kept but detached; the final audit row records the
    number and agreement it had.
    """
    entry = await get_entry_by_public_id(entry_public_id, include_deleted=True)
    if not entry.is_deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Entry must be soft-deleted first.")
    async with in_transaction() as conn:
        await AuditLog.filter(target_entry_id=entry.id).using_db(conn).update(target_entry_id=None)
        await record_audit(
            AuditAction.ENTRY_DELETED,
            actor_id=current_user.id,
            details={
                "permanently_deleted": True,
                "number": entry.number,
                "agreement_number": entry.agreement_number,
                "borrowers_count": len(entry.borrowers),
            },
            using_db=conn,
        )
        await Borrower.filter(entry_id=entry.id).using_db(conn).delete()
        await entry.delete(using_db=conn)
    logger.info(f"Entry #{entry.number} permanently deleted by {current_user.username}")


def to_entry_public_schema(entry: RegistryEntry) -> EntryPublicSchema:
    # borrowers must be prefetched
    return EntryPublicSchema(
        public_id=entry.public_id,
        number=entry.number,
        address=entry.address,
        island=entry.island,
        branch=entry.branch,
        form_number=entry.form_number,
        agreement_number=entry.agreement_number,
        agreement_date=entry.agreement_date,
        status=entry.status,
        loan_amount=entry.loan_amount,
        date_of_cancelled=entry.date_of_cancelled,
        date_of_completed=entry.date_of_completed,
        borrowers=[BorrowerSchema.model_validate(b) for b in entry.borrowers],
        is_deleted=entry.is_deleted,
        deleted_at=entry.deleted_at,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )
