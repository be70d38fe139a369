from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional, Annotated

from ..auth.models import User as AuthUser
from ..auth.security import get_current_reader, get_current_writer, get_current_active_admin_user
from .models import EntryStatus, RegistryEntry
from .schemas import EntryCreateSchema, EntryPublicSchema, EntryUpdateSchema, NextNumberResponse
from .service import (
    create_entry, list_entries, purge_entry, restore_entry,
    soft_delete_entry, to_entry_public_schema, update_entry, view_entry
)

router = APIRouter(
    prefix="/entries",
    tags=["Registry Entries"],
)

@router.get("/", response_model=List[EntryPublicSchema])
async def list_registry_entries(
    current_user: Annotated[AuthUser, Depends(get_current_reader)],
    page: int = Query(1, ge=1), size: int = Query(20, ge=1, le=100),
    status_filter: Optional[EntryStatus] = Query(None, alias="status"),
    island: Optional[str] = None,
    branch: Optional[str] = None,
    query: Optional[str] = Query(None, description="Matches agreement number or borrower name"),
):
    entries = await list_entries(page, size, status_filter, island, branch, query)
    return [to_entry_public_schema(entry) for entry in entries]

@router.get("/deleted", response_model=List[EntryPublicSchema])
async def list_deleted_entries(
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)],
    page: int = Query(1, ge=1), size: int = Query(20, ge=1, le=100),
):
    entries = await list_entries(page, size, deleted=True)
    return [to_entry_public_schema(entry) for entry in entries]

@router.get("/next-number", response_model=NextNumberResponse)
async def get_next_number(current_user: Annotated[AuthUser, Depends(get_current_writer)]):
    return NextNumberResponse(next_number=await RegistryEntry.next_number())

@router.get("/{entry_public_id}", response_model=EntryPublicSchema)
async def get_registry_entry(
    entry_public_id: str,
    current_user: Annotated[AuthUser, Depends(get_current_reader)],
    context: str = Query("view", max_length=20, description="Where the entry is opened from, e.g. view or edit"),
):
    entry = await view_entry(entry_public_id, current_user, context)
    return to_entry_public_schema(entry)

@router.post("/", response_model=EntryPublicSchema, status_code=status.HTTP_201_CREATED)
async def create_registry_entry(
    entry_data: EntryCreateSchema,
    current_user: Annotated[AuthUser, Depends(get_current_writer)]
):
    entry = await create_entry(entry_data, current_user)
    return to_entry_public_schema(entry)

@router.put("/{entry_public_id}", response_model=EntryPublicSchema)
async def update_registry_entry(
    entry_public_id: str,
    entry_data: EntryUpdateSchema,
    current_user: Annotated[AuthUser, Depends(get_current_writer)]
):
    entry = await update_entry(entry_public_id, entry_data, current_user)
    return to_entry_public_schema(entry)

@router.delete("/{entry_public_id}", response_model=EntryPublicSchema)
async def delete_registry_entry(
    entry_public_id: str,
    current_user: Annotated[AuthUser, Depends(get_current_writer)]
):
    entry = await soft_delete_entry(entry_public_id, current_user)
    return to_entry_public_schema(entry)

@router.post("/{entry_public_id}/restore", response_model=EntryPublicSchema)
async def restore_registry_entry(
    entry_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)]
):
    entry = await restore_entry(entry_public_id, current_admin)
    return to_entry_public_schema(entry)

@router.delete("/{entry_public_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
async def purge_registry_entry(
    entry_public_id: str,
    current_admin: Annotated[AuthUser, Depends(get_current_active_admin_user)]
):
    await purge_entry(entry_public_id, current_admin)
    return None
