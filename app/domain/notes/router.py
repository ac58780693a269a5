"""Shared note router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from .schemas import NoteCreate, NoteResponse, NoteUpdate
from .service import NoteService

router = APIRouter(prefix="/organizations/{organization_id}/notes", tags=["Notes"])


def get_note_service(db: Session = Depends(get_db)) -> NoteService:
    return NoteService(db)


@router.get("", response_model=list[NoteResponse])
async def list_notes(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: NoteService = Depends(get_note_service),
):
    return service.list_notes(access.organization.id, search, category)


@router.post("", response_model=NoteResponse)
async def create_note(
    data: NoteCreate,
    access: OrgAccess = Depends(require_org_role()),
    service: NoteService = Depends(get_note_service),
):
    return service.create_note(access.organization.id, data, access)


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: NoteService = Depends(get_note_service),
):
    return service.get_note(access.organization.id, note_id)


@router.patch("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: NoteService = Depends(get_note_service),
):
    return service.update_note(access.organization.id, note_id, data, access)


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: NoteService = Depends(get_note_service),
):
    service.delete_note(access.organization.id, note_id, access)
    return {"message": "Note deleted"}


__all__ = ["router"]
