"""Shared note service"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_content import SharedNote
from ...utils.sanitization import sanitize_html, sanitize_plain_text
from .schemas import NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)


class NoteService:
    def __init__(self, db: Session):
        self.db = db

    def list_notes(
        self, org_id: str, search: Optional[str] = None, category: Optional[str] = None
    ) -> list[SharedNote]:
        """Pinned notes first, then newest"""
        query = self.db.query(SharedNote).filter(SharedNote.organization_id == org_id)
        if category:
            query = query.filter(SharedNote.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(SharedNote.title.ilike(pattern), SharedNote.content.ilike(pattern)))
        return query.order_by(SharedNote.is_pinned.desc(), SharedNote.created_at.desc()).all()

    def get_note(self, org_id: str, note_id: str) -> SharedNote:
        note = (
            self.db.query(SharedNote)
            .filter(SharedNote.organization_id == org_id, SharedNote.id == note_id)
            .first()
        )
        if not note:
            raise HTTPException(status_code=404, detail="Note not found")
        return note

    def create_note(self, org_id: str, data: NoteCreate, access: OrgAccess) -> SharedNote:
        note = SharedNote(
            organization_id=org_id,
            title=sanitize_plain_text(data.title),
            content=sanitize_html(data.content) or "",
            category=data.category,
            priority=data.priority,
            is_pinned=data.is_pinned,
            tags=data.tags,
            created_by_user_id=access.user.id,
        )
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        logger.info(f"📝 Note created: {note.title}")
        return note

    def update_note(self, org_id: str, note_id: str, data: NoteUpdate, access: OrgAccess) -> SharedNote:
        note = self.get_note(org_id, note_id)
        if note.created_by_user_id != access.user.id and not access.is_admin:
            raise HTTPException(status_code=403, detail="You can only edit your own notes")
        updates = data.model_dump(exclude_unset=True)
        if "title" in updates:
            updates["title"] = sanitize_plain_text(updates["title"])
        if "content" in updates:
            updates["content"] = sanitize_html(updates["content"]) or ""
        for key, value in updates.items():
            setattr(note, key, value)
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete_note(self, org_id: str, note_id: str, access: OrgAccess) -> None:
        note = self.get_note(org_id, note_id)
        if note.created_by_user_id != access.user.id and not access.is_admin:
            raise HTTPException(status_code=403, detail="You can only delete your own notes")
        self.db.delete(note)
        self.db.commit()
