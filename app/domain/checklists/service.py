"""Checklist service - Checklists, the shared image library and check-in sessions"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_content import ChecklistImage, CheckinSession, CustomChecklist, SurveyResponse
from ...utils.sanitization import sanitize_filename, sanitize_plain_text
from ...utils.storage import IMAGE_CONTENT_TYPES, check_upload, delete_object, public_url, put_object
from .image_references import count_references, find_usage, rewrite_checklist
from .schemas import (
    ChecklistCreate,
    ChecklistUpdate,
    CheckinSessionCreate,
    CheckinSessionUpdate,
    ImageByUrlCreate,
    ImageUpdate,
    SurveyResponseCreate,
)

logger = logging.getLogger(__name__)


class ChecklistService:
    """Service layer for checklists and check-ins"""

    def __init__(self, db: Session):
        self.db = db

    # ========================================================================
    # CHECKLISTS
    # ========================================================================

    def _checklists(self, org_id: str) -> list[CustomChecklist]:
        return (
            self.db.query(CustomChecklist)
            .filter(CustomChecklist.organization_id == org_id)
            .order_by(CustomChecklist.checklist_type.asc())
            .all()
        )

    def list_checklists(self, org_id: str, checklist_type: Optional[str] = None) -> list[CustomChecklist]:
        checklists = self._checklists(org_id)
        if checklist_type:
            checklists = [c for c in checklists if c.checklist_type == checklist_type]
        return checklists

    def get_checklist(self, org_id: str, checklist_id: str) -> CustomChecklist:
        checklist = (
            self.db.query(CustomChecklist)
            .filter(CustomChecklist.organization_id == org_id, CustomChecklist.id == checklist_id)
            .first()
        )
        if not checklist:
            raise HTTPException(status_code=404, detail="Checklist not found")
        return checklist

    def create_checklist(self, org_id: str, data: ChecklistCreate) -> CustomChecklist:
        checklist = CustomChecklist(
            organization_id=org_id,
            checklist_type=data.checklist_type,
            items=[item.model_dump() for item in data.items],
            images=list(data.images),
        )
        self.db.add(checklist)
        self.db.flush()
        self._reconcile_usage_counts(org_id)
        self.db.commit()
        self.db.refresh(checklist)
        logger.info(f"✅ Checklist created: {checklist.checklist_type} ({len(checklist.items)} items)")
        return checklist

    def update_checklist(self, org_id: str, checklist_id: str, data: ChecklistUpdate) -> CustomChecklist:
        checklist = self.get_checklist(org_id, checklist_id)
        if data.checklist_type is not None:
            checklist.checklist_type = data.checklist_type.strip().lower()
        if data.items is not None:
            checklist.items = [item.model_dump() for item in data.items]
        if data.images is not None:
            checklist.images = list(data.images)
        self.db.flush()
        self._reconcile_usage_counts(org_id)
        self.db.commit()
        self.db.refresh(checklist)
        return checklist

    def delete_checklist(self, org_id: str, checklist_id: str) -> None:
        checklist = self.get_checklist(org_id, checklist_id)
        self.db.delete(checklist)
        self.db.flush()
        self._reconcile_usage_counts(org_id)
        self.db.commit()
        logger.info(f"🗑️ Checklist {checklist_id} deleted")

    # ========================================================================
    # IMAGE LIBRARY
    # ========================================================================

    def _reconcile_usage_counts(self, org_id: str) -> int:
        counts = count_references(self._checklists(org_id))
        images = self.db.query(ChecklistImage).filter(ChecklistImage.organization_id == org_id).all()
        for image in images:
            image.usage_count = counts.get(image.image_url, 0)
        return len(images)

    def update_usage_counts(self, org_id: str) -> dict:
        """Recount every library image across the organization's checklists"""
        updated = self._reconcile_usage_counts(org_id)
        self.db.commit()
        logger.info(f"🔢 Recounted usage for {updated} image(s) in org {org_id}")
        return {"success": True, "images_updated": updated}

    def list_images(self, org_id: str, search: Optional[str] = None) -> list[ChecklistImage]:
        images = (
            self.db.query(ChecklistImage)
            .filter(ChecklistImage.organization_id == org_id)
            .order_by(ChecklistImage.created_at.desc())
            .all()
        )
        if search:
            term = search.lower()
            images = [
                i
                for i in images
                if term in (i.original_filename or "").lower() or term in (i.marker_name or "").lower()
            ]
        return images

    def get_image(self, org_id: str, image_id: str) -> ChecklistImage:
        image = (
            self.db.query(ChecklistImage)
            .filter(ChecklistImage.organization_id == org_id, ChecklistImage.id == image_id)
            .first()
        )
        if not image:
            raise HTTPException(status_code=404, detail="Image not found")
        return image

    def _get_image_by_url(self, org_id: str, image_url: str) -> Optional[ChecklistImage]:
        return (
            self.db.query(ChecklistImage)
            .filter(ChecklistImage.organization_id == org_id, ChecklistImage.image_url == image_url)
            .first()
        )

    def _add_image(self, org_id: str, access: OrgAccess, **fields) -> ChecklistImage:
        image = ChecklistImage(organization_id=org_id, uploaded_by_user_id=access.user.id, **fields)
        self.db.add(image)
        self.db.flush()
        self._reconcile_usage_counts(org_id)
        self.db.commit()
        self.db.refresh(image)
        logger.info(f"🖼️ Image added to library: {image.original_filename}")
        return image

    def upload_image(
        self,
        org_id: str,
        access: OrgAccess,
        contents: bytes,
        filename: str,
        content_type: Optional[str],
        marker_name: Optional[str] = None,
    ) -> ChecklistImage:
        check_upload(contents, content_type, IMAGE_CONTENT_TYPES)
        safe_name = sanitize_filename(filename)
        key = put_object(
            f"{org_id}/checklist-images/{uuid.uuid4().hex}_{safe_name}", contents, content_type
        )
        return self._add_image(
            org_id,
            access,
            image_url=public_url(key),
            storage_key=key,
            original_filename=safe_name,
            marker_name=sanitize_plain_text(marker_name),
            file_size=len(contents),
            content_type=content_type,
        )

    def add_image_by_url(self, org_id: str, data: ImageByUrlCreate, access: OrgAccess) -> ChecklistImage:
        if self._get_image_by_url(org_id, data.image_url):
            raise HTTPException(status_code=409, detail="Image is already in the library")
        return self._add_image(
            org_id,
            access,
            image_url=data.image_url,
            original_filename=sanitize_filename(data.original_filename),
            marker_name=sanitize_plain_text(data.marker_name),
            file_size=data.file_size,
            content_type=data.content_type,
        )

    def update_image(self, org_id: str, image_id: str, data: ImageUpdate) -> ChecklistImage:
        image = self.get_image(org_id, image_id)
        if data.marker_name is not None:
            image.marker_name = sanitize_plain_text(data.marker_name)
        if data.original_filename is not None:
            image.original_filename = sanitize_filename(data.original_filename)
        self.db.commit()
        self.db.refresh(image)
        return image

    def get_image_usage(self, org_id: str, image_url: str) -> list[dict]:
        return find_usage(self._checklists(org_id), image_url)

    def replace_image_globally(self, org_id: str, old_image_url: str, new_image_url: str) -> dict:
        """Point every reference to ``old_image_url`` at ``new_image_url``"""
        if old_image_url == new_image_url:
            raise HTTPException(status_code=422, detail="Old and new image URLs are the same")
        affected = []
        try:
            for checklist in self._checklists(org_id):
                if rewrite_checklist(checklist, old_image_url, new_image_url):
                    affected.append(checklist.id)
            self.db.flush()
            self._reconcile_usage_counts(org_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Image replacement failed in org {org_id}: {str(e)}")
            raise
        logger.info(f"🔁 Replaced image in {len(affected)} checklist(s)")
        return {"success": True, "affected_checklists": len(affected), "checklist_ids": affected}

    def delete_image_safely(self, org_id: str, image_url: str, force: bool = False) -> dict:
        """
        Delete a library image. An image still referenced by checklists is only
        deleted with ``force``, which also strips the references.
        """
        image = self._get_image_by_url(org_id, image_url)
        if not image:
            raise HTTPException(status_code=404, detail="Image not found")

        usage_count = count_references(self._checklists(org_id)).get(image_url, 0)
        if usage_count and not force:
            return {
                "success": False,
                "requires_force": True,
                "usage_count": usage_count,
                "error": f"Image is used in {usage_count} place(s)",
            }

        storage_key = image.storage_key
        try:
            for checklist in self._checklists(org_id):
                rewrite_checklist(checklist, image_url, None)
            self.db.delete(image)
            self.db.flush()
            self._reconcile_usage_counts(org_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Image deletion failed in org {org_id}: {str(e)}")
            raise

        if storage_key:
            delete_object(storage_key)
        logger.info(f"🗑️ Image deleted from library: {image_url} (was used {usage_count}x)")
        return {"success": True, "removed_references": usage_count}

    # ========================================================================
    # CHECK-IN SESSIONS
    # ========================================================================

    def list_sessions(
        self, org_id: str, family_group: Optional[str] = None, session_type: Optional[str] = None
    ) -> list[CheckinSession]:
        query = self.db.query(CheckinSession).filter(CheckinSession.organization_id == org_id)
        if family_group:
            query = query.filter(CheckinSession.family_group == family_group)
        if session_type:
            query = query.filter(CheckinSession.session_type == session_type)
        return query.order_by(CheckinSession.check_date.desc()).all()

    def get_session(self, org_id: str, session_id: str) -> CheckinSession:
        session = (
            self.db.query(CheckinSession)
            .filter(CheckinSession.organization_id == org_id, CheckinSession.id == session_id)
            .first()
        )
        if not session:
            raise HTTPException(status_code=404, detail="Check-in session not found")
        return session

    def create_session(self, org_id: str, data: CheckinSessionCreate, access: OrgAccess) -> CheckinSession:
        session = CheckinSession(
            organization_id=org_id,
            user_id=access.user.id,
            family_group=data.family_group or access.user.family_group,
            check_date=data.check_date,
            session_type=data.session_type,
            checklist_responses=data.checklist_responses,
            guest_names=data.guest_names,
            notes=sanitize_plain_text(data.notes),
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def update_session(self, org_id: str, session_id: str, data: CheckinSessionUpdate) -> CheckinSession:
        session = self.get_session(org_id, session_id)
        if session.completed_at:
            raise HTTPException(status_code=409, detail="Check-in session is already completed")
        if data.checklist_responses is not None:
            session.checklist_responses = data.checklist_responses
        if data.guest_names is not None:
            session.guest_names = data.guest_names
        if data.notes is not None:
            session.notes = sanitize_plain_text(data.notes)
        self.db.commit()
        self.db.refresh(session)
        return session

    def complete_session(
        self, org_id: str, session_id: str, now: Optional[datetime] = None
    ) -> CheckinSession:
        session = self.get_session(org_id, session_id)
        if not session.completed_at:
            session.completed_at = now or datetime.utcnow()
            self.db.commit()
            self.db.refresh(session)
            logger.info(f"✅ Check-in session {session.id} completed")
        return session

    def add_survey_response(
        self, org_id: str, data: SurveyResponseCreate, access: OrgAccess
    ) -> SurveyResponse:
        response = SurveyResponse(
            organization_id=org_id,
            user_id=access.user.id,
            family_group=data.family_group or access.user.family_group,
            responses=data.responses,
        )
        self.db.add(response)
        self.db.commit()
        self.db.refresh(response)
        return response

    def list_survey_responses(self, org_id: str) -> list[SurveyResponse]:
        return (
            self.db.query(SurveyResponse)
            .filter(SurveyResponse.organization_id == org_id)
            .order_by(SurveyResponse.created_at.desc())
            .all()
        )
