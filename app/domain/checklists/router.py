"""Checklist router - FastAPI endpoints for checklists, images and check-ins"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from .schemas import (
    ChecklistCreate,
    ChecklistImageResponse,
    ChecklistResponse,
    ChecklistUpdate,
    CheckinSessionCreate,
    CheckinSessionResponse,
    CheckinSessionUpdate,
    DeleteImageRequest,
    ImageByUrlCreate,
    ImageUpdate,
    ReplaceImageRequest,
    SurveyResponseCreate,
    SurveyResponseResponse,
)
from .service import ChecklistService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}", tags=["Checklists"])


def get_checklist_service(db: Session = Depends(get_db)) -> ChecklistService:
    """Dependency injection for ChecklistService"""
    return ChecklistService(db)


# ============================================================================
# CHECKLISTS
# ============================================================================


@router.get("/checklists", response_model=list[ChecklistResponse])
async def list_checklists(
    checklist_type: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.list_checklists(access.organization.id, checklist_type)


@router.post("/checklists", response_model=ChecklistResponse)
async def create_checklist(
    data: ChecklistCreate,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.create_checklist(access.organization.id, data)


@router.get("/checklists/{checklist_id}", response_model=ChecklistResponse)
async def get_checklist(
    checklist_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.get_checklist(access.organization.id, checklist_id)


@router.patch("/checklists/{checklist_id}", response_model=ChecklistResponse)
async def update_checklist(
    checklist_id: str,
    data: ChecklistUpdate,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.update_checklist(access.organization.id, checklist_id, data)


@router.delete("/checklists/{checklist_id}")
async def delete_checklist(
    checklist_id: str,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    service.delete_checklist(access.organization.id, checklist_id)
    return {"message": "Checklist deleted"}


# ============================================================================
# IMAGE LIBRARY
# ============================================================================


@router.get("/checklist-images", response_model=list[ChecklistImageResponse])
async def list_images(
    search: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.list_images(access.organization.id, search)


@router.post("/checklist-images/upload", response_model=ChecklistImageResponse)
async def upload_image(
    file: UploadFile = File(...),
    marker_name: Optional[str] = Form(None),
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    contents = await file.read()
    return service.upload_image(
        access.organization.id, access, contents, file.filename, file.content_type, marker_name
    )


@router.post("/checklist-images", response_model=ChecklistImageResponse)
async def add_image_by_url(
    data: ImageByUrlCreate,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.add_image_by_url(access.organization.id, data, access)


@router.post("/checklist-images/recount")
async def update_usage_counts(
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.update_usage_counts(access.organization.id)


@router.get("/checklist-images/usage")
async def get_image_usage(
    image_url: str = Query(...),
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.get_image_usage(access.organization.id, image_url)


@router.post("/checklist-images/replace")
async def replace_image_globally(
    data: ReplaceImageRequest,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.replace_image_globally(
        access.organization.id, data.old_image_url, data.new_image_url
    )


@router.post("/checklist-images/delete")
async def delete_image_safely(
    data: DeleteImageRequest,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.delete_image_safely(access.organization.id, data.image_url, data.force)


@router.patch("/checklist-images/{image_id}", response_model=ChecklistImageResponse)
async def update_image(
    image_id: str,
    data: ImageUpdate,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.update_image(access.organization.id, image_id, data)


# ============================================================================
# CHECK-INS AND SURVEYS
# ============================================================================


@router.get("/checkins", response_model=list[CheckinSessionResponse])
async def list_sessions(
    family_group: Optional[str] = Query(None),
    session_type: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.list_sessions(access.organization.id, family_group, session_type)


@router.post("/checkins", response_model=CheckinSessionResponse)
async def create_session(
    data: CheckinSessionCreate,
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.create_session(access.organization.id, data, access)


@router.patch("/checkins/{session_id}", response_model=CheckinSessionResponse)
async def update_session(
    session_id: str,
    data: CheckinSessionUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.update_session(access.organization.id, session_id, data)


@router.post("/checkins/{session_id}/complete", response_model=CheckinSessionResponse)
async def complete_session(
    session_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.complete_session(access.organization.id, session_id)


@router.get("/surveys", response_model=list[SurveyResponseResponse])
async def list_survey_responses(
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.list_survey_responses(access.organization.id)


@router.post("/surveys", response_model=SurveyResponseResponse)
async def add_survey_response(
    data: SurveyResponseCreate,
    access: OrgAccess = Depends(require_org_role()),
    service: ChecklistService = Depends(get_checklist_service),
):
    return service.add_survey_response(access.organization.id, data, access)


__all__ = ["router"]
