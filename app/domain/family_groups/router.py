"""Family group router - FastAPI endpoints for family groups"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from ...shared.validators import validate_hex_color
from .schemas import FamilyGroupCreate, FamilyGroupResponse, FamilyGroupUpdate, RenameRequest
from .service import FamilyGroupService, user_acts_for_group

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/family-groups", tags=["Family Groups"])


def get_family_group_service(db: Session = Depends(get_db)) -> FamilyGroupService:
    """Dependency injection for FamilyGroupService"""
    return FamilyGroupService(db)


class ColorUpdate(BaseModel):
    color: str

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)


@router.get("", response_model=list[FamilyGroupResponse])
async def list_family_groups(
    access: OrgAccess = Depends(require_org_role()),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    return service.list_groups(access.organization.id)


@router.post("", response_model=FamilyGroupResponse)
async def create_family_group(
    data: FamilyGroupCreate,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    return service.create_group(access.organization.id, data)


@router.get("/colors/available")
async def get_available_colors(
    access: OrgAccess = Depends(require_org_role()),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    return {"colors": service.available_colors(access.organization.id)}


@router.post("/colors/assign-defaults")
async def assign_default_colors(
    access: OrgAccess = Depends(require_org_role("admin")),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    return service.assign_default_colors(access.organization.id)


@router.post("/rename")
async def rename_family_group(
    data: RenameRequest,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    """Rename a group and carry the new name into all related records"""
    return service.rename_group(access.organization.id, data.old_name, data.new_name)


@router.get("/{group_id}", response_model=FamilyGroupResponse)
async def get_family_group(
    group_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    return service.get_group(access.organization.id, group_id)


@router.patch("/{group_id}", response_model=FamilyGroupResponse)
async def update_family_group(
    group_id: str,
    data: FamilyGroupUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: FamilyGroupService = Depends(get_family_group_service),
    db: Session = Depends(get_db),
):
    """Admins and calendar keepers may edit any group; leads and members their own"""
    group = service.get_group(access.organization.id, group_id)
    if not access.can_schedule and not user_acts_for_group(
        db, access.user, access.organization.id, group.name
    ):
        raise HTTPException(status_code=403, detail="You can only edit your own family group")
    return service.update_group(access.organization.id, group_id, data)


@router.put("/{group_id}/color", response_model=FamilyGroupResponse)
async def set_family_group_color(
    group_id: str,
    data: ColorUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: FamilyGroupService = Depends(get_family_group_service),
    db: Session = Depends(get_db),
):
    group = service.get_group(access.organization.id, group_id)
    if not access.can_schedule and not user_acts_for_group(
        db, access.user, access.organization.id, group.name
    ):
        raise HTTPException(status_code=403, detail="You can only change your own group's color")
    return service.set_color(access.organization.id, group_id, data.color)


@router.delete("/{group_id}")
async def delete_family_group(
    group_id: str,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: FamilyGroupService = Depends(get_family_group_service),
):
    service.delete_group(access.organization.id, group_id)
    return {"message": "Family group deleted"}


__all__ = ["router"]
