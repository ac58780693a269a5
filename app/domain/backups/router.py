"""Backup router - Create, list, download and restore organization backups"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import OrgAccess, get_supervisor_user, require_org_role
from ...database import get_db
from ...models import User
from .service import BackupService

router = APIRouter(tags=["Backups"])


class BackupResponse(BaseModel):
    id: str
    organization_id: str
    backup_type: str
    file_path: str
    file_size: Optional[int]
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class RestoreRequest(BaseModel):
    confirm: bool = False


def get_backup_service(db: Session = Depends(get_db)) -> BackupService:
    return BackupService(db)


@router.get("/organizations/{organization_id}/backups", response_model=list[BackupResponse])
async def list_backups(
    access: OrgAccess = Depends(require_org_role("admin")),
    service: BackupService = Depends(get_backup_service),
):
    return service.list_backups(access.organization.id)


@router.post("/organizations/{organization_id}/backups")
async def create_backup(
    access: OrgAccess = Depends(require_org_role("admin")),
    service: BackupService = Depends(get_backup_service),
):
    return service.create_organization_backup(
        access.organization.id, backup_type="manual", user_id=access.user.id
    )


@router.get("/organizations/{organization_id}/backups/{backup_id}/download")
async def download_backup(
    backup_id: str,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: BackupService = Depends(get_backup_service),
):
    return {"url": service.download_url(access.organization.id, backup_id)}


@router.post("/organizations/{organization_id}/backups/{backup_id}/restore")
async def restore_backup(
    backup_id: str,
    data: RestoreRequest,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: BackupService = Depends(get_backup_service),
):
    return service.restore_organization_backup(
        access.organization.id, backup_id, confirm=data.confirm, user_id=access.user.id
    )


@router.post("/supervisor/backups")
async def backup_all_organizations(
    current_user: User = Depends(get_supervisor_user),
    service: BackupService = Depends(get_backup_service),
):
    return service.create_organization_backup(None, backup_type="manual", user_id=current_user.id)


__all__ = ["router"]
