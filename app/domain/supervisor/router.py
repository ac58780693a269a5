"""Supervisor router - Cross-organization endpoints for supervisors"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_supervisor_user
from ...database import get_db
from ...models import User
from ..organizations.schemas import OrganizationResponse
from .schemas import (
    AlternateSupervisorUpdate,
    BulkLeadUpdateRequest,
    BulkOperationResult,
    BulkReassignRequest,
    OrganizationOverview,
    SupervisorCreate,
    SupervisorResponse,
)
from .service import SupervisorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/supervisor", tags=["Supervisor"])


def get_supervisor_service(db: Session = Depends(get_db)) -> SupervisorService:
    """Dependency injection for SupervisorService"""
    return SupervisorService(db)


@router.get("/organizations", response_model=list[OrganizationOverview])
async def list_organizations(
    _: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.list_organizations()


@router.put("/organizations/{organization_id}/alternate-supervisor", response_model=OrganizationResponse)
async def update_alternate_supervisor(
    organization_id: str,
    data: AlternateSupervisorUpdate,
    _: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.update_alternate_supervisor(organization_id, data.email)


@router.delete("/organizations/{organization_id}")
async def delete_organization_data(
    organization_id: str,
    current_user: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.delete_organization_data(organization_id, current_user)


@router.post("/organizations/{organization_id}/leads", response_model=BulkOperationResult)
async def bulk_update_leads(
    organization_id: str,
    data: BulkLeadUpdateRequest,
    current_user: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.bulk_update_leads(organization_id, data.updates, current_user)


@router.post("/organizations/{organization_id}/reassign-members", response_model=BulkOperationResult)
async def bulk_reassign_members(
    organization_id: str,
    data: BulkReassignRequest,
    current_user: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.bulk_reassign_members(
        organization_id, data.member_emails, data.family_group, current_user
    )


@router.get("/audit")
async def list_audit_entries(
    organization_id: Optional[str] = Query(None),
    _: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return [
        {
            "id": entry.id,
            "operation_type": entry.operation_type,
            "organization_id": entry.organization_id,
            "performed_by_user_id": entry.performed_by_user_id,
            "records_affected": entry.records_affected,
            "details": entry.details,
            "created_at": entry.created_at,
        }
        for entry in service.list_audit_entries(organization_id)
    ]


@router.get("/supervisors", response_model=list[SupervisorResponse])
async def list_supervisors(
    _: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.list_supervisors()


@router.post("/supervisors", response_model=SupervisorResponse)
async def add_supervisor(
    data: SupervisorCreate,
    _: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.add_supervisor(data)


@router.post("/supervisors/{supervisor_id}/toggle", response_model=SupervisorResponse)
async def toggle_supervisor(
    supervisor_id: str,
    current_user: User = Depends(get_supervisor_user),
    service: SupervisorService = Depends(get_supervisor_service),
):
    return service.toggle_supervisor(supervisor_id, current_user)


__all__ = ["router"]
