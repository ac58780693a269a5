"""Organization router - FastAPI endpoints for organizations and memberships"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import OrgAccess, get_current_user, require_org_role
from ...database import get_db
from ...models import User, UserOrganization
from ...rate_limiter import create_rate_limiter
from .schemas import (
    JoinOrganizationRequest,
    MemberResponse,
    MemberRoleUpdate,
    MembershipResponse,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from .service import OrganizationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])

# 10 join attempts per IP per 15 minutes
rate_limit_join = create_rate_limiter(limit=10, window_seconds=900, key_prefix="org_join")


def get_organization_service(db: Session = Depends(get_db)) -> OrganizationService:
    """Dependency injection for OrganizationService"""
    return OrganizationService(db)


def _membership_response(membership: UserOrganization) -> MembershipResponse:
    return MembershipResponse(
        organization=OrganizationResponse.model_validate(membership.organization),
        role=membership.role,
        is_primary=membership.is_primary,
        joined_at=membership.joined_at,
    )


@router.post("", response_model=OrganizationResponse)
async def create_organization(
    data: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.create_organization(data, current_user)


@router.post("/join", response_model=MembershipResponse)
async def join_organization(
    data: JoinOrganizationRequest,
    _: None = Depends(rate_limit_join),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    return _membership_response(service.join_organization(data.code, current_user, data.role))


@router.get("/mine", response_model=list[MembershipResponse])
async def list_my_organizations(
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    return [_membership_response(m) for m in service.list_user_organizations(current_user)]


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(access: OrgAccess = Depends(require_org_role())):
    return access.organization


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    data: OrganizationUpdate,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.update_organization(access.organization.id, data)


@router.post("/{organization_id}/primary", response_model=MembershipResponse)
async def set_primary_organization(
    organization_id: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    return _membership_response(service.set_primary_organization(organization_id, current_user))


@router.post("/{organization_id}/leave")
async def leave_organization(
    organization_id: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
):
    service.leave_organization(organization_id, current_user)
    return {"message": "You have left the organization"}


@router.get("/{organization_id}/members", response_model=list[MemberResponse])
async def list_members(
    access: OrgAccess = Depends(require_org_role()),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.list_members(access.organization.id)


@router.put("/{organization_id}/members/{user_id}/role")
async def update_member_role(
    user_id: str,
    data: MemberRoleUpdate,
    access: OrgAccess = Depends(require_org_role("admin")),
    service: OrganizationService = Depends(get_organization_service),
):
    return service.update_member_role(access.organization.id, user_id, data.role, access)


__all__ = ["router"]
