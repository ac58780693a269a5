"""Organization service - Creating, joining and managing organizations"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import OrgAccess, is_supervisor
from ...models import Organization, User, UserOrganization
from .repository import OrganizationRepository
from .schemas import OrganizationCreate, OrganizationUpdate

logger = logging.getLogger(__name__)


class OrganizationService:
    """Service layer for organization business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrganizationRepository()

    def _add_membership(self, user: User, organization: Organization, role: str) -> UserOrganization:
        has_primary = any(m.is_primary for m in self.repo.list_memberships(self.db, user.id))
        membership = UserOrganization(
            user_id=user.id,
            organization_id=organization.id,
            role=role,
            is_primary=not has_primary,
        )
        self.db.add(membership)
        return membership

    def create_organization(self, data: OrganizationCreate, user: User) -> Organization:
        """Create an organization; the creator becomes its admin"""
        if self.repo.get_by_code(self.db, data.code):
            raise HTTPException(status_code=409, detail=f"Organization code '{data.code}' is already in use")

        organization = Organization(**data.model_dump())
        if not organization.admin_email:
            organization.admin_email = user.email
        try:
            self.db.add(organization)
            self.db.flush()
            self._add_membership(user, organization, "admin")
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=f"Organization code '{data.code}' is already in use")

        self.db.refresh(organization)
        logger.info(f"✅ Organization created: {organization.name} ({organization.code}) by {user.email}")
        return organization

    def join_organization(self, code: str, user: User, role: str = "member") -> UserOrganization:
        """Join by code. Joining an organization twice returns the existing membership."""
        organization = self.repo.get_by_code(self.db, code)
        if not organization:
            logger.warning(f"⚠️ Join attempt with unknown organization code: {code}")
            raise HTTPException(status_code=404, detail="Organization not found. Please check the code.")

        existing = self.repo.get_membership(self.db, user.id, organization.id)
        if existing:
            logger.info(f"ℹ️ {user.email} is already a member of {organization.code}")
            return existing

        if role != "member" and not is_supervisor(self.db, user):
            raise HTTPException(
                status_code=403, detail="Only the member role can be requested when joining"
            )

        membership = self._add_membership(user, organization, role)
        self.db.commit()
        self.db.refresh(membership)
        logger.info(f"✅ {user.email} joined {organization.code} as {role}")
        return membership

    def list_user_organizations(self, user: User) -> list[UserOrganization]:
        return self.repo.list_memberships(self.db, user.id)

    def set_primary_organization(self, org_id: str, user: User) -> UserOrganization:
        memberships = self.repo.list_memberships(self.db, user.id)
        target = next((m for m in memberships if m.organization_id == org_id), None)
        if not target:
            raise HTTPException(status_code=404, detail="You are not a member of this organization")
        for membership in memberships:
            membership.is_primary = membership.organization_id == org_id
        self.db.commit()
        self.db.refresh(target)
        return target

    def get_organization(self, org_id: str) -> Organization:
        organization = self.repo.get_by_id(self.db, org_id)
        if not organization:
            raise HTTPException(status_code=404, detail="Organization not found")
        return organization

    def update_organization(self, org_id: str, data: OrganizationUpdate) -> Organization:
        organization = self.get_organization(org_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(organization, key, value)
        self.db.commit()
        self.db.refresh(organization)
        logger.info(f"✅ Organization {organization.code} updated")
        return organization

    def leave_organization(self, org_id: str, user: User) -> None:
        membership = self.repo.get_membership(self.db, user.id, org_id)
        if not membership:
            raise HTTPException(status_code=404, detail="You are not a member of this organization")
        if membership.role == "admin" and self.repo.count_admins(self.db, org_id) <= 1:
            raise HTTPException(
                status_code=409,
                detail="The last admin cannot leave. Assign another admin first.",
            )

        was_primary = membership.is_primary
        self.db.delete(membership)
        self.db.flush()
        if was_primary:
            remaining = self.repo.list_memberships(self.db, user.id)
            if remaining:
                remaining[0].is_primary = True
        self.db.commit()
        logger.info(f"👋 {user.email} left organization {org_id}")

    def list_members(self, org_id: str) -> list[dict]:
        return [
            {
                "user_id": user.id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "display_name": user.display_name,
                "family_group": user.family_group,
                "role": membership.role,
                "is_primary": membership.is_primary,
            }
            for membership, user in self.repo.list_members(self.db, org_id)
        ]

    def update_member_role(self, org_id: str, user_id: str, role: str, access: OrgAccess) -> dict:
        membership = self.repo.get_membership(self.db, user_id, org_id)
        if not membership:
            raise HTTPException(status_code=404, detail="Member not found")
        if (
            membership.role == "admin"
            and role != "admin"
            and self.repo.count_admins(self.db, org_id) <= 1
        ):
            raise HTTPException(status_code=409, detail="An organization needs at least one admin")
        membership.role = role
        self.db.commit()
        logger.info(f"✅ {access.user.email} set role of {user_id} to {role} in {org_id}")
        return {"user_id": user_id, "role": role}
