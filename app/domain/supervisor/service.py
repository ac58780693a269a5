"""Supervisor service - Cross-organization oversight and bulk operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import (
    BulkOperationAudit,
    FamilyGroup,
    Organization,
    Supervisor,
    User,
    UserOrganization,
)
from ...models_reservation import Reservation
from ...shared.org_tables import ORGANIZATION_SCOPED_MODELS
from ..family_groups.repository import FamilyGroupRepository
from .schemas import LeadUpdate, SupervisorCreate

logger = logging.getLogger(__name__)


class SupervisorService:
    """Service layer for supervisor operations"""

    def __init__(self, db: Session):
        self.db = db

    def _audit(
        self, operation_type: str, org_id: str, user: User, records_affected: int, details: dict
    ) -> BulkOperationAudit:
        entry = BulkOperationAudit(
            operation_type=operation_type,
            organization_id=org_id,
            performed_by_user_id=user.id,
            records_affected=records_affected,
            details=details,
        )
        self.db.add(entry)
        return entry

    def _get_org(self, org_id: str) -> Organization:
        organization = self.db.query(Organization).filter(Organization.id == org_id).first()
        if not organization:
            raise HTTPException(status_code=404, detail="Organization not found")
        return organization

    # ========================================================================
    # ORGANIZATIONS
    # ========================================================================

    def list_organizations(self) -> list[dict]:
        def counts(model) -> dict[str, int]:
            rows = (
                self.db.query(model.organization_id, func.count(model.id))
                .group_by(model.organization_id)
                .all()
            )
            return dict(rows)

        group_counts = counts(FamilyGroup)
        reservation_counts = counts(Reservation)
        member_counts = counts(UserOrganization)

        return [
            {
                "id": org.id,
                "name": org.name,
                "code": org.code,
                "admin_name": org.admin_name,
                "admin_email": org.admin_email,
                "alternate_supervisor_email": org.alternate_supervisor_email,
                "family_group_count": group_counts.get(org.id, 0),
                "reservation_count": reservation_counts.get(org.id, 0),
                "member_count": member_counts.get(org.id, 0),
                "created_at": org.created_at,
            }
            for org in self.db.query(Organization).order_by(Organization.name.asc()).all()
        ]

    def update_alternate_supervisor(self, org_id: str, email: Optional[str]) -> Organization:
        organization = self._get_org(org_id)
        organization.alternate_supervisor_email = email
        self.db.commit()
        self.db.refresh(organization)
        logger.info(f"✅ Alternate supervisor for {organization.code} set to {email}")
        return organization

    def delete_organization_data(self, org_id: str, user: User) -> dict:
        """Remove every organization-scoped row and then the organization itself"""
        organization = self._get_org(org_id)
        deleted: dict[str, int] = {}
        try:
            for model in ORGANIZATION_SCOPED_MODELS:
                count = (
                    self.db.query(model)
                    .filter(model.organization_id == org_id)
                    .delete(synchronize_session=False)
                )
                if count:
                    deleted[model.__tablename__] = count
            deleted["user_organizations"] = (
                self.db.query(UserOrganization)
                .filter(UserOrganization.organization_id == org_id)
                .delete(synchronize_session=False)
            )
            self.db.delete(organization)
            total = sum(deleted.values()) + 1
            self._audit(
                "delete_organization_data",
                org_id,
                user,
                total,
                {"organization_name": organization.name, "deleted": deleted},
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to delete organization {org_id}: {str(e)}")
            raise

        logger.info(f"🗑️ Organization {organization.name} deleted by {user.email} ({total} rows)")
        return {"success": True, "organization_id": org_id, "records_deleted": total, "deleted": deleted}

    # ========================================================================
    # BULK OPERATIONS
    # ========================================================================

    def bulk_update_leads(self, org_id: str, updates: list[LeadUpdate], user: User) -> dict:
        self._get_org(org_id)
        updated, missing = [], []
        try:
            for update in updates:
                group = FamilyGroupRepository.get_by_name(self.db, org_id, update.family_group)
                if not group:
                    missing.append(update.family_group)
                    continue
                for key, value in update.model_dump(exclude_unset=True, exclude={"family_group"}).items():
                    setattr(group, key, value)
                updated.append(group.name)
            self._audit(
                "bulk_update_leads", org_id, user, len(updated), {"updated": updated, "not_found": missing}
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Bulk lead update failed for {org_id}: {str(e)}")
            raise

        logger.info(f"✅ Bulk lead update for {org_id}: {len(updated)} updated, {len(missing)} not found")
        return {
            "operation_type": "bulk_update_leads",
            "records_affected": len(updated),
            "details": {"updated": updated, "not_found": missing},
        }

    def bulk_reassign_members(
        self, org_id: str, member_emails: list[str], family_group: str, user: User
    ) -> dict:
        self._get_org(org_id)
        if not FamilyGroupRepository.get_by_name(self.db, org_id, family_group):
            raise HTTPException(status_code=404, detail="Family group not found")

        members = (
            self.db.query(User)
            .join(UserOrganization, UserOrganization.user_id == User.id)
            .filter(
                UserOrganization.organization_id == org_id,
                func.lower(User.email).in_(member_emails),
            )
            .all()
        )
        found = {m.email.lower() for m in members}
        try:
            for member in members:
                member.family_group = family_group
            details = {
                "family_group": family_group,
                "reassigned": sorted(found),
                "not_found": [e for e in member_emails if e not in found],
            }
            self._audit("bulk_reassign_members", org_id, user, len(members), details)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Bulk reassignment failed for {org_id}: {str(e)}")
            raise

        logger.info(f"✅ Reassigned {len(members)} member(s) to {family_group} in {org_id}")
        return {
            "operation_type": "bulk_reassign_members",
            "records_affected": len(members),
            "details": details,
        }

    def list_audit_entries(self, org_id: Optional[str] = None) -> list[BulkOperationAudit]:
        query = self.db.query(BulkOperationAudit)
        if org_id:
            query = query.filter(BulkOperationAudit.organization_id == org_id)
        return query.order_by(BulkOperationAudit.created_at.desc()).all()

    # ========================================================================
    # SUPERVISORS
    # ========================================================================

    def list_supervisors(self) -> list[Supervisor]:
        return self.db.query(Supervisor).order_by(Supervisor.email.asc()).all()

    def add_supervisor(self, data: SupervisorCreate) -> Supervisor:
        if self.db.query(Supervisor).filter(Supervisor.email == data.email).first():
            raise HTTPException(status_code=409, detail="Supervisor already exists")
        supervisor = Supervisor(email=data.email, name=data.name, is_active=True)
        self.db.add(supervisor)
        self.db.commit()
        self.db.refresh(supervisor)
        logger.info(f"✅ Supervisor added: {supervisor.email}")
        return supervisor

    def toggle_supervisor(self, supervisor_id: str, current_user: User) -> Supervisor:
        supervisor = self.db.query(Supervisor).filter(Supervisor.id == supervisor_id).first()
        if not supervisor:
            raise HTTPException(status_code=404, detail="Supervisor not found")
        if supervisor.email == (current_user.email or "").lower() and supervisor.is_active:
            raise HTTPException(status_code=409, detail="You cannot deactivate yourself")
        supervisor.is_active = not supervisor.is_active
        self.db.commit()
        self.db.refresh(supervisor)
        logger.info(f"🔁 Supervisor {supervisor.email} active={supervisor.is_active}")
        return supervisor
