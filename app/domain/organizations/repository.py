"""Organization repository - Data access layer for organizations and memberships"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Organization, User, UserOrganization


class OrganizationRepository:
    """Repository for organization data access"""

    @staticmethod
    def get_by_id(db: Session, org_id: str) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.id == org_id).first()

    @staticmethod
    def get_by_code(db: Session, code: str) -> Optional[Organization]:
        return db.query(Organization).filter(Organization.code == code).first()

    @staticmethod
    def get_membership(db: Session, user_id: str, org_id: str) -> Optional[UserOrganization]:
        return (
            db.query(UserOrganization)
            .filter(
                UserOrganization.user_id == user_id,
                UserOrganization.organization_id == org_id,
            )
            .first()
        )

    @staticmethod
    def list_memberships(db: Session, user_id: str) -> list[UserOrganization]:
        return (
            db.query(UserOrganization)
            .options(joinedload(UserOrganization.organization))
            .filter(UserOrganization.user_id == user_id)
            .order_by(UserOrganization.is_primary.desc(), UserOrganization.joined_at.asc())
            .all()
        )

    @staticmethod
    def list_members(db: Session, org_id: str) -> list[tuple[UserOrganization, User]]:
        return (
            db.query(UserOrganization, User)
            .join(User, User.id == UserOrganization.user_id)
            .filter(UserOrganization.organization_id == org_id)
            .order_by(User.email.asc())
            .all()
        )

    @staticmethod
    def count_admins(db: Session, org_id: str) -> int:
        return (
            db.query(UserOrganization)
            .filter(
                UserOrganization.organization_id == org_id,
                UserOrganization.role == "admin",
            )
            .count()
        )
