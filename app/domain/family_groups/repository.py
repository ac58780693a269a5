"""Family group repository - Database operations for family groups"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import FamilyGroup, NotificationLog, User, UserOrganization
from ...models_content import CheckinSession
from ...models_financial import Payment, Receipt
from ...models_reservation import Reservation, TradeRequest
from ...models_rotation import (
    RotationOrder,
    SelectionPeriodExtension,
    SelectionRoundStatus,
    SelectionTurnNotification,
    TimePeriodUsage,
)

# (model, column name) pairs holding a family group name
FAMILY_GROUP_NAME_COLUMNS = [
    (Reservation, "family_group"),
    (TimePeriodUsage, "family_group"),
    (Payment, "family_group"),
    (Receipt, "family_group"),
    (SelectionPeriodExtension, "family_group"),
    (SelectionRoundStatus, "current_family_group"),
    (SelectionTurnNotification, "family_group"),
    (TradeRequest, "requester_family_group"),
    (TradeRequest, "target_family_group"),
    (CheckinSession, "family_group"),
    (NotificationLog, "family_group"),
]


class FamilyGroupRepository:
    """Repository for family group database operations"""

    @staticmethod
    def list_groups(db: Session, org_id: str) -> list[FamilyGroup]:
        return (
            db.query(FamilyGroup)
            .filter(FamilyGroup.organization_id == org_id)
            .order_by(FamilyGroup.name.asc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, org_id: str, group_id: str) -> Optional[FamilyGroup]:
        return (
            db.query(FamilyGroup)
            .filter(FamilyGroup.organization_id == org_id, FamilyGroup.id == group_id)
            .first()
        )

    @staticmethod
    def get_by_name(db: Session, org_id: str, name: str) -> Optional[FamilyGroup]:
        return (
            db.query(FamilyGroup)
            .filter(FamilyGroup.organization_id == org_id, FamilyGroup.name == name)
            .first()
        )

    @staticmethod
    def create(db: Session, org_id: str, **data) -> FamilyGroup:
        group = FamilyGroup(organization_id=org_id, **data)
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def update(db: Session, group: FamilyGroup, **updates) -> FamilyGroup:
        for key, value in updates.items():
            if hasattr(group, key):
                setattr(group, key, value)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def delete(db: Session, group: FamilyGroup) -> None:
        db.delete(group)
        db.commit()

    @staticmethod
    def cascade_rename(db: Session, org_id: str, old_name: str, new_name: str) -> dict:
        """Rewrite the group name everywhere it is stored. Does not commit."""
        counts = {}
        for model, column_name in FAMILY_GROUP_NAME_COLUMNS:
            column = getattr(model, column_name)
            updated = (
                db.query(model)
                .filter(model.organization_id == org_id, column == old_name)
                .update({column_name: new_name}, synchronize_session=False)
            )
            key = f"{model.__tablename__}.{column_name}"
            counts[key] = counts.get(key, 0) + updated

        # Rotation orders store names inside a JSON list
        renamed_orders = 0
        for order in db.query(RotationOrder).filter(RotationOrder.organization_id == org_id).all():
            names = order.rotation_order or []
            if old_name in names:
                order.rotation_order = [new_name if n == old_name else n for n in names]
                renamed_orders += 1
        counts["rotation_orders.rotation_order"] = renamed_orders

        # Profiles that declared membership of the old group
        member_ids = [
            user_id
            for (user_id,) in db.query(UserOrganization.user_id)
            .filter(UserOrganization.organization_id == org_id)
            .all()
        ]
        counts["users.family_group"] = 0
        if member_ids:
            counts["users.family_group"] = (
                db.query(User)
                .filter(User.family_group == old_name, User.id.in_(member_ids))
                .update({"family_group": new_name}, synchronize_session=False)
            )
        return counts
