"""Rotation repository - Database operations for rotation orders, usage and selection rounds"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_rotation import (
    RotationOrder,
    SelectionPeriodExtension,
    SelectionRoundStatus,
    SelectionTurnNotification,
    TimePeriodUsage,
)


class RotationRepository:
    """Repository for rotation database operations"""

    @staticmethod
    def get_rotation_order(db: Session, org_id: str, year: int) -> Optional[RotationOrder]:
        return (
            db.query(RotationOrder)
            .filter(RotationOrder.organization_id == org_id, RotationOrder.rotation_year == year)
            .first()
        )

    @staticmethod
    def get_base_rotation_order(db: Session, org_id: str, year: int) -> Optional[RotationOrder]:
        """Latest configured order at or before the year, else the earliest one after it"""
        earlier = (
            db.query(RotationOrder)
            .filter(RotationOrder.organization_id == org_id, RotationOrder.rotation_year <= year)
            .order_by(RotationOrder.rotation_year.desc())
            .first()
        )
        if earlier:
            return earlier
        return (
            db.query(RotationOrder)
            .filter(RotationOrder.organization_id == org_id)
            .order_by(RotationOrder.rotation_year.asc())
            .first()
        )

    @staticmethod
    def list_rotation_orders(db: Session, org_id: str) -> list[RotationOrder]:
        return (
            db.query(RotationOrder)
            .filter(RotationOrder.organization_id == org_id)
            .order_by(RotationOrder.rotation_year.desc())
            .all()
        )

    @staticmethod
    def save(db: Session, obj):
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    @staticmethod
    def get_usage(db: Session, org_id: str, year: int, family_group: str) -> Optional[TimePeriodUsage]:
        return (
            db.query(TimePeriodUsage)
            .filter(
                TimePeriodUsage.organization_id == org_id,
                TimePeriodUsage.rotation_year == year,
                TimePeriodUsage.family_group == family_group,
            )
            .first()
        )

    @staticmethod
    def list_usage(db: Session, org_id: str, year: int) -> list[TimePeriodUsage]:
        return (
            db.query(TimePeriodUsage)
            .filter(TimePeriodUsage.organization_id == org_id, TimePeriodUsage.rotation_year == year)
            .all()
        )

    # ------------------------------------------------------------------
    # Selection rounds
    # ------------------------------------------------------------------

    @staticmethod
    def get_round(db: Session, org_id: str, year: int) -> Optional[SelectionRoundStatus]:
        return (
            db.query(SelectionRoundStatus)
            .filter(
                SelectionRoundStatus.organization_id == org_id,
                SelectionRoundStatus.rotation_year == year,
            )
            .first()
        )

    @staticmethod
    def list_active_rounds(db: Session) -> list[SelectionRoundStatus]:
        return (
            db.query(SelectionRoundStatus)
            .filter(SelectionRoundStatus.current_family_group.isnot(None))
            .all()
        )

    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------

    @staticmethod
    def get_extension(
        db: Session, org_id: str, year: int, family_group: str
    ) -> Optional[SelectionPeriodExtension]:
        return (
            db.query(SelectionPeriodExtension)
            .filter(
                SelectionPeriodExtension.organization_id == org_id,
                SelectionPeriodExtension.rotation_year == year,
                SelectionPeriodExtension.family_group == family_group,
            )
            .first()
        )

    @staticmethod
    def get_extension_by_id(db: Session, org_id: str, extension_id: str) -> Optional[SelectionPeriodExtension]:
        return (
            db.query(SelectionPeriodExtension)
            .filter(
                SelectionPeriodExtension.organization_id == org_id,
                SelectionPeriodExtension.id == extension_id,
            )
            .first()
        )

    @staticmethod
    def list_extensions(db: Session, org_id: str, year: Optional[int] = None) -> list[SelectionPeriodExtension]:
        query = db.query(SelectionPeriodExtension).filter(
            SelectionPeriodExtension.organization_id == org_id
        )
        if year is not None:
            query = query.filter(SelectionPeriodExtension.rotation_year == year)
        return query.order_by(SelectionPeriodExtension.extended_until.asc()).all()

    # ------------------------------------------------------------------
    # Sent notifications
    # ------------------------------------------------------------------

    @staticmethod
    def notification_already_sent(
        db: Session, org_id: str, year: int, family_group: str, phase: str
    ) -> bool:
        return (
            db.query(SelectionTurnNotification)
            .filter(
                SelectionTurnNotification.organization_id == org_id,
                SelectionTurnNotification.rotation_year == year,
                SelectionTurnNotification.family_group == family_group,
                SelectionTurnNotification.phase == phase,
            )
            .first()
            is not None
        )
