"""Reservation repository - Database operations for reservations"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_reservation import Reservation


class ReservationRepository:
    """Repository for reservation database operations"""

    @staticmethod
    def list_reservations(
        db: Session,
        org_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        family_group: Optional[str] = None,
        status: Optional[str] = None,
        property_name: Optional[str] = None,
    ) -> list[Reservation]:
        query = db.query(Reservation).filter(Reservation.organization_id == org_id)
        if start_date:
            query = query.filter(Reservation.end_date > start_date)
        if end_date:
            query = query.filter(Reservation.start_date < end_date)
        if family_group:
            query = query.filter(Reservation.family_group == family_group)
        if status:
            query = query.filter(Reservation.status == status)
        if property_name:
            query = query.filter(Reservation.property_name == property_name)
        return query.order_by(Reservation.start_date.asc()).all()

    @staticmethod
    def get_by_id(db: Session, org_id: str, reservation_id: str) -> Optional[Reservation]:
        return (
            db.query(Reservation)
            .filter(Reservation.organization_id == org_id, Reservation.id == reservation_id)
            .first()
        )

    @staticmethod
    def find_conflicts(
        db: Session,
        org_id: str,
        start_date: date,
        end_date: date,
        property_name: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> list[Reservation]:
        """Confirmed stays overlapping the range; check-out day may equal check-in day"""
        query = db.query(Reservation).filter(
            Reservation.organization_id == org_id,
            Reservation.status == "confirmed",
            Reservation.start_date < end_date,
            Reservation.end_date > start_date,
        )
        if property_name:
            query = query.filter(Reservation.property_name == property_name)
        if exclude_id:
            query = query.filter(Reservation.id != exclude_id)
        return query.order_by(Reservation.start_date.asc()).all()

    @staticmethod
    def find_group_reservation_overlapping(
        db: Session, org_id: str, family_group: str, start_date: date, end_date: date
    ) -> Optional[Reservation]:
        return (
            db.query(Reservation)
            .filter(
                Reservation.organization_id == org_id,
                Reservation.family_group == family_group,
                Reservation.status != "cancelled",
                Reservation.start_date < end_date,
                Reservation.end_date > start_date,
            )
            .order_by(Reservation.start_date.asc())
            .first()
        )
