"""Financial repository - Data access layer for settings, payments, bills and receipts"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_financial import Payment, Receipt, RecurringBill, ReservationSettings


class FinancialRepository:
    """Repository for financial data access"""

    @staticmethod
    def get_settings(db: Session, org_id: str) -> Optional[ReservationSettings]:
        return (
            db.query(ReservationSettings)
            .filter(ReservationSettings.organization_id == org_id)
            .first()
        )

    # ========================================================================
    # PAYMENTS
    # ========================================================================

    @staticmethod
    def list_payments(
        db: Session,
        org_id: str,
        family_group: Optional[str] = None,
        status: Optional[str] = None,
        reservation_id: Optional[str] = None,
    ) -> list[Payment]:
        query = db.query(Payment).filter(Payment.organization_id == org_id)
        if family_group:
            query = query.filter(Payment.family_group == family_group)
        if status:
            query = query.filter(Payment.status == status)
        if reservation_id:
            query = query.filter(Payment.reservation_id == reservation_id)
        return query.order_by(Payment.due_date.asc(), Payment.created_at.desc()).all()

    @staticmethod
    def get_payment(db: Session, org_id: str, payment_id: str) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.organization_id == org_id, Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def list_overdue(db: Session, org_id: str, today: date) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(
                Payment.organization_id == org_id,
                Payment.due_date.isnot(None),
                Payment.due_date < today,
                Payment.status.notin_(("paid", "cancelled", "refunded")),
            )
            .order_by(Payment.due_date.asc())
            .all()
        )

    # ========================================================================
    # RECURRING BILLS
    # ========================================================================

    @staticmethod
    def list_bills(db: Session, org_id: str) -> list[RecurringBill]:
        return (
            db.query(RecurringBill)
            .filter(RecurringBill.organization_id == org_id)
            .order_by(RecurringBill.name.asc())
            .all()
        )

    @staticmethod
    def get_bill(db: Session, org_id: str, bill_id: str) -> Optional[RecurringBill]:
        return (
            db.query(RecurringBill)
            .filter(RecurringBill.organization_id == org_id, RecurringBill.id == bill_id)
            .first()
        )

    # ========================================================================
    # RECEIPTS
    # ========================================================================

    @staticmethod
    def list_receipts(
        db: Session, org_id: str, family_group: Optional[str] = None
    ) -> list[Receipt]:
        query = db.query(Receipt).filter(Receipt.organization_id == org_id)
        if family_group:
            query = query.filter(Receipt.family_group == family_group)
        return query.order_by(Receipt.date.desc()).all()

    @staticmethod
    def get_receipt(db: Session, org_id: str, receipt_id: str) -> Optional[Receipt]:
        return (
            db.query(Receipt)
            .filter(Receipt.organization_id == org_id, Receipt.id == receipt_id)
            .first()
        )
