"""Financial service - Billing settings, payment tracking, bills and receipts"""

import logging
import uuid
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_financial import Payment, Receipt, RecurringBill, ReservationSettings
from ...models_reservation import Reservation
from ...utils.sanitization import sanitize_filename, sanitize_plain_text
from ...utils.storage import (
    IMAGE_CONTENT_TYPES,
    check_upload,
    delete_object,
    generate_presigned_url,
    put_object,
)
from ..family_groups.repository import FamilyGroupRepository
from .billing_calculator import (
    BillingConfig,
    BillingError,
    StayDetails,
    calculate_from_daily_occupancy,
    calculate_stay_billing,
    config_from_settings,
    validate_billing_config,
)
from .repository import FinancialRepository
from .schemas import (
    BillingCalculationRequest,
    PaymentCreate,
    PaymentUpdate,
    RecurringBillCreate,
    RecurringBillUpdate,
    ReceiptUpdate,
    ReservationSettingsUpsert,
)

logger = logging.getLogger(__name__)

STICKY_STATUSES = ("cancelled", "refunded")


def derive_payment_status(payment: Payment, today: date) -> str:
    """Status implied by the amounts and due date; cancelled and refunded never change"""
    if payment.status in STICKY_STATUSES:
        return payment.status
    amount_paid = payment.amount_paid or 0
    if amount_paid >= payment.amount:
        return "paid"
    if amount_paid > 0:
        return "partial"
    if payment.due_date and payment.due_date < today:
        return "overdue"
    return "pending"


def summarize_payments(payments: list[Payment]) -> dict:
    return {
        "total": len(payments),
        "pending": sum(1 for p in payments if p.status == "pending"),
        "paid": sum(1 for p in payments if p.status == "paid"),
        "overdue": sum(1 for p in payments if p.status == "overdue"),
        "partial": sum(1 for p in payments if p.status == "partial"),
        "total_amount": round(sum(p.amount for p in payments), 2),
        "total_paid": round(sum(p.amount_paid or 0 for p in payments), 2),
        "total_outstanding": round(sum(p.balance_due for p in payments), 2),
    }


class FinancialService:
    """Service layer for financial business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FinancialRepository()

    # ========================================================================
    # SETTINGS AND BILLING
    # ========================================================================

    def get_settings(self, org_id: str) -> ReservationSettings:
        settings = self.repo.get_settings(self.db, org_id)
        if not settings:
            raise HTTPException(status_code=404, detail="Reservation settings not configured")
        return settings

    def upsert_settings(self, org_id: str, data: ReservationSettingsUpsert) -> ReservationSettings:
        settings = self.repo.get_settings(self.db, org_id)
        if not settings:
            settings = ReservationSettings(organization_id=org_id)
            self.db.add(settings)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(settings, key, value)
        self.db.commit()
        self.db.refresh(settings)
        logger.info(f"✅ Reservation settings saved for org {org_id}")
        return settings

    def calculate_billing(self, org_id: str, data: BillingCalculationRequest) -> dict:
        config = config_from_settings(self.repo.get_settings(self.db, org_id), data.has_pets)
        if not config:
            raise HTTPException(status_code=400, detail="Billing is not configured for this organization")
        try:
            if data.daily_occupancy is not None:
                if not data.check_in_date or not data.check_out_date:
                    raise BillingError("Check-in and check-out dates are required with occupancy data")
                breakdown = calculate_from_daily_occupancy(
                    config, data.daily_occupancy, data.check_in_date, data.check_out_date
                )
            else:
                breakdown = calculate_stay_billing(
                    config,
                    StayDetails(
                        guests=data.guests,
                        nights=data.nights,
                        check_in_date=data.check_in_date,
                        check_out_date=data.check_out_date,
                    ),
                )
        except (BillingError, ValueError) as e:
            raise HTTPException(status_code=422, detail=str(e))
        return breakdown.to_dict()

    # ========================================================================
    # PAYMENTS
    # ========================================================================

    def list_payments(self, org_id: str, **filters) -> list[Payment]:
        return self.repo.list_payments(self.db, org_id, **filters)

    def get_payment(self, org_id: str, payment_id: str) -> Payment:
        payment = self.repo.get_payment(self.db, org_id, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    def create_payment(
        self, org_id: str, data: PaymentCreate, access: OrgAccess, today: Optional[date] = None
    ) -> Payment:
        today = today or datetime.utcnow().date()
        if not FamilyGroupRepository.get_by_name(self.db, org_id, data.family_group):
            raise HTTPException(status_code=404, detail="Family group not found")
        payment = Payment(
            organization_id=org_id,
            created_by_user_id=access.user.id,
            amount_paid=0.0,
            **data.model_dump(),
        )
        payment.status = derive_payment_status(payment, today)
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💵 Payment created: {payment.family_group} ${payment.amount:.2f}")
        return payment

    def update_payment(
        self, org_id: str, payment_id: str, data: PaymentUpdate, today: Optional[date] = None
    ) -> Payment:
        today = today or datetime.utcnow().date()
        payment = self.get_payment(org_id, payment_id)
        updates = data.model_dump(exclude_unset=True)
        new_amount = updates.get("amount", payment.amount)
        if (payment.amount_paid or 0) > new_amount:
            raise HTTPException(
                status_code=422, detail="Amount cannot be less than the amount already paid"
            )
        for key, value in updates.items():
            setattr(payment, key, value)
        if "status" not in updates:
            payment.status = derive_payment_status(payment, today)
        self.db.commit()
        self.db.refresh(payment)
        return payment

    def record_payment(
        self,
        org_id: str,
        payment_id: str,
        amount: float,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Payment:
        """Add an amount to what has been paid, never past the amount due"""
        today = today or datetime.utcnow().date()
        if amount <= 0:
            raise HTTPException(status_code=422, detail="Payment amount must be greater than 0")
        payment = self.get_payment(org_id, payment_id)
        if payment.status in STICKY_STATUSES:
            raise HTTPException(
                status_code=409, detail=f"Cannot record a payment on a {payment.status} payment"
            )

        new_amount_paid = round((payment.amount_paid or 0) + amount, 2)
        if new_amount_paid > round(payment.amount, 2):
            raise HTTPException(
                status_code=422,
                detail=f"Payment exceeds balance due of ${payment.balance_due:.2f}",
            )

        payment.amount_paid = new_amount_paid
        if payment_method:
            payment.payment_method = payment_method
        if payment_reference:
            payment.payment_reference = payment_reference
        if new_amount_paid >= payment.amount:
            payment.paid_date = today
        payment.status = derive_payment_status(payment, today)
        self.db.commit()
        self.db.refresh(payment)
        logger.info(
            f"💰 Recorded ${amount:.2f} on payment {payment.id} "
            f"({payment.amount_paid:.2f}/{payment.amount:.2f}, {payment.status})"
        )
        return payment

    def delete_payment(self, org_id: str, payment_id: str) -> None:
        payment = self.get_payment(org_id, payment_id)
        self.db.delete(payment)
        self.db.commit()

    def payment_summary(self, org_id: str, family_group: Optional[str] = None) -> dict:
        return summarize_payments(self.repo.list_payments(self.db, org_id, family_group=family_group))

    def overdue_payments(self, org_id: str, today: Optional[date] = None) -> list[Payment]:
        today = today or datetime.utcnow().date()
        self.refresh_overdue_statuses(org_id, today)
        return self.repo.list_overdue(self.db, org_id, today)

    def refresh_overdue_statuses(self, org_id: str, today: Optional[date] = None) -> int:
        """Re-derive statuses so pending payments past due read as overdue"""
        today = today or datetime.utcnow().date()
        changed = 0
        for payment in self.repo.list_payments(self.db, org_id):
            status = derive_payment_status(payment, today)
            if status != payment.status:
                payment.status = status
                changed += 1
        if changed:
            self.db.commit()
        return changed

    def create_reservation_payment(
        self,
        org_id: str,
        reservation_id: str,
        access: OrgAccess,
        split_deposit: bool = False,
        deposit_percentage: float = 50,
        today: Optional[date] = None,
    ) -> list[Payment]:
        """Payment records for a reservation's total cost, optionally split into deposit and balance"""
        today = today or datetime.utcnow().date()
        reservation = (
            self.db.query(Reservation)
            .filter(Reservation.organization_id == org_id, Reservation.id == reservation_id)
            .first()
        )
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        if not reservation.total_cost or reservation.total_cost <= 0:
            raise HTTPException(status_code=422, detail="Reservation has no cost to bill")
        if self.repo.list_payments(self.db, org_id, reservation_id=reservation_id):
            raise HTTPException(
                status_code=409, detail="Payments already exist for this reservation"
            )

        stay = f"{reservation.start_date.isoformat()} to {reservation.end_date.isoformat()}"
        total = round(reservation.total_cost, 2)
        if split_deposit:
            deposit = round(total * deposit_percentage / 100, 2)
            plan = [
                ("reservation_deposit", deposit, today, f"Deposit ({deposit_percentage:g}%) for stay {stay}"),
                ("reservation_balance", round(total - deposit, 2), reservation.start_date, f"Balance for stay {stay}"),
            ]
        else:
            plan = [("full_payment", total, reservation.start_date, f"Payment for stay {stay}")]

        payments = []
        for payment_type, amount, due_date, description in plan:
            payment = Payment(
                organization_id=org_id,
                family_group=reservation.family_group,
                reservation_id=reservation.id,
                payment_type=payment_type,
                amount=amount,
                amount_paid=0.0,
                due_date=due_date,
                description=description,
                created_by_user_id=access.user.id,
            )
            payment.status = derive_payment_status(payment, today)
            self.db.add(payment)
            payments.append(payment)
        self.db.commit()
        for payment in payments:
            self.db.refresh(payment)
        logger.info(f"💵 Created {len(payments)} payment(s) for reservation {reservation.id}")
        return payments

    def outstanding_balances(self, org_id: str, family_groups: list[str]) -> dict[str, dict]:
        """Charged, paid and outstanding totals per family group"""
        balances = {}
        for name in family_groups:
            payments = [
                p
                for p in self.repo.list_payments(self.db, org_id, family_group=name)
                if p.status not in STICKY_STATUSES
            ]
            charged = round(sum(p.amount or 0 for p in payments), 2)
            paid = round(sum(p.amount_paid or 0 for p in payments), 2)
            balances[name] = {
                "total_charged": charged,
                "total_paid": paid,
                "outstanding_balance": round(charged - paid, 2),
            }
        return balances

    # ========================================================================
    # RECURRING BILLS
    # ========================================================================

    def list_bills(self, org_id: str) -> list[RecurringBill]:
        return self.repo.list_bills(self.db, org_id)

    def get_bill(self, org_id: str, bill_id: str) -> RecurringBill:
        bill = self.repo.get_bill(self.db, org_id, bill_id)
        if not bill:
            raise HTTPException(status_code=404, detail="Recurring bill not found")
        return bill

    def create_bill(self, org_id: str, data: RecurringBillCreate, access: OrgAccess) -> RecurringBill:
        bill = RecurringBill(organization_id=org_id, created_by_user_id=access.user.id, **data.model_dump())
        self.db.add(bill)
        self.db.commit()
        self.db.refresh(bill)
        return bill

    def update_bill(self, org_id: str, bill_id: str, data: RecurringBillUpdate) -> RecurringBill:
        bill = self.get_bill(org_id, bill_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(bill, key, value)
        self.db.commit()
        self.db.refresh(bill)
        return bill

    def delete_bill(self, org_id: str, bill_id: str) -> None:
        bill = self.get_bill(org_id, bill_id)
        self.db.delete(bill)
        self.db.commit()

    # ========================================================================
    # RECEIPTS
    # ========================================================================

    def list_receipts(self, org_id: str, family_group: Optional[str] = None) -> list[Receipt]:
        return self.repo.list_receipts(self.db, org_id, family_group)

    def get_receipt(self, org_id: str, receipt_id: str) -> Receipt:
        receipt = self.repo.get_receipt(self.db, org_id, receipt_id)
        if not receipt:
            raise HTTPException(status_code=404, detail="Receipt not found")
        return receipt

    def create_receipt(
        self,
        org_id: str,
        access: OrgAccess,
        description: str,
        amount: float,
        receipt_date: date,
        family_group: Optional[str] = None,
        image: Optional[bytes] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Receipt:
        description = sanitize_plain_text(description) or ""
        if len(description) < 3:
            raise HTTPException(status_code=422, detail="Description must be at least 3 characters")
        if amount <= 0:
            raise HTTPException(status_code=422, detail="Amount must be greater than 0")

        image_key = None
        if image:
            check_upload(image, content_type, IMAGE_CONTENT_TYPES)
            image_key = put_object(
                f"{org_id}/receipts/{uuid.uuid4().hex}_{sanitize_filename(filename or 'receipt')}",
                image,
                content_type,
            )

        receipt = Receipt(
            organization_id=org_id,
            user_id=access.user.id,
            family_group=family_group,
            description=description,
            amount=round(amount, 2),
            date=receipt_date,
            image_url=image_key,
        )
        self.db.add(receipt)
        self.db.commit()
        self.db.refresh(receipt)
        logger.info(f"🧾 Receipt added: {receipt.description} ${receipt.amount:.2f}")
        return receipt

    def _check_receipt_owner(self, receipt: Receipt, access: OrgAccess) -> None:
        if receipt.user_id != access.user.id and not access.can_manage_finances:
            raise HTTPException(status_code=403, detail="You can only modify your own receipts")

    def update_receipt(
        self, org_id: str, receipt_id: str, data: ReceiptUpdate, access: OrgAccess
    ) -> Receipt:
        receipt = self.get_receipt(org_id, receipt_id)
        self._check_receipt_owner(receipt, access)
        updates = data.model_dump(exclude_unset=True)
        if "description" in updates:
            updates["description"] = sanitize_plain_text(updates["description"])
        for key, value in updates.items():
            setattr(receipt, key, value)
        self.db.commit()
        self.db.refresh(receipt)
        return receipt

    def delete_receipt(self, org_id: str, receipt_id: str, access: OrgAccess) -> None:
        receipt = self.get_receipt(org_id, receipt_id)
        self._check_receipt_owner(receipt, access)
        image_key = receipt.image_url
        self.db.delete(receipt)
        self.db.commit()
        if image_key:
            delete_object(image_key)

    def receipt_image_url(self, org_id: str, receipt_id: str) -> str:
        receipt = self.get_receipt(org_id, receipt_id)
        if not receipt.image_url:
            raise HTTPException(status_code=404, detail="Receipt has no image")
        return generate_presigned_url(receipt.image_url)


def validate_config(data) -> dict:
    """Validate an ad-hoc billing configuration"""
    return validate_billing_config(BillingConfig(**data.model_dump()))
