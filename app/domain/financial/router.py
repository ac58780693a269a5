"""Financial router - FastAPI endpoints for settings, billing, payments, bills and receipts"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from ...services.notification_service import send_bulk_payment_reminders
from ..family_groups.repository import FamilyGroupRepository
from .schemas import (
    BillingCalculationRequest,
    BillingConfigRequest,
    BulkReminderRequest,
    PaymentCreate,
    PaymentResponse,
    PaymentSummary,
    PaymentUpdate,
    ReceiptResponse,
    ReceiptUpdate,
    RecordPaymentRequest,
    RecurringBillCreate,
    RecurringBillResponse,
    RecurringBillUpdate,
    ReservationPaymentRequest,
    ReservationSettingsResponse,
    ReservationSettingsUpsert,
)
from .service import FinancialService, validate_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/financial", tags=["Financial"])


def get_financial_service(db: Session = Depends(get_db)) -> FinancialService:
    """Dependency injection for FinancialService"""
    return FinancialService(db)


# ============================================================================
# SETTINGS AND BILLING
# ============================================================================


@router.get("/settings", response_model=ReservationSettingsResponse)
async def get_settings(
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.get_settings(access.organization.id)


@router.put("/settings", response_model=ReservationSettingsResponse)
async def upsert_settings(
    data: ReservationSettingsUpsert,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.upsert_settings(access.organization.id, data)


@router.post("/billing/calculate")
async def calculate_billing(
    data: BillingCalculationRequest,
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.calculate_billing(access.organization.id, data)


@router.post("/billing/validate")
async def validate_billing(
    data: BillingConfigRequest,
    access: OrgAccess = Depends(require_org_role()),
):
    return validate_config(data)


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("/payments", response_model=list[PaymentResponse])
async def list_payments(
    family_group: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    reservation_id: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.list_payments(
        access.organization.id,
        family_group=family_group,
        status=status,
        reservation_id=reservation_id,
    )


@router.get("/payments/summary", response_model=PaymentSummary)
async def payment_summary(
    family_group: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.payment_summary(access.organization.id, family_group)


@router.get("/payments/overdue", response_model=list[PaymentResponse])
async def overdue_payments(
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.overdue_payments(access.organization.id)


@router.get("/payments/balances")
async def outstanding_balances(
    family_group: Optional[list[str]] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
    db: Session = Depends(get_db),
):
    """Charged, paid and outstanding totals per family group (all groups when none given)"""
    names = family_group or [g.name for g in FamilyGroupRepository.list_groups(db, access.organization.id)]
    return service.outstanding_balances(access.organization.id, names)


@router.post("/payments", response_model=PaymentResponse)
async def create_payment(
    data: PaymentCreate,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.create_payment(access.organization.id, data, access)


@router.post("/payments/reminders")
async def bulk_payment_reminders(
    data: BulkReminderRequest,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    db: Session = Depends(get_db),
):
    """Email outstanding-balance reminders to the listed family groups"""
    return await send_bulk_payment_reminders(
        db, access.organization.id, data.family_groups, data.year
    )


@router.post("/reservations/{reservation_id}/payments", response_model=list[PaymentResponse])
async def create_reservation_payment(
    reservation_id: str,
    data: ReservationPaymentRequest,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.create_reservation_payment(
        access.organization.id,
        reservation_id,
        access,
        split_deposit=data.split_deposit,
        deposit_percentage=data.deposit_percentage,
    )


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.get_payment(access.organization.id, payment_id)


@router.patch("/payments/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: str,
    data: PaymentUpdate,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.update_payment(access.organization.id, payment_id, data)


@router.post("/payments/{payment_id}/record", response_model=PaymentResponse)
async def record_payment(
    payment_id: str,
    data: RecordPaymentRequest,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.record_payment(
        access.organization.id,
        payment_id,
        data.amount,
        data.payment_method,
        data.payment_reference,
    )


@router.delete("/payments/{payment_id}")
async def delete_payment(
    payment_id: str,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    service.delete_payment(access.organization.id, payment_id)
    return {"message": "Payment deleted"}


# ============================================================================
# RECURRING BILLS
# ============================================================================


@router.get("/bills", response_model=list[RecurringBillResponse])
async def list_bills(
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.list_bills(access.organization.id)


@router.post("/bills", response_model=RecurringBillResponse)
async def create_bill(
    data: RecurringBillCreate,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.create_bill(access.organization.id, data, access)


@router.patch("/bills/{bill_id}", response_model=RecurringBillResponse)
async def update_bill(
    bill_id: str,
    data: RecurringBillUpdate,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    return service.update_bill(access.organization.id, bill_id, data)


@router.delete("/bills/{bill_id}")
async def delete_bill(
    bill_id: str,
    access: OrgAccess = Depends(require_org_role("treasurer")),
    service: FinancialService = Depends(get_financial_service),
):
    service.delete_bill(access.organization.id, bill_id)
    return {"message": "Recurring bill deleted"}


# ============================================================================
# RECEIPTS
# ============================================================================


@router.get("/receipts", response_model=list[ReceiptResponse])
async def list_receipts(
    family_group: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.list_receipts(access.organization.id, family_group)


@router.post("/receipts", response_model=ReceiptResponse)
async def create_receipt(
    description: str = Form(...),
    amount: float = Form(...),
    receipt_date: date = Form(..., alias="date"),
    family_group: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    contents = await file.read() if file else None
    return service.create_receipt(
        access.organization.id,
        access,
        description=description,
        amount=amount,
        receipt_date=receipt_date,
        family_group=family_group,
        image=contents,
        filename=file.filename if file else None,
        content_type=file.content_type if file else None,
    )


@router.patch("/receipts/{receipt_id}", response_model=ReceiptResponse)
async def update_receipt(
    receipt_id: str,
    data: ReceiptUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return service.update_receipt(access.organization.id, receipt_id, data, access)


@router.get("/receipts/{receipt_id}/image-url")
async def receipt_image_url(
    receipt_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    return {"url": service.receipt_image_url(access.organization.id, receipt_id)}


@router.delete("/receipts/{receipt_id}")
async def delete_receipt(
    receipt_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: FinancialService = Depends(get_financial_service),
):
    service.delete_receipt(access.organization.id, receipt_id, access)
    return {"message": "Receipt deleted"}


__all__ = ["router"]
