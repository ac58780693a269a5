"""Reservation router - FastAPI endpoints for reservations and booking rules"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from ...services.notification_service import send_reservation_confirmation
from .schemas import (
    BookingValidationRequest,
    BookingValidationResponse,
    ConflictCheckRequest,
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
    TimePeriodWindow,
)
from .service import ReservationService, conflict_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/reservations", tags=["Reservations"])


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    """Dependency injection for ReservationService"""
    return ReservationService(db)


# ============================================================================
# BOOKING RULES
# ============================================================================


@router.get("/time-periods", response_model=list[TimePeriodWindow])
async def get_time_period_windows(
    year: int = Query(...),
    month: int = Query(..., ge=1, le=12),
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    """Selection windows starting in the given month, assigned in rotation order"""
    return service.time_period_windows(access.organization.id, year, month)


@router.post("/validate", response_model=BookingValidationResponse)
async def validate_booking(
    data: BookingValidationRequest,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    if data.admin_override and not access.can_schedule:
        raise HTTPException(
            status_code=403, detail="Only admins and calendar keepers can override booking rules"
        )
    result = service.validate_booking(
        access.organization.id,
        data.family_group,
        data.start_date,
        data.end_date,
        admin_override=data.admin_override,
    )
    window = result.get("window")
    return BookingValidationResponse(
        is_valid=result["is_valid"],
        errors=result["errors"],
        time_period_number=window["period_number"] if window else None,
    )


@router.post("/conflicts")
async def check_conflicts(
    data: ConflictCheckRequest,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    if data.end_date <= data.start_date:
        raise HTTPException(status_code=422, detail="End date must be after start date")
    conflicts = service.check_conflicts(
        access.organization.id, data.start_date, data.end_date, data.property_name, data.exclude_id
    )
    return {
        "has_conflicts": bool(conflicts),
        "conflicts": [conflict_summary(r) for r in conflicts],
    }


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ReservationResponse])
async def list_reservations(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    family_group: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    property_name: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.list_reservations(
        access.organization.id,
        start_date=start_date,
        end_date=end_date,
        family_group=family_group,
        status=status,
        property_name=property_name,
    )


@router.post("", response_model=ReservationResponse)
async def create_reservation(
    data: ReservationCreate,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
    db: Session = Depends(get_db),
):
    reservation = service.create_reservation(access.organization.id, data, access)
    await send_reservation_confirmation(db, reservation)
    return reservation


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.get_reservation(access.organization.id, reservation_id)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    data: ReservationUpdate,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.update_reservation(access.organization.id, reservation_id, data, access)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    return service.cancel_reservation(access.organization.id, reservation_id, access)


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: ReservationService = Depends(get_reservation_service),
):
    service.delete_reservation(access.organization.id, reservation_id, access)
    return {"message": "Reservation deleted"}


__all__ = ["router"]
