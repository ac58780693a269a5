"""Rotation router - FastAPI endpoints for rotation orders and selection turns"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from ...services.notification_service import send_selection_turn_notification
from .schemas import (
    CompleteTurnRequest,
    ExtensionResponse,
    ExtensionUpsert,
    RotationOrderResponse,
    RotationOrderUpsert,
    RoundResponse,
    SelectionStateResponse,
    UsageResponse,
)
from .service import RotationService
from .turns import selection_rotation_year

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/rotation", tags=["Rotation"])


def get_rotation_service(db: Session = Depends(get_db)) -> RotationService:
    """Dependency injection for RotationService"""
    return RotationService(db)


# ============================================================================
# ROTATION ORDER
# ============================================================================


@router.get("/orders", response_model=list[RotationOrderResponse])
async def list_rotation_orders(
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    """Configured base rotation orders, newest year first"""
    return [
        RotationOrderResponse(**{**_row_fields(row), "base_year": row.rotation_year})
        for row in service.list_rotation_orders(access.organization.id)
    ]


@router.get("/current-year")
async def get_selection_year(
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    """The rotation year families are currently selecting for"""
    today = date.today()
    resolved = service.resolve_rotation(access.organization.id, today.year)
    start_month = resolved.config.start_month if resolved else None
    return {"rotation_year": selection_rotation_year(start_month, today)}


@router.get("/{year}", response_model=RotationOrderResponse)
async def get_rotation_for_year(
    year: int,
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    """Rotation for a year, derived from the nearest configured base year"""
    resolved = service.get_rotation_for_year(access.organization.id, year)
    return RotationOrderResponse(**service.rotation_response(resolved))


@router.put("", response_model=RotationOrderResponse)
async def upsert_rotation_order(
    data: RotationOrderUpsert,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    row = service.upsert_rotation_order(access.organization.id, data)
    return RotationOrderResponse(**{**_row_fields(row), "base_year": row.rotation_year})


def _row_fields(row) -> dict:
    return {
        "id": row.id,
        "organization_id": row.organization_id,
        "rotation_year": row.rotation_year,
        "rotation_order": row.rotation_order or [],
        "first_last_option": row.first_last_option,
        "max_time_slots": row.max_time_slots,
        "max_nights": row.max_nights,
        "start_day": row.start_day,
        "start_time": row.start_time,
        "start_month": row.start_month,
        "selection_days": row.selection_days,
        "enable_secondary_selection": row.enable_secondary_selection,
        "secondary_max_periods": row.secondary_max_periods,
        "secondary_selection_days": row.secondary_selection_days,
        "enable_post_rotation_selection": row.enable_post_rotation_selection,
    }


# ============================================================================
# USAGE AND SELECTION ROUNDS
# ============================================================================


@router.get("/{year}/usage", response_model=list[UsageResponse])
async def list_usage(
    year: int,
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    return service.list_usage(access.organization.id, year)


@router.post("/{year}/usage/initialize", response_model=list[UsageResponse])
async def initialize_usage(
    year: int,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    return service.initialize_usage(access.organization.id, year)


@router.get("/{year}/selection", response_model=SelectionStateResponse)
async def get_selection_state(
    year: int,
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    """Phase, active group, per-family status and projected windows"""
    return service.selection_state(access.organization.id, year)


@router.post("/{year}/selection/start", response_model=RoundResponse)
async def start_primary_round(
    year: int,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    return service.start_primary_round(access.organization.id, year)


@router.post("/{year}/selection/start-secondary", response_model=RoundResponse)
async def start_secondary_round(
    year: int,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    return service.start_secondary_round(access.organization.id, year)


@router.post("/{year}/selection/complete", response_model=RoundResponse)
async def complete_turn(
    year: int,
    data: CompleteTurnRequest,
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    """The active family group signals it is done selecting"""
    return service.complete_turn(access.organization.id, year, data.family_group, access)


@router.post("/{year}/selection/advance", response_model=RoundResponse)
async def advance_turn(
    year: int,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    """Pass the turn to the next eligible family group"""
    return service.advance(access.organization.id, year)


@router.post("/{year}/selection/notify")
async def notify_current_turn(
    year: int,
    family_group: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
    db: Session = Depends(get_db),
):
    """Send the turn email to the given group, or to the group holding the turn"""
    target = family_group
    if not target:
        round_status = service.get_round(access.organization.id, year)
        target = round_status.current_family_group if round_status else None
    if not target:
        return {"success": False, "error": "No family group currently holds the turn"}
    return await send_selection_turn_notification(db, access.organization.id, target, year)


# ============================================================================
# EXTENSIONS
# ============================================================================


@router.get("/extensions/list", response_model=list[ExtensionResponse])
async def list_extensions(
    year: Optional[int] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: RotationService = Depends(get_rotation_service),
):
    return service.list_extensions(access.organization.id, year)


@router.put("/extensions", response_model=ExtensionResponse)
async def upsert_extension(
    data: ExtensionUpsert,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    return service.upsert_extension(access.organization.id, data, access.user)


@router.delete("/extensions/{extension_id}")
async def delete_extension(
    extension_id: str,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: RotationService = Depends(get_rotation_service),
):
    service.delete_extension(access.organization.id, extension_id)
    return {"message": "Extension deleted"}


__all__ = ["router"]
