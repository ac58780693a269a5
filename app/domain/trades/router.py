"""Trade router - FastAPI endpoints for trade requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from ...services.notification_service import (
    send_trade_request_notification,
    send_trade_response_notification,
)
from .schemas import TradeRequestCreate, TradeRequestResponse, TradeResponseRequest
from .service import TradeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/trades", tags=["Trades"])


def get_trade_service(db: Session = Depends(get_db)) -> TradeService:
    """Dependency injection for TradeService"""
    return TradeService(db)


@router.get("", response_model=list[TradeRequestResponse])
async def list_trades(
    family_group: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: TradeService = Depends(get_trade_service),
):
    return service.list_trades(access.organization.id, family_group, status)


@router.post("", response_model=TradeRequestResponse)
async def create_trade(
    data: TradeRequestCreate,
    access: OrgAccess = Depends(require_org_role()),
    service: TradeService = Depends(get_trade_service),
    db: Session = Depends(get_db),
):
    trade = service.create_trade(access.organization.id, data, access)
    await send_trade_request_notification(db, trade)
    return trade


@router.get("/{trade_id}", response_model=TradeRequestResponse)
async def get_trade(
    trade_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: TradeService = Depends(get_trade_service),
):
    return service.get_trade(access.organization.id, trade_id)


@router.post("/{trade_id}/respond")
async def respond_to_trade(
    trade_id: str,
    data: TradeResponseRequest,
    access: OrgAccess = Depends(require_org_role()),
    service: TradeService = Depends(get_trade_service),
    db: Session = Depends(get_db),
):
    """Approve (and execute) or reject a pending trade"""
    trade = service.respond(access.organization.id, trade_id, data.approve, data.message, access)
    execution = None
    if trade.status == "approved":
        execution = service.execute_trade(access.organization.id, trade.id)
    await send_trade_response_notification(db, trade)
    return {
        "trade": TradeRequestResponse.model_validate(service.get_trade(access.organization.id, trade.id)),
        "execution": execution,
    }


@router.post("/{trade_id}/cancel", response_model=TradeRequestResponse)
async def cancel_trade(
    trade_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: TradeService = Depends(get_trade_service),
):
    return service.cancel(access.organization.id, trade_id, access)


@router.post("/{trade_id}/execute")
async def execute_trade(
    trade_id: str,
    access: OrgAccess = Depends(require_org_role("calendar_keeper")),
    service: TradeService = Depends(get_trade_service),
):
    """Retry execution of an approved trade"""
    result = service.execute_trade(access.organization.id, trade_id)
    if not result["success"]:
        raise HTTPException(status_code=409, detail=result["error"])
    return result


__all__ = ["router"]
