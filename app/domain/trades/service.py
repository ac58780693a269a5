"""Trade service - Requests to swap or hand over booked time between family groups"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_reservation import Reservation, TradeRequest
from ..family_groups.repository import FamilyGroupRepository
from ..family_groups.service import user_acts_for_group
from .schemas import TradeRequestCreate

logger = logging.getLogger(__name__)


class TradeService:
    """Service layer for trade requests"""

    def __init__(self, db: Session):
        self.db = db

    def list_trades(
        self,
        org_id: str,
        family_group: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[TradeRequest]:
        query = self.db.query(TradeRequest).filter(TradeRequest.organization_id == org_id)
        if family_group:
            query = query.filter(
                (TradeRequest.requester_family_group == family_group)
                | (TradeRequest.target_family_group == family_group)
            )
        if status:
            query = query.filter(TradeRequest.status == status)
        return query.order_by(TradeRequest.created_at.desc()).all()

    def get_trade(self, org_id: str, trade_id: str) -> TradeRequest:
        trade = (
            self.db.query(TradeRequest)
            .filter(TradeRequest.organization_id == org_id, TradeRequest.id == trade_id)
            .first()
        )
        if not trade:
            raise HTTPException(status_code=404, detail="Trade request not found")
        return trade

    def create_trade(self, org_id: str, data: TradeRequestCreate, access: OrgAccess) -> TradeRequest:
        if not access.can_schedule and not user_acts_for_group(
            self.db, access.user, org_id, data.requester_family_group
        ):
            raise HTTPException(status_code=403, detail="You can only request trades for your own family group")
        for name in (data.requester_family_group, data.target_family_group):
            if not FamilyGroupRepository.get_by_name(self.db, org_id, name):
                raise HTTPException(status_code=404, detail=f"Family group '{name}' not found")

        trade = TradeRequest(
            organization_id=org_id,
            requester_user_id=access.user.id,
            status="pending",
            **data.model_dump(),
        )
        self.db.add(trade)
        self.db.commit()
        self.db.refresh(trade)
        logger.info(
            f"🔁 Trade requested: {trade.requester_family_group} → {trade.target_family_group} "
            f"({trade.requested_start_date} to {trade.requested_end_date})"
        )
        return trade

    def respond(
        self, org_id: str, trade_id: str, approve: bool, message: Optional[str], access: OrgAccess
    ) -> TradeRequest:
        """Approve or reject a pending trade as the target family group or an admin"""
        trade = self.get_trade(org_id, trade_id)
        if trade.status != "pending":
            raise HTTPException(status_code=409, detail=f"Trade request is already {trade.status}")
        if not access.is_admin and not user_acts_for_group(
            self.db, access.user, org_id, trade.target_family_group
        ):
            raise HTTPException(
                status_code=403, detail="Only the target family group can respond to this request"
            )

        trade.status = "approved" if approve else "rejected"
        trade.approver_message = message
        trade.approver_user_id = access.user.id
        self.db.commit()
        self.db.refresh(trade)
        logger.info(f"✅ Trade {trade.id} {trade.status}")
        return trade

    def cancel(self, org_id: str, trade_id: str, access: OrgAccess) -> TradeRequest:
        trade = self.get_trade(org_id, trade_id)
        if trade.status != "pending":
            raise HTTPException(status_code=409, detail=f"Trade request is already {trade.status}")
        if not access.is_admin and not user_acts_for_group(
            self.db, access.user, org_id, trade.requester_family_group
        ):
            raise HTTPException(status_code=403, detail="Only the requesting family group can cancel")
        trade.status = "cancelled"
        self.db.commit()
        self.db.refresh(trade)
        return trade

    def _find_reservation(
        self, org_id: str, family_group: str, start_date: date, end_date: date
    ) -> Optional[Reservation]:
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.organization_id == org_id,
                Reservation.family_group == family_group,
                Reservation.status != "cancelled",
                Reservation.start_date <= end_date,
                Reservation.end_date >= start_date,
            )
            .order_by(Reservation.start_date.asc())
            .first()
        )

    @staticmethod
    def _transfer(reservation: Reservation, from_group: str, to_group: str, today: date) -> None:
        reservation.family_group = to_group
        reservation.host_assignments = []
        reservation.notes = f"Traded from {from_group} on {today.strftime('%m/%d/%Y')}"

    def execute_trade(self, org_id: str, trade_id: str, now: Optional[datetime] = None) -> dict:
        """
        Carry out an approved trade by moving reservations between the groups.
        Running it again after success is a no-op.
        """
        now = now or datetime.utcnow()
        trade = self.get_trade(org_id, trade_id)

        if trade.execution_status == "completed":
            return {"success": True, "message": "Trade already executed", "already_executed": True}
        if trade.status != "approved":
            raise HTTPException(
                status_code=409, detail="Trade request must be approved before execution"
            )

        target_reservation = self._find_reservation(
            org_id, trade.target_family_group, trade.requested_start_date, trade.requested_end_date
        )
        if not target_reservation:
            trade.execution_status = "failed"
            trade.execution_notes = (
                "Target reservation not found. It may have been modified or deleted."
            )
            trade.executed_at = now
            self.db.commit()
            logger.warning(f"⚠️ Trade {trade.id} failed: target reservation not found")
            return {"success": False, "error": trade.execution_notes}

        try:
            self._transfer(
                target_reservation, trade.target_family_group, trade.requester_family_group, now.date()
            )
            notes = (
                f"Transferred {trade.target_family_group}'s reservation "
                f"({trade.requested_start_date} to {trade.requested_end_date}) "
                f"to {trade.requester_family_group}"
            )

            if trade.request_type == "trade_offer" and trade.offered_start_date:
                offered = self._find_reservation(
                    org_id,
                    trade.requester_family_group,
                    trade.offered_start_date,
                    trade.offered_end_date,
                )
                if offered and offered.id != target_reservation.id:
                    self._transfer(
                        offered, trade.requester_family_group, trade.target_family_group, now.date()
                    )
                    notes += (
                        f". Also transferred {trade.requester_family_group}'s reservation "
                        f"({trade.offered_start_date} to {trade.offered_end_date}) "
                        f"to {trade.target_family_group}"
                    )
                else:
                    notes += ". Note: Offered reservation not found for transfer."

            trade.execution_status = "completed"
            trade.execution_notes = notes
            trade.executed_at = now
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Trade {trade_id} execution error: {str(e)}")
            raise

        logger.info(f"✅ Trade {trade.id} executed: {notes}")
        return {"success": True, "message": "Trade executed successfully", "execution_notes": notes}
