"""Reservation service - Booking rules, conflict detection and cost calculation"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_financial import ReservationSettings
from ...models_reservation import Reservation
from ..family_groups.repository import FamilyGroupRepository
from ..family_groups.service import user_acts_for_group
from ..financial.billing_calculator import (
    BillingError,
    StayDetails,
    calculate_stay_billing,
    config_from_settings,
)
from ..rotation.service import RotationService
from ..rotation.turns import SECONDARY, secondary_remaining
from .repository import ReservationRepository
from .schemas import ReservationCreate, ReservationUpdate
from .windows import calculate_time_period_windows, validate_booking, windows_around

logger = logging.getLogger(__name__)


def conflict_summary(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "family_group": reservation.family_group,
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "property_name": reservation.property_name,
    }


class ReservationService:
    """Service layer for reservation business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReservationRepository()
        self.rotation = RotationService(db)

    def list_reservations(self, org_id: str, **filters) -> list[Reservation]:
        return self.repo.list_reservations(self.db, org_id, **filters)

    def get_reservation(self, org_id: str, reservation_id: str) -> Reservation:
        reservation = self.repo.get_by_id(self.db, org_id, reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reservation not found")
        return reservation

    # ========================================================================
    # RULES
    # ========================================================================

    def check_conflicts(
        self,
        org_id: str,
        start_date: date,
        end_date: date,
        property_name: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> list[Reservation]:
        return self.repo.find_conflicts(
            self.db, org_id, start_date, end_date, property_name, exclude_id
        )

    def time_period_windows(
        self, org_id: str, year: int, month: int, today: Optional[date] = None
    ) -> list[dict]:
        resolved = self.rotation.resolve_rotation(org_id, year)
        if not resolved:
            return []
        return calculate_time_period_windows(
            resolved.order,
            year,
            month,
            resolved.config.start_day,
            resolved.config.max_nights,
            today,
        )

    def validate_booking(
        self,
        org_id: str,
        family_group: str,
        start_date: date,
        end_date: date,
        admin_override: bool = False,
        require_assigned_window: bool = True,
        today: Optional[date] = None,
        count_allowance: bool = True,
    ) -> dict:
        """Time period rules for a stay: window fit, night limits and remaining allowance"""
        if end_date <= start_date:
            return {"is_valid": False, "errors": ["End date must be after start date"], "window": None}

        year = start_date.year
        resolved = self.rotation.resolve_rotation(org_id, year)
        if not resolved:
            return {"is_valid": False, "errors": ["Rotation settings not found"], "window": None}

        config = resolved.config
        round_status = self.rotation.get_round(org_id, year)
        phase = (
            round_status.phase
            if round_status and round_status.current_family_group is not None
            else None
        )
        usage = self.rotation.repo.get_usage(self.db, org_id, year, family_group)

        result = validate_booking(
            start_date,
            end_date,
            family_group,
            windows_around(resolved.order, start_date, config.start_day, config.max_nights, today),
            config.max_nights,
            usage=usage if phase != SECONDARY and count_allowance else None,
            all_phases_active=bool(
                config.enable_secondary_selection and config.enable_post_rotation_selection
            ),
            admin_override=admin_override,
            require_assigned_window=require_assigned_window,
        )

        if (
            phase == SECONDARY
            and count_allowance
            and not admin_override
            and usage
            and secondary_remaining(usage) == 0
        ):
            result["errors"].append(
                "This family group has already used all secondary selection periods"
            )
            result["is_valid"] = False
        return result

    def _check_access(self, access: OrgAccess, family_group: str) -> None:
        if access.can_schedule:
            return
        if not user_acts_for_group(self.db, access.user, access.organization.id, family_group):
            raise HTTPException(
                status_code=403, detail="You can only manage reservations for your own family group"
            )

    def _apply_costs(self, reservation: Reservation, has_pets: bool = False) -> None:
        reservation.nights_used = (reservation.end_date - reservation.start_date).days
        settings = (
            self.db.query(ReservationSettings)
            .filter(ReservationSettings.organization_id == reservation.organization_id)
            .first()
        )
        config = config_from_settings(settings, include_pet_fee=has_pets)
        if not config:
            return
        try:
            breakdown = calculate_stay_billing(
                config,
                StayDetails(
                    guests=reservation.guest_count,
                    nights=reservation.nights_used,
                    check_in_date=reservation.start_date,
                    check_out_date=reservation.end_date,
                ),
            )
            reservation.total_cost = round(breakdown.total, 2)
        except BillingError as e:
            logger.warning(f"⚠️ Could not price reservation: {e}")

    def _raise_on_conflicts(self, org_id, start_date, end_date, property_name, exclude_id=None):
        conflicts = self.check_conflicts(org_id, start_date, end_date, property_name, exclude_id)
        if conflicts:
            raise HTTPException(
                status_code=409,
                detail={
                    "message": "These dates conflict with an existing reservation",
                    "conflicts": [conflict_summary(r) for r in conflicts],
                },
            )

    def _enforce_round_rules(
        self,
        org_id: str,
        family_group: str,
        start_date: date,
        end_date: date,
        now: datetime,
        check_turn: bool = True,
        count_allowance: bool = True,
    ) -> Optional[dict]:
        """Apply live selection round rules; returns the matched window or None without a round"""
        round_status = self.rotation.get_round(org_id, start_date.year)
        if round_status is None or round_status.current_family_group is None:
            return None

        if check_turn and round_status.current_family_group != family_group:
            raise HTTPException(
                status_code=409,
                detail=f"It is {round_status.current_family_group}'s turn to select, not {family_group}'s",
            )
        result = self.validate_booking(
            org_id,
            family_group,
            start_date,
            end_date,
            require_assigned_window=False,
            today=now.date(),
            count_allowance=count_allowance,
        )
        if not result["is_valid"]:
            raise HTTPException(
                status_code=422,
                detail={"message": "Booking does not meet rotation rules", "errors": result["errors"]},
            )
        return result["window"]

    # ========================================================================
    # CRUD
    # ========================================================================

    def create_reservation(
        self, org_id: str, data: ReservationCreate, access: OrgAccess, now: Optional[datetime] = None
    ) -> Reservation:
        now = now or datetime.utcnow()
        self._check_access(access, data.family_group)
        if data.admin_override and not access.can_schedule:
            raise HTTPException(
                status_code=403, detail="Only admins and calendar keepers can override booking rules"
            )
        if not FamilyGroupRepository.get_by_name(self.db, org_id, data.family_group):
            raise HTTPException(status_code=404, detail="Family group not found")

        if data.status == "confirmed":
            self._raise_on_conflicts(org_id, data.start_date, data.end_date, data.property_name)

        year = data.start_date.year
        window = None
        if not data.admin_override:
            window = self._enforce_round_rules(
                org_id, data.family_group, data.start_date, data.end_date, now
            )

        reservation = Reservation(
            organization_id=org_id,
            user_id=access.user.id,
            family_group=data.family_group,
            start_date=data.start_date,
            end_date=data.end_date,
            guest_count=data.guest_count,
            property_name=data.property_name,
            status=data.status,
            host_assignments=[h.model_dump(mode="json") for h in data.host_assignments],
            notes=data.notes,
        )
        if window:
            reservation.time_period_number = window["period_number"]
            reservation.allocated_start_date = window["start"].date()
            reservation.allocated_end_date = window["end"].date()
        self._apply_costs(reservation, data.has_pets)

        try:
            self.db.add(reservation)
            if reservation.status == "confirmed":
                self.rotation.record_selection(org_id, year, data.family_group, now)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create reservation for {data.family_group}: {str(e)}")
            raise
        self.db.refresh(reservation)

        logger.info(
            f"✅ Reservation created: {reservation.family_group} "
            f"{reservation.start_date} → {reservation.end_date}"
        )
        return reservation

    def update_reservation(
        self,
        org_id: str,
        reservation_id: str,
        data: ReservationUpdate,
        access: OrgAccess,
        now: Optional[datetime] = None,
    ) -> Reservation:
        now = now or datetime.utcnow()
        reservation = self.get_reservation(org_id, reservation_id)
        self._check_access(access, reservation.family_group)
        if data.admin_override and not access.can_schedule:
            raise HTTPException(
                status_code=403, detail="Only admins and calendar keepers can override booking rules"
            )

        updates = data.model_dump(exclude_unset=True, exclude={"admin_override"})
        start_date = updates.get("start_date", reservation.start_date)
        end_date = updates.get("end_date", reservation.end_date)
        if end_date <= start_date:
            raise HTTPException(status_code=422, detail="End date must be after start date")

        status = updates.get("status", reservation.status)
        property_name = updates.get("property_name", reservation.property_name)
        if status == "confirmed":
            self._raise_on_conflicts(org_id, start_date, end_date, property_name, reservation.id)

        newly_confirmed = status == "confirmed" and reservation.status != "confirmed"
        dates_changed = (start_date, end_date) != (reservation.start_date, reservation.end_date)
        window = None
        if status != "cancelled" and not data.admin_override and (newly_confirmed or dates_changed):
            # A stay that was already counted keeps its period; only its dates are re-checked
            window = self._enforce_round_rules(
                org_id,
                reservation.family_group,
                start_date,
                end_date,
                now,
                check_turn=newly_confirmed,
                count_allowance=newly_confirmed,
            )

        if data.host_assignments is not None:
            updates["host_assignments"] = [h.model_dump(mode="json") for h in data.host_assignments]
        for key, value in updates.items():
            setattr(reservation, key, value)
        if window:
            reservation.time_period_number = window["period_number"]
            reservation.allocated_start_date = window["start"].date()
            reservation.allocated_end_date = window["end"].date()

        if {"start_date", "end_date", "guest_count"} & updates.keys():
            self._apply_costs(reservation)

        try:
            if newly_confirmed:
                self.rotation.record_selection(
                    org_id, start_date.year, reservation.family_group, now
                )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update reservation {reservation_id}: {str(e)}")
            raise
        self.db.refresh(reservation)
        logger.info(f"✅ Reservation {reservation.id} updated")
        return reservation

    def cancel_reservation(self, org_id: str, reservation_id: str, access: OrgAccess) -> Reservation:
        reservation = self.get_reservation(org_id, reservation_id)
        self._check_access(access, reservation.family_group)
        reservation.status = "cancelled"
        self.db.commit()
        self.db.refresh(reservation)
        logger.info(f"🚫 Reservation {reservation.id} cancelled")
        return reservation

    def delete_reservation(self, org_id: str, reservation_id: str, access: OrgAccess) -> None:
        reservation = self.get_reservation(org_id, reservation_id)
        self._check_access(access, reservation.family_group)
        self.db.delete(reservation)
        self.db.commit()
        logger.info(f"🗑️ Reservation {reservation_id} deleted")
