"""Rotation service - Yearly rotation order and the selection-turn cursor"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models import FamilyGroup, Organization, User
from ...models_rotation import (
    RotationOrder,
    SelectionPeriodExtension,
    SelectionRoundStatus,
    SelectionTurnNotification,
    TimePeriodUsage,
)
from ...services.notification_service import send_selection_turn_notification
from ..family_groups.service import user_acts_for_group
from .repository import RotationRepository
from .schemas import ExtensionUpsert, RotationOrderUpsert
from .turns import (
    PRIMARY,
    SECONDARY,
    end_of_day,
    family_statuses,
    find_next_eligible,
    is_eligible_for_phase,
    phase_order,
    primary_remaining,
    project_selection_schedule,
    rotation_for_year,
    secondary_remaining,
    turn_deadline,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedRotation:
    """A year's rotation derived from the nearest configured base year"""

    config: RotationOrder
    year: int
    order: list[str]

    def selection_days(self, phase: str) -> int:
        if phase == SECONDARY:
            return self.config.secondary_selection_days or 7
        return self.config.selection_days or 14


class RotationService:
    """Service layer for rotation orders and selection rounds"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RotationRepository()

    # ========================================================================
    # ROTATION ORDER
    # ========================================================================

    def resolve_rotation(self, org_id: str, year: int) -> Optional[ResolvedRotation]:
        base = self.repo.get_base_rotation_order(self.db, org_id, year)
        if not base:
            return None
        order = rotation_for_year(
            base.rotation_order or [], base.rotation_year, year, base.first_last_option
        )
        return ResolvedRotation(config=base, year=year, order=order)

    def get_rotation_for_year(self, org_id: str, year: int) -> ResolvedRotation:
        resolved = self.resolve_rotation(org_id, year)
        if not resolved:
            raise HTTPException(status_code=404, detail="No rotation order configured")
        return resolved

    def list_rotation_orders(self, org_id: str) -> list[RotationOrder]:
        return self.repo.list_rotation_orders(self.db, org_id)

    def upsert_rotation_order(self, org_id: str, data: RotationOrderUpsert) -> RotationOrder:
        known = {
            name
            for (name,) in self.db.query(FamilyGroup.name)
            .filter(FamilyGroup.organization_id == org_id)
            .all()
        }
        unknown = [name for name in data.rotation_order if name not in known]
        if unknown:
            raise HTTPException(
                status_code=422, detail=f"Unknown family groups in rotation: {', '.join(unknown)}"
            )

        row = self.repo.get_rotation_order(self.db, org_id, data.rotation_year)
        if not row:
            row = RotationOrder(organization_id=org_id, rotation_year=data.rotation_year)
        for field, value in data.model_dump().items():
            setattr(row, field, value)

        row = self.repo.save(self.db, row)
        if self.repo.list_usage(self.db, org_id, data.rotation_year):
            self.initialize_usage(org_id, data.rotation_year)
        logger.info(f"✅ Rotation order saved for org {org_id}, year {data.rotation_year}")
        return row

    @staticmethod
    def rotation_response(resolved: ResolvedRotation) -> dict:
        config = resolved.config
        return {
            "id": config.id if config.rotation_year == resolved.year else None,
            "organization_id": config.organization_id,
            "rotation_year": resolved.year,
            "base_year": config.rotation_year,
            "rotation_order": resolved.order,
            "first_last_option": config.first_last_option,
            "max_time_slots": config.max_time_slots,
            "max_nights": config.max_nights,
            "start_day": config.start_day,
            "start_time": config.start_time,
            "start_month": config.start_month,
            "selection_days": config.selection_days,
            "enable_secondary_selection": config.enable_secondary_selection,
            "secondary_max_periods": config.secondary_max_periods,
            "secondary_selection_days": config.secondary_selection_days,
            "enable_post_rotation_selection": config.enable_post_rotation_selection,
        }

    # ========================================================================
    # USAGE
    # ========================================================================

    def initialize_usage(self, org_id: str, year: int) -> list[TimePeriodUsage]:
        """
        Create missing usage rows for every group in the year's rotation.
        Existing rows pick up the current allowances for any phase they have not booked in yet.
        """
        resolved = self.get_rotation_for_year(org_id, year)
        config = resolved.config
        secondary_allowed = config.secondary_max_periods if config.enable_secondary_selection else 0
        existing = {u.family_group: u for u in self.repo.list_usage(self.db, org_id, year)}

        created = 0
        refreshed = 0
        for group in resolved.order:
            if group in existing:
                refreshed += self._refresh_allowances(
                    existing[group], config.max_time_slots, secondary_allowed
                )
                continue
            usage = TimePeriodUsage(
                organization_id=org_id,
                rotation_year=year,
                family_group=group,
                time_periods_used=0,
                time_periods_allowed=config.max_time_slots,
                secondary_periods_used=0,
                secondary_periods_allowed=secondary_allowed,
                selection_round=PRIMARY,
                turn_completed=False,
                secondary_turn_completed=False,
            )
            self.db.add(usage)
            existing[group] = usage
            created += 1

        if created or refreshed:
            self.db.commit()
        if created:
            logger.info(f"✅ Initialized usage for {created} family groups (org {org_id}, {year})")
        if refreshed:
            logger.info(f"🔄 Refreshed allowances for {refreshed} family groups (org {org_id}, {year})")
        return [existing[group] for group in resolved.order]

    @staticmethod
    def _refresh_allowances(usage: TimePeriodUsage, primary_allowed: int, secondary_allowed: int) -> int:
        changed = False
        if not usage.time_periods_used and usage.time_periods_allowed != primary_allowed:
            usage.time_periods_allowed = primary_allowed
            changed = True
        if not usage.secondary_periods_used and usage.secondary_periods_allowed != secondary_allowed:
            usage.secondary_periods_allowed = secondary_allowed
            changed = True
        return int(changed)

    def list_usage(self, org_id: str, year: int) -> list[TimePeriodUsage]:
        return self.repo.list_usage(self.db, org_id, year)

    def _usage_map(self, org_id: str, year: int) -> dict:
        return {u.family_group: u for u in self.repo.list_usage(self.db, org_id, year)}

    # ========================================================================
    # SELECTION ROUNDS
    # ========================================================================

    def get_round(self, org_id: str, year: int) -> Optional[SelectionRoundStatus]:
        return self.repo.get_round(self.db, org_id, year)

    def start_primary_round(
        self, org_id: str, year: int, now: Optional[datetime] = None
    ) -> SelectionRoundStatus:
        now = now or datetime.utcnow()
        if self.repo.get_round(self.db, org_id, year):
            raise HTTPException(status_code=409, detail="Selection round already started")

        resolved = self.get_rotation_for_year(org_id, year)
        self.initialize_usage(org_id, year)
        usage_map = self._usage_map(org_id, year)
        for usage in usage_map.values():
            usage.selection_round = PRIMARY

        round_status = SelectionRoundStatus(
            organization_id=org_id, rotation_year=year, phase=PRIMARY, current_group_index=0
        )
        self.db.add(round_status)
        self._begin_phase(round_status, resolved, usage_map, PRIMARY, now)

        self.db.commit()
        self.db.refresh(round_status)
        logger.info(
            f"🚀 Primary selection started for org {org_id}, {year}: "
            f"{round_status.current_family_group or 'no eligible groups'}"
        )
        return round_status

    def start_secondary_round(
        self, org_id: str, year: int, now: Optional[datetime] = None
    ) -> SelectionRoundStatus:
        now = now or datetime.utcnow()
        round_status = self.repo.get_round(self.db, org_id, year)
        if round_status and round_status.phase == SECONDARY:
            raise HTTPException(status_code=409, detail="Secondary selection already started")
        if round_status and round_status.current_family_group is not None:
            raise HTTPException(status_code=409, detail="Primary selection is still in progress")

        resolved = self.get_rotation_for_year(org_id, year)
        self.initialize_usage(org_id, year)
        usage_map = self._usage_map(org_id, year)

        if not round_status:
            round_status = SelectionRoundStatus(organization_id=org_id, rotation_year=year)
            self.db.add(round_status)
        self._enter_secondary(round_status, resolved, usage_map, now)

        self.db.commit()
        self.db.refresh(round_status)
        return round_status

    def _begin_phase(
        self,
        round_status: SelectionRoundStatus,
        resolved: ResolvedRotation,
        usage_map: dict,
        phase: str,
        now: datetime,
    ) -> None:
        ordered = phase_order(resolved.order, phase)
        round_status.phase = phase
        round_status.ended_at = None
        found = find_next_eligible(
            ordered, 0, lambda group: is_eligible_for_phase(usage_map.get(group), phase)
        )
        if found:
            self._assign_turn(round_status, found, resolved, usage_map, now)
        else:
            self._finish_phase(round_status, resolved, usage_map, now)

    def _enter_secondary(self, round_status, resolved, usage_map, now) -> None:
        for usage in usage_map.values():
            usage.selection_round = SECONDARY
        self._begin_phase(round_status, resolved, usage_map, SECONDARY, now)

    def _assign_turn(self, round_status, found, resolved, usage_map, now) -> None:
        index, group = found
        round_status.current_group_index = index
        round_status.current_family_group = group
        round_status.started_at = now
        usage = usage_map.get(group)
        if usage:
            usage.selection_deadline = now + timedelta(
                days=resolved.selection_days(round_status.phase)
            )
        logger.info(
            f"➡️ {round_status.phase.capitalize()} turn passed to {group} "
            f"(org {round_status.organization_id}, {round_status.rotation_year})"
        )

    def _finish_phase(self, round_status, resolved, usage_map, now) -> None:
        """End the phase; a finished primary round rolls into the secondary round when enabled"""
        if (
            round_status.phase == PRIMARY
            and resolved.config.enable_secondary_selection
            and any(secondary_remaining(u) > 0 for u in usage_map.values())
        ):
            logger.info(
                f"🔁 Primary selection finished for org {round_status.organization_id}; "
                "starting secondary selection"
            )
            self._enter_secondary(round_status, resolved, usage_map, now)
            return

        round_status.current_family_group = None
        round_status.started_at = None
        round_status.ended_at = now
        logger.info(
            f"🏁 {round_status.phase.capitalize()} selection ended for org "
            f"{round_status.organization_id}, {round_status.rotation_year}"
        )

    def _advance_round(self, round_status, resolved, usage_map, now) -> None:
        """Move the cursor past the current group to the next group with allowance left"""
        phase = round_status.phase
        ordered = phase_order(resolved.order, phase)
        current = round_status.current_family_group
        current_index = (
            ordered.index(current) if current in ordered else round_status.current_group_index
        )
        found = find_next_eligible(
            ordered,
            current_index + 1,
            lambda group: group != current and is_eligible_for_phase(usage_map.get(group), phase),
        )
        if found:
            self._assign_turn(round_status, found, resolved, usage_map, now)
        else:
            self._finish_phase(round_status, resolved, usage_map, now)

    def _require_active_round(self, org_id: str, year: int) -> SelectionRoundStatus:
        round_status = self.repo.get_round(self.db, org_id, year)
        if not round_status or round_status.current_family_group is None:
            raise HTTPException(status_code=409, detail="No active selection round")
        return round_status

    @staticmethod
    def _mark_turn_completed(usage: Optional[TimePeriodUsage], phase: str) -> None:
        if usage is None:
            return
        if phase == SECONDARY:
            usage.secondary_turn_completed = True
        else:
            usage.turn_completed = True

    def advance(self, org_id: str, year: int, now: Optional[datetime] = None) -> SelectionRoundStatus:
        """Pass the turn on without marking the current group's turn complete"""
        now = now or datetime.utcnow()
        round_status = self._require_active_round(org_id, year)
        resolved = self.get_rotation_for_year(org_id, year)
        usage_map = self._usage_map(org_id, year)

        self._advance_round(round_status, resolved, usage_map, now)
        self.db.commit()
        self.db.refresh(round_status)
        return round_status

    def complete_turn(
        self,
        org_id: str,
        year: int,
        family_group: str,
        access: OrgAccess,
        now: Optional[datetime] = None,
    ) -> SelectionRoundStatus:
        now = now or datetime.utcnow()
        round_status = self._require_active_round(org_id, year)
        if round_status.current_family_group != family_group:
            raise HTTPException(status_code=409, detail=f"It is not {family_group}'s turn")
        if not access.can_schedule and not user_acts_for_group(
            self.db, access.user, org_id, family_group
        ):
            raise HTTPException(
                status_code=403, detail="Only the family group or a calendar keeper can complete this turn"
            )

        resolved = self.get_rotation_for_year(org_id, year)
        usage_map = self._usage_map(org_id, year)
        self._mark_turn_completed(usage_map.get(family_group), round_status.phase)
        self._advance_round(round_status, resolved, usage_map, now)

        self.db.commit()
        self.db.refresh(round_status)
        logger.info(f"✅ {family_group} completed its {round_status.phase} turn (org {org_id}, {year})")
        return round_status

    def record_selection(
        self, org_id: str, year: int, family_group: str, now: Optional[datetime] = None
    ) -> Optional[TimePeriodUsage]:
        """
        Count a booked time period against the group's allowance for the active phase.
        When the allowance is used up during the group's own turn the turn passes on.
        Commits nothing; the caller commits together with the reservation.
        """
        now = now or datetime.utcnow()
        usage = self.repo.get_usage(self.db, org_id, year, family_group)
        if usage is None:
            resolved = self.resolve_rotation(org_id, year)
            if not resolved or family_group not in resolved.order:
                return None
            self.initialize_usage(org_id, year)
            usage = self.repo.get_usage(self.db, org_id, year, family_group)

        round_status = self.repo.get_round(self.db, org_id, year)
        round_active = round_status is not None and round_status.current_family_group is not None
        phase = round_status.phase if round_active else PRIMARY

        if phase == SECONDARY:
            usage.secondary_periods_used = (usage.secondary_periods_used or 0) + 1
        else:
            usage.time_periods_used = (usage.time_periods_used or 0) + 1
        usage.last_selection_date = now

        remaining = secondary_remaining(usage) if phase == SECONDARY else primary_remaining(usage)
        logger.info(f"📅 {family_group} used a {phase} period; {remaining} remaining")

        if round_active and round_status.current_family_group == family_group and remaining == 0:
            self._mark_turn_completed(usage, phase)
            resolved = self.get_rotation_for_year(org_id, year)
            usage_map = self._usage_map(org_id, year)
            usage_map[family_group] = usage
            self._advance_round(round_status, resolved, usage_map, now)
        return usage

    def advance_expired_turns(self, now: Optional[datetime] = None) -> dict:
        """
        Complete and pass on every turn whose selection window (including any
        extension) has run out. Run periodically from the worker.
        """
        now = now or datetime.utcnow()
        summary = {"checked": 0, "advanced": 0, "details": []}

        try:
            for round_status in self.repo.list_active_rounds(self.db):
                summary["checked"] += 1
                if round_status.started_at is None:
                    continue
                resolved = self.resolve_rotation(
                    round_status.organization_id, round_status.rotation_year
                )
                if not resolved:
                    continue

                group = round_status.current_family_group
                extension = self.repo.get_extension(
                    self.db, round_status.organization_id, round_status.rotation_year, group
                )
                deadline = turn_deadline(
                    round_status.started_at,
                    resolved.selection_days(round_status.phase),
                    extension.extended_until if extension else None,
                )
                if now <= deadline:
                    continue

                usage_map = self._usage_map(round_status.organization_id, round_status.rotation_year)
                self._mark_turn_completed(usage_map.get(group), round_status.phase)
                self._advance_round(round_status, resolved, usage_map, now)
                summary["advanced"] += 1
                summary["details"].append(
                    {
                        "organization_id": round_status.organization_id,
                        "rotation_year": round_status.rotation_year,
                        "expired_group": group,
                        "next_group": round_status.current_family_group,
                    }
                )
                logger.info(f"⏰ Selection window expired for {group}; turn advanced")

            if summary["advanced"]:
                self.db.commit()
            return summary
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error advancing expired turns: {str(e)}")
            raise

    # ========================================================================
    # EXTENSIONS
    # ========================================================================

    def upsert_extension(self, org_id: str, data: ExtensionUpsert, user: User) -> SelectionPeriodExtension:
        exists = (
            self.db.query(FamilyGroup)
            .filter(FamilyGroup.organization_id == org_id, FamilyGroup.name == data.family_group)
            .first()
        )
        if not exists:
            raise HTTPException(status_code=404, detail="Family group not found")

        extension = self.repo.get_extension(self.db, org_id, data.rotation_year, data.family_group)
        if not extension:
            extension = SelectionPeriodExtension(
                organization_id=org_id,
                rotation_year=data.rotation_year,
                family_group=data.family_group,
            )
        extension.original_end_date = data.original_end_date
        extension.extended_until = data.extended_until
        extension.reason = data.reason
        extension.extended_by_user_id = user.id

        usage = self.repo.get_usage(self.db, org_id, data.rotation_year, data.family_group)
        if usage:
            usage.selection_deadline = end_of_day(data.extended_until)

        extension = self.repo.save(self.db, extension)
        logger.info(f"✅ Selection extended for {data.family_group} until {data.extended_until}")
        return extension

    def delete_extension(self, org_id: str, extension_id: str) -> None:
        extension = self.repo.get_extension_by_id(self.db, org_id, extension_id)
        if not extension:
            raise HTTPException(status_code=404, detail="Extension not found")
        self.db.delete(extension)
        self.db.commit()

    def list_extensions(self, org_id: str, year: Optional[int] = None) -> list[SelectionPeriodExtension]:
        return self.repo.list_extensions(self.db, org_id, year)

    # ========================================================================
    # STATE
    # ========================================================================

    def selection_state(self, org_id: str, year: int, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        resolved = self.get_rotation_for_year(org_id, year)
        usage_map = self._usage_map(org_id, year)
        round_status = self.repo.get_round(self.db, org_id, year)

        phase = round_status.phase if round_status else None
        current = round_status.current_family_group if round_status else None
        started_at = round_status.started_at if current else None
        round_ended = bool(round_status and round_status.ended_at and current is None)
        effective_phase = phase or PRIMARY
        selection_days = resolved.selection_days(effective_phase)

        extension = (
            self.repo.get_extension(self.db, org_id, year, current) if current else None
        )
        extended_until = extension.extended_until if extension else None

        deadline = None
        projected = []
        if current and started_at:
            deadline = turn_deadline(started_at, selection_days, extended_until)
            projected = project_selection_schedule(
                phase_order(resolved.order, effective_phase),
                current,
                started_at.date(),
                selection_days,
                is_pending=lambda group: is_eligible_for_phase(usage_map.get(group), effective_phase),
            )

        return {
            "organization_id": org_id,
            "rotation_year": year,
            "phase": phase,
            "round_active": current is not None,
            "round_ended": round_ended,
            "current_family_group": current,
            "turn_started_at": started_at,
            "turn_deadline": deadline,
            "rotation_order": resolved.order,
            "family_statuses": family_statuses(
                resolved.order,
                usage_map,
                effective_phase,
                current,
                started_at,
                selection_days,
                now,
                extended_until,
                round_ended=round_ended,
            ),
            "projected_schedule": projected,
        }

    # ========================================================================
    # AUTOMATED TURN NOTIFICATIONS
    # ========================================================================

    def _fallback_current_group(self, org_id: str, resolved: ResolvedRotation, now: datetime):
        """Without a round cursor: first group with allowance left or an active extension"""
        usage_map = self._usage_map(org_id, resolved.year)
        if not usage_map:
            return None
        for group in resolved.order:
            usage = usage_map.get(group)
            if usage and usage.time_periods_used < usage.time_periods_allowed:
                return group
            extension = self.repo.get_extension(self.db, org_id, resolved.year, group)
            if extension and extension.extended_until >= now.date():
                return group
        return None

    async def check_selection_turn_changes(self, now: Optional[datetime] = None) -> dict:
        """
        Announce each new turn once per (organization, year, group, phase) for
        organizations with automated turn notifications enabled.
        """
        now = now or datetime.utcnow()
        summary = {"organizations_checked": 0, "notifications_sent": 0, "results": []}

        organizations = (
            self.db.query(Organization)
            .filter(Organization.automated_selection_turn_notifications_enabled.is_(True))
            .all()
        )
        for org in organizations:
            summary["organizations_checked"] += 1
            for year in (now.year, now.year + 1):
                resolved = self.resolve_rotation(org.id, year)
                if not resolved:
                    continue

                round_status = self.repo.get_round(self.db, org.id, year)
                if round_status:
                    if round_status.current_family_group is None:
                        continue
                    current = round_status.current_family_group
                    phase = round_status.phase
                else:
                    current = self._fallback_current_group(org.id, resolved, now)
                    phase = PRIMARY
                if not current:
                    continue

                if self.repo.notification_already_sent(self.db, org.id, year, current, phase):
                    continue

                try:
                    result = await send_selection_turn_notification(self.db, org.id, current, year)
                except Exception as e:
                    logger.error(f"❌ Turn notification failed for {current} ({org.name}): {e}")
                    summary["results"].append(
                        {"organization_id": org.id, "family_group": current, "status": "error", "error": str(e)}
                    )
                    continue

                if result.get("success"):
                    self.db.add(
                        SelectionTurnNotification(
                            organization_id=org.id,
                            rotation_year=year,
                            family_group=current,
                            phase=phase,
                            sent_at=now,
                        )
                    )
                    self.db.commit()
                    summary["notifications_sent"] += 1
                summary["results"].append(
                    {
                        "organization_id": org.id,
                        "rotation_year": year,
                        "family_group": current,
                        "phase": phase,
                        "status": "success" if result.get("success") else "skipped",
                    }
                )

        logger.info(
            f"📣 Turn check complete: {summary['organizations_checked']} orgs, "
            f"{summary['notifications_sent']} notifications"
        )
        return summary
