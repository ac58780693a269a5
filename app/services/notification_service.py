"""
Notification Service
Sends family-group emails for rotation turns, reservations, trades and
payment reminders, and records each send in the notification log
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..email_service import (
    send_payment_reminder_email,
    send_reservation_confirmation_email,
    send_selection_turn_email,
    send_trade_request_email,
    send_trade_response_email,
)
from ..models import FamilyGroup, NotificationLog, Organization
from ..models_financial import Payment
from ..models_reservation import Reservation, TradeRequest
from ..models_rotation import RotationOrder, SelectionRoundStatus, TimePeriodUsage

logger = logging.getLogger(__name__)


def log_notification(
    db: Session,
    organization_id: str,
    family_group: Optional[str],
    notification_type: str,
    email_sent: bool,
    details: Optional[dict] = None,
    reservation_period_id: Optional[str] = None,
) -> NotificationLog:
    entry = NotificationLog(
        organization_id=organization_id,
        family_group=family_group,
        notification_type=notification_type,
        email_sent=email_sent,
        sms_sent=False,
        reservation_period_id=reservation_period_id,
        details=details,
        sent_at=datetime.utcnow(),
    )
    db.add(entry)
    return entry


def get_family_group(db: Session, organization_id: str, name: str) -> Optional[FamilyGroup]:
    return (
        db.query(FamilyGroup)
        .filter(FamilyGroup.organization_id == organization_id, FamilyGroup.name == name)
        .first()
    )


def _current_phase(db: Session, organization_id: str, year: int) -> str:
    round_status = (
        db.query(SelectionRoundStatus)
        .filter(
            SelectionRoundStatus.organization_id == organization_id,
            SelectionRoundStatus.rotation_year == year,
        )
        .first()
    )
    if round_status:
        return round_status.phase

    # No cursor: once every group has used its primary allowance it's secondary time
    usage_rows = (
        db.query(TimePeriodUsage)
        .filter(
            TimePeriodUsage.organization_id == organization_id,
            TimePeriodUsage.rotation_year == year,
        )
        .all()
    )
    if usage_rows and all(u.time_periods_used >= u.time_periods_allowed for u in usage_rows):
        return "secondary"
    return "primary"


async def send_selection_turn_notification(
    db: Session,
    organization_id: str,
    family_group: str,
    year: int,
    notification_type: Optional[str] = None,
) -> dict:
    """
    Email a family group lead that it's their turn to select.
    Skipped when the group's turn is already completed.
    """
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise HTTPException(status_code=404, detail="Organization not found")
    group = get_family_group(db, organization_id, family_group)
    if not group:
        raise HTTPException(status_code=404, detail="Family group not found")

    usage = (
        db.query(TimePeriodUsage)
        .filter(
            TimePeriodUsage.organization_id == organization_id,
            TimePeriodUsage.rotation_year == year,
            TimePeriodUsage.family_group == family_group,
        )
        .first()
    )
    phase = _current_phase(db, organization_id, year)

    if usage and (usage.secondary_turn_completed if phase == "secondary" else usage.turn_completed):
        logger.info(f"⏭️ {family_group} already completed its {phase} turn; notification skipped")
        return {"success": True, "skipped": True, "reason": "Turn already completed"}

    if not group.lead_email:
        logger.warning(f"⚠️ No lead email for {family_group}; cannot send turn notification")
        return {"success": False, "skipped": False, "error": "Family group lead has no email"}

    rotation = (
        db.query(RotationOrder)
        .filter(RotationOrder.organization_id == organization_id, RotationOrder.rotation_year <= year)
        .order_by(RotationOrder.rotation_year.desc())
        .first()
    )
    if phase == "secondary":
        allowed = usage.secondary_periods_allowed if usage else 0
        used = usage.secondary_periods_used if usage else 0
        selection_days = rotation.secondary_selection_days if rotation else 7
    else:
        allowed = usage.time_periods_allowed if usage else (rotation.max_time_slots if rotation else 0)
        used = usage.time_periods_used if usage else 0
        selection_days = rotation.selection_days if rotation else 14
    remaining = max(allowed - used, 0)

    deadline_text = None
    if usage and usage.selection_deadline:
        deadline_text = usage.selection_deadline.strftime("%B %d, %Y")

    email_sent = False
    error = None
    try:
        await send_selection_turn_email(
            to=group.lead_email,
            organization_name=organization.name,
            family_group=family_group,
            lead_name=group.lead_name,
            rotation_year=year,
            phase=phase,
            periods_remaining=remaining,
            periods_allowed=allowed,
            selection_days=selection_days,
            deadline_text=deadline_text,
        )
        email_sent = True
    except Exception as e:
        error = str(e)
        logger.error(f"❌ Failed to send selection turn email to {group.lead_email}: {e}")

    log_notification(
        db,
        organization_id,
        family_group,
        notification_type or "selection_turn",
        email_sent,
        details={"rotation_year": year, "phase": phase, "remaining": remaining, "allowed": allowed},
    )
    db.commit()

    result = {
        "success": email_sent,
        "skipped": False,
        "family_group": family_group,
        "phase": phase,
        "message": f"{remaining} of {allowed} periods remaining",
    }
    if error:
        result["error"] = error
    return result


async def send_reservation_confirmation(db: Session, reservation: Reservation) -> bool:
    """Best-effort confirmation email to the family group lead"""
    group = get_family_group(db, reservation.organization_id, reservation.family_group)
    if not group or not group.lead_email:
        logger.debug(f"⚠️ No lead email for {reservation.family_group}; confirmation not sent")
        return False

    organization = db.query(Organization).filter(Organization.id == reservation.organization_id).first()
    nights = (reservation.end_date - reservation.start_date).days
    try:
        await send_reservation_confirmation_email(
            to=group.lead_email,
            organization_name=organization.name if organization else "CabinBuddy",
            family_group=reservation.family_group,
            lead_name=group.lead_name,
            property_name=reservation.property_name,
            start_date=reservation.start_date.strftime("%B %d, %Y"),
            end_date=reservation.end_date.strftime("%B %d, %Y"),
            nights=nights,
            total_cost=reservation.total_cost,
        )
        sent = True
    except Exception as e:
        logger.error(f"❌ Reservation confirmation email failed for {reservation.id}: {e}")
        sent = False

    log_notification(
        db,
        reservation.organization_id,
        reservation.family_group,
        "reservation_confirmation",
        sent,
        reservation_period_id=reservation.id,
    )
    db.commit()
    return sent


def _date_range_text(start, end) -> Optional[str]:
    if not start or not end:
        return None
    return f"{start.strftime('%b %d')} - {end.strftime('%b %d, %Y')}"


async def send_trade_request_notification(db: Session, trade: TradeRequest) -> bool:
    group = get_family_group(db, trade.organization_id, trade.target_family_group)
    if not group or not group.lead_email:
        return False
    organization = db.query(Organization).filter(Organization.id == trade.organization_id).first()
    try:
        await send_trade_request_email(
            to=group.lead_email,
            organization_name=organization.name if organization else "CabinBuddy",
            target_family_group=trade.target_family_group,
            requester_family_group=trade.requester_family_group,
            requested_dates=_date_range_text(trade.requested_start_date, trade.requested_end_date),
            offered_dates=_date_range_text(trade.offered_start_date, trade.offered_end_date),
            message=trade.requester_message,
        )
        sent = True
    except Exception as e:
        logger.error(f"❌ Trade request email failed for {trade.id}: {e}")
        sent = False
    log_notification(db, trade.organization_id, trade.target_family_group, "trade_request", sent)
    db.commit()
    return sent


async def send_trade_response_notification(db: Session, trade: TradeRequest) -> bool:
    group = get_family_group(db, trade.organization_id, trade.requester_family_group)
    if not group or not group.lead_email:
        return False
    organization = db.query(Organization).filter(Organization.id == trade.organization_id).first()
    try:
        await send_trade_response_email(
            to=group.lead_email,
            organization_name=organization.name if organization else "CabinBuddy",
            requester_family_group=trade.requester_family_group,
            target_family_group=trade.target_family_group,
            requested_dates=_date_range_text(trade.requested_start_date, trade.requested_end_date),
            approved=trade.status == "approved",
            message=trade.approver_message,
        )
        sent = True
    except Exception as e:
        logger.error(f"❌ Trade response email failed for {trade.id}: {e}")
        sent = False
    log_notification(db, trade.organization_id, trade.requester_family_group, "trade_response", sent)
    db.commit()
    return sent


async def send_bulk_payment_reminders(
    db: Session, organization_id: str, family_groups: list[str], year: Optional[int] = None
) -> dict:
    """Email each listed family lead whose charges exceed what they have paid"""
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise HTTPException(status_code=404, detail="Organization not found")

    groups = (
        db.query(FamilyGroup)
        .filter(FamilyGroup.organization_id == organization_id, FamilyGroup.name.in_(family_groups))
        .all()
    )

    sent, failed, skipped = [], [], []
    for group in groups:
        payments = (
            db.query(Payment)
            .filter(
                Payment.organization_id == organization_id,
                Payment.family_group == group.name,
                Payment.status.notin_(("cancelled", "refunded")),
            )
            .all()
        )
        total_charged = sum(p.amount or 0 for p in payments)
        total_paid = sum(p.amount_paid or 0 for p in payments)
        outstanding = round(total_charged - total_paid, 2)

        if outstanding <= 0 or not group.lead_email:
            skipped.append(group.name)
            continue

        try:
            await send_payment_reminder_email(
                to=group.lead_email,
                organization_name=organization.name,
                family_group=group.name,
                lead_name=group.lead_name,
                outstanding_balance=outstanding,
                year=year,
            )
            email_sent = True
            sent.append(group.name)
            logger.info(f"📧 Payment reminder sent to {group.name} ({group.lead_email})")
        except Exception as e:
            logger.error(f"❌ Payment reminder failed for {group.name}: {e}")
            email_sent = False
            failed.append(group.name)

        log_notification(
            db,
            organization_id,
            group.name,
            "payment_reminder",
            email_sent,
            details={"outstanding_balance": outstanding, "year": year},
        )

    db.commit()
    logger.info(f"✅ Bulk reminders for {organization.name}: {len(sent)} sent, {len(failed)} failed")
    return {
        "success": True,
        "sent": len(sent),
        "failed": len(failed),
        "details": {
            "sent": sent,
            "failed": failed,
            "skipped": skipped,
            "year": year,
            "organization_name": organization.name,
        },
    }
