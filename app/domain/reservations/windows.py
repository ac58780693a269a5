"""Time period windows, booking rule checks and date-overlap helpers"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..rotation.turns import WEEKDAYS

NOON = time(12, 0)


def at_noon(day: date) -> datetime:
    return datetime.combine(day, NOON)


def ranges_overlap(start1: date, end1: date, start2: date, end2: date) -> bool:
    """
    Stays run noon to noon, so one ending the day another starts does not overlap.
    """
    return start1 < end2 and end1 > start2


def calculate_time_period_windows(
    order: Sequence[str],
    year: int,
    month: int,
    start_day: str = "Friday",
    max_nights: int = 7,
    today: Optional[date] = None,
) -> list[dict]:
    """
    Selection windows starting in the given month.

    Each window begins on the configured start day at noon and runs
    max_nights nights; windows are handed to rotation groups in order.
    Only the current year through two years ahead produce windows.
    """
    today = today or date.today()
    if not order or year < today.year or year > today.year + 2:
        return []

    max_nights = max_nights or 7
    weekday = WEEKDAYS.index(start_day.lower()) if start_day and start_day.lower() in WEEKDAYS else 4

    current = date(year, month, 1)
    next_month = date(year + (month // 12), month % 12 + 1, 1)
    current += timedelta(days=(weekday - current.weekday()) % 7)

    windows = []
    period_number = 1
    while current < next_month:
        windows.append(
            {
                "period_number": period_number,
                "family_group": order[(period_number - 1) % len(order)],
                "start": at_noon(current),
                "end": at_noon(current + timedelta(days=max_nights)),
                "max_nights": max_nights,
            }
        )
        current += timedelta(days=max_nights)
        period_number += 1
    return windows


def windows_around(
    order: Sequence[str],
    start_date: date,
    start_day: str,
    max_nights: int,
    today: Optional[date] = None,
) -> list[dict]:
    """Windows of the booking's start month plus the previous month, whose last window may spill over"""
    previous = start_date.replace(day=1) - timedelta(days=1)
    return calculate_time_period_windows(
        order, previous.year, previous.month, start_day, max_nights, today
    ) + calculate_time_period_windows(
        order, start_date.year, start_date.month, start_day, max_nights, today
    )


def find_window(
    windows: Sequence[dict],
    start_date: date,
    end_date: date,
    family_group: Optional[str] = None,
) -> Optional[dict]:
    """The window containing the stay; when family_group is given it must be that group's window"""
    start = at_noon(start_date)
    end = at_noon(end_date)
    for window in windows:
        if start >= window["start"] and end <= window["end"]:
            if family_group is None or window["family_group"] == family_group:
                return window
    return None


def validate_booking(
    start_date: date,
    end_date: date,
    family_group: str,
    windows: Sequence[dict],
    max_nights: int,
    usage=None,
    all_phases_active: bool = False,
    admin_override: bool = False,
    require_assigned_window: bool = True,
) -> dict:
    """
    Check a stay against the time period rules.

    Returns {"is_valid": bool, "errors": [...], "window": matched window or None}.
    """
    errors = []
    skip_assignment = all_phases_active or admin_override or not require_assigned_window

    window = find_window(
        windows, start_date, end_date, None if skip_assignment else family_group
    )
    if not window:
        if skip_assignment:
            errors.append("Booking dates must fall within a valid time period window")
        else:
            errors.append("Booking dates must fall within your assigned time period window")
        return {"is_valid": False, "errors": errors, "window": None}

    nights = (end_date - start_date).days
    if nights > max_nights:
        errors.append(f"Booking cannot exceed {max_nights} nights")
    if nights < 1:
        errors.append("Booking must be at least 1 night")

    if not admin_override and not all_phases_active and usage is not None:
        if usage.time_periods_used >= usage.time_periods_allowed:
            errors.append(
                "This family group has already used all allocated time periods for this year"
            )

    return {"is_valid": not errors, "errors": errors, "window": window}
