"""
Pure rotation and selection-turn rules.

Nothing here touches the database: the service layer loads rows, asks these
functions what the rotation looks like and who is up next, then persists the
answer.
"""

from datetime import date, datetime, time, timedelta
from typing import Callable, Optional, Sequence, Union

MONTHS = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

PRIMARY = "primary"
SECONDARY = "secondary"


def rotation_for_year(
    base_order: Sequence[str],
    base_year: int,
    target_year: int,
    first_last_option: str = "first",
) -> list[str]:
    """
    Rotate the base order one step for every year after the base year.

    With "first" the group that picked first moves to the end; with "last"
    the group that picked last moves to the front. Years before the base
    year use the base order unchanged.
    """
    order = list(base_order)
    if not order or target_year <= base_year:
        return order

    steps = (target_year - base_year) % len(order)
    for _ in range(steps):
        if first_last_option == "last":
            order = [order[-1]] + order[:-1]
        else:
            order = order[1:] + [order[0]]
    return order


def month_number(start_month: Union[str, int, None]) -> Optional[int]:
    """Accept "October", "oct", 10 or "10"; None when unset or unrecognised"""
    if start_month is None or start_month == "":
        return None
    if isinstance(start_month, int):
        return start_month if 1 <= start_month <= 12 else None
    value = str(start_month).strip().lower()
    if value.isdigit():
        number = int(value)
        return number if 1 <= number <= 12 else None
    for index, name in enumerate(MONTHS):
        if name == value or name[:3] == value[:3]:
            return index + 1
    return None


def selection_rotation_year(start_month: Union[str, int, None], today: date) -> int:
    """
    The rotation year selections are currently being made for.

    Once the start month has begun, families are choosing for next year.
    Without a configured start month the calendar year is used.
    """
    month = month_number(start_month)
    if month is None:
        return today.year
    if today >= date(today.year, month, 1):
        return today.year + 1
    return today.year


def find_next_eligible(
    order: Sequence[str],
    start_index: int,
    is_eligible: Callable[[str], bool],
) -> Optional[tuple[int, str]]:
    """
    Scan the order from start_index (inclusive), wrapping around at most once.
    Returns (index, group) for the first eligible group, or None.
    """
    if not order:
        return None
    count = len(order)
    for attempt in range(count):
        index = (start_index + attempt) % count
        group = order[index]
        if is_eligible(group):
            return index, group
    return None


def phase_order(order: Sequence[str], phase: str) -> list[str]:
    """The secondary round runs over the rotation in reverse"""
    return list(reversed(order)) if phase == SECONDARY else list(order)


def primary_remaining(usage) -> int:
    if usage is None:
        return 0
    return max((usage.time_periods_allowed or 0) - (usage.time_periods_used or 0), 0)


def secondary_remaining(usage) -> int:
    if usage is None:
        return 0
    return max((usage.secondary_periods_allowed or 0) - (usage.secondary_periods_used or 0), 0)


def is_eligible_for_phase(usage, phase: str) -> bool:
    """A group can take a turn while it has allowance left and has not finished its turn"""
    if usage is None:
        return False
    if phase == SECONDARY:
        return secondary_remaining(usage) > 0 and not usage.secondary_turn_completed
    return primary_remaining(usage) > 0 and not usage.turn_completed


def is_turn_finished(usage, phase: str) -> bool:
    if usage is None:
        return True
    if phase == SECONDARY:
        return bool(usage.secondary_turn_completed) or secondary_remaining(usage) == 0
    return bool(usage.turn_completed) or primary_remaining(usage) == 0


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59))


def turn_deadline(
    started_at: datetime,
    selection_days: int,
    extended_until: Optional[date] = None,
) -> datetime:
    """The later of the regular window end and the end of the extension day"""
    deadline = started_at + timedelta(days=selection_days)
    if extended_until is not None:
        deadline = max(deadline, end_of_day(extended_until))
    return deadline


def day_progress(started_at: datetime, selection_days: int, now: datetime) -> tuple[int, int]:
    """(day number, days remaining) within a selection window"""
    passed = max((now.date() - started_at.date()).days, 0)
    day_number = min(passed + 1, selection_days)
    days_remaining = max(selection_days - passed, 0)
    return day_number, days_remaining


def family_statuses(
    order: Sequence[str],
    usage_by_group: dict,
    phase: str,
    current_group: Optional[str],
    started_at: Optional[datetime],
    selection_days: int,
    now: datetime,
    extended_until: Optional[date] = None,
    round_ended: bool = False,
) -> list[dict]:
    """
    Status of every family group for the given phase, in phase order.

    completed: the group finished its turn or has no allowance left
    active:    the group currently holding the turn
    skipped:   the turn already passed the group without it finishing
    waiting:   the group's turn is still ahead
    """
    ordered = phase_order(order, phase)
    current_index = ordered.index(current_group) if current_group in ordered else None

    statuses = []
    for index, group in enumerate(ordered):
        usage = usage_by_group.get(group)
        if phase == SECONDARY:
            used = usage.secondary_periods_used if usage else 0
            allowed = usage.secondary_periods_allowed if usage else 0
        else:
            used = usage.time_periods_used if usage else 0
            allowed = usage.time_periods_allowed if usage else 0

        entry = {
            "family_group": group,
            "position": index + 1,
            "periods_used": used,
            "periods_allowed": allowed,
            "status": "waiting",
            "day_text": None,
            "days_remaining": None,
        }

        if group == current_group and started_at is not None:
            window = selection_days
            if extended_until is not None:
                window = max(window, (extended_until - started_at.date()).days + 1)
            day_number, days_remaining = day_progress(started_at, window, now)
            entry["status"] = "active"
            entry["day_text"] = f"Day {day_number} of {window}"
            entry["days_remaining"] = days_remaining
        elif is_turn_finished(usage, phase):
            entry["status"] = "completed"
        elif round_ended:
            entry["status"] = "skipped"
        elif current_index is not None and index < current_index:
            entry["status"] = "skipped"

        statuses.append(entry)
    return statuses


def project_selection_schedule(
    order: Sequence[str],
    current_group: Optional[str],
    today: date,
    selection_days: int,
    is_pending: Optional[Callable[[str], bool]] = None,
) -> list[dict]:
    """
    Projected back-to-back selection windows, beginning with the active group.

    Groups for which is_pending returns False are left out of the projection.
    """
    if not order or selection_days <= 0:
        return []

    start_index = order.index(current_group) if current_group in order else 0
    schedule = []
    window_start = today
    for group in list(order[start_index:]):
        if is_pending is not None and group != current_group and not is_pending(group):
            continue
        window_end = window_start + timedelta(days=selection_days - 1)
        schedule.append(
            {
                "family_group": group,
                "start_date": window_start,
                "end_date": window_end,
                "is_current": group == current_group,
            }
        )
        window_start = window_end + timedelta(days=1)
    return schedule
