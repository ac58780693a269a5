from datetime import date, datetime
from types import SimpleNamespace

from app.domain.rotation.turns import (
    PRIMARY,
    SECONDARY,
    day_progress,
    family_statuses,
    find_next_eligible,
    is_eligible_for_phase,
    month_number,
    project_selection_schedule,
    rotation_for_year,
    selection_rotation_year,
    turn_deadline,
)


def usage(used=0, allowed=2, sec_used=0, sec_allowed=0, done=False, sec_done=False):
    return SimpleNamespace(
        time_periods_used=used,
        time_periods_allowed=allowed,
        secondary_periods_used=sec_used,
        secondary_periods_allowed=sec_allowed,
        turn_completed=done,
        secondary_turn_completed=sec_done,
    )


class TestRotationForYear:
    def test_base_year_keeps_order(self):
        assert rotation_for_year(["A", "B", "C"], 2025, 2025) == ["A", "B", "C"]

    def test_first_option_moves_first_to_end(self):
        assert rotation_for_year(["A", "B", "C"], 2025, 2026, "first") == ["B", "C", "A"]
        assert rotation_for_year(["A", "B", "C"], 2025, 2027, "first") == ["C", "A", "B"]

    def test_last_option_moves_last_to_front(self):
        assert rotation_for_year(["A", "B", "C"], 2025, 2026, "last") == ["C", "A", "B"]

    def test_full_cycle_returns_to_base(self):
        assert rotation_for_year(["A", "B", "C"], 2025, 2028) == ["A", "B", "C"]

    def test_earlier_year_uses_base(self):
        assert rotation_for_year(["A", "B"], 2025, 2020) == ["A", "B"]

    def test_empty_order(self):
        assert rotation_for_year([], 2025, 2030) == []


class TestSelectionYear:
    def test_month_names_and_numbers(self):
        assert month_number("October") == 10
        assert month_number("oct") == 10
        assert month_number("10") == 10
        assert month_number(13) is None
        assert month_number("") is None

    def test_before_start_month_is_current_year(self):
        assert selection_rotation_year("October", date(2025, 9, 30)) == 2025

    def test_after_start_month_is_next_year(self):
        assert selection_rotation_year("October", date(2025, 10, 1)) == 2026

    def test_no_start_month_uses_calendar_year(self):
        assert selection_rotation_year(None, date(2025, 12, 31)) == 2025


class TestFindNextEligible:
    def test_wraps_around(self):
        found = find_next_eligible(["A", "B", "C"], 2, lambda g: g == "A")
        assert found == (0, "A")

    def test_none_when_nobody_eligible(self):
        assert find_next_eligible(["A", "B"], 0, lambda g: False) is None

    def test_eligibility_by_phase(self):
        assert is_eligible_for_phase(usage(used=1, allowed=2), PRIMARY)
        assert not is_eligible_for_phase(usage(used=2, allowed=2), PRIMARY)
        assert not is_eligible_for_phase(usage(done=True), PRIMARY)
        assert is_eligible_for_phase(usage(sec_allowed=1), SECONDARY)
        assert not is_eligible_for_phase(usage(sec_allowed=1, sec_done=True), SECONDARY)
        assert not is_eligible_for_phase(None, PRIMARY)


class TestWindows:
    def test_deadline_uses_later_extension(self):
        started = datetime(2025, 1, 1, 9, 0)
        assert turn_deadline(started, 14) == datetime(2025, 1, 15, 9, 0)
        assert turn_deadline(started, 14, date(2025, 1, 20)) == datetime(2025, 1, 20, 23, 59, 59)
        assert turn_deadline(started, 14, date(2025, 1, 2)) == datetime(2025, 1, 15, 9, 0)

    def test_day_progress(self):
        started = datetime(2025, 1, 1, 9, 0)
        assert day_progress(started, 14, datetime(2025, 1, 1, 10, 0)) == (1, 14)
        assert day_progress(started, 14, datetime(2025, 1, 5)) == (5, 10)
        assert day_progress(started, 14, datetime(2025, 2, 1)) == (14, 0)


class TestFamilyStatuses:
    def test_primary_statuses(self):
        usage_by_group = {
            "A": usage(used=2),
            "B": usage(used=0),
            "C": usage(used=1),
            "D": usage(used=0),
        }
        statuses = family_statuses(
            ["A", "B", "C", "D"],
            usage_by_group,
            PRIMARY,
            "C",
            datetime(2025, 1, 1),
            14,
            datetime(2025, 1, 3),
        )
        by_group = {s["family_group"]: s for s in statuses}
        assert by_group["A"]["status"] == "completed"
        assert by_group["B"]["status"] == "skipped"
        assert by_group["C"]["status"] == "active"
        assert by_group["C"]["day_text"] == "Day 3 of 14"
        assert by_group["D"]["status"] == "waiting"

    def test_secondary_runs_in_reverse(self):
        usage_by_group = {g: usage(sec_allowed=1) for g in ["A", "B", "C"]}
        statuses = family_statuses(
            ["A", "B", "C"], usage_by_group, SECONDARY, "C", datetime(2025, 1, 1), 7, datetime(2025, 1, 1)
        )
        assert [s["family_group"] for s in statuses] == ["C", "B", "A"]
        assert statuses[0]["status"] == "active"


def test_projected_schedule_skips_finished_groups():
    schedule = project_selection_schedule(
        ["A", "B", "C", "D"], "B", date(2025, 1, 1), 7, is_pending=lambda g: g != "C"
    )
    assert [s["family_group"] for s in schedule] == ["B", "D"]
    assert schedule[0]["start_date"] == date(2025, 1, 1)
    assert schedule[0]["end_date"] == date(2025, 1, 7)
    assert schedule[1]["start_date"] == date(2025, 1, 8)
    assert schedule[0]["is_current"]
