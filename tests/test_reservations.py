from datetime import date, timedelta

import pytest

from app.domain.reservations.windows import (
    calculate_time_period_windows,
    find_window,
    ranges_overlap,
    validate_booking,
)
from conftest import auth

NEXT_YEAR = date.today().year + 1


def first_friday(year: int, month: int) -> date:
    day = date(year, month, 1)
    return day + timedelta(days=(4 - day.weekday()) % 7)


def booking(family_group="Smith", start="2025-07-04", end="2025-07-07", **extra):
    return {"family_group": family_group, "start_date": start, "end_date": end, **extra}


class TestWindows:
    def test_back_to_back_stays_do_not_overlap(self):
        assert not ranges_overlap(date(2025, 7, 1), date(2025, 7, 5), date(2025, 7, 5), date(2025, 7, 8))
        assert ranges_overlap(date(2025, 7, 1), date(2025, 7, 6), date(2025, 7, 5), date(2025, 7, 8))

    def test_windows_start_on_start_day_and_rotate(self):
        windows = calculate_time_period_windows(
            ["A", "B"], 2025, 8, "Friday", 7, today=date(2025, 1, 1)
        )
        assert windows[0]["start"].date() == date(2025, 8, 1)
        assert windows[0]["end"].date() == date(2025, 8, 8)
        assert [w["family_group"] for w in windows[:3]] == ["A", "B", "A"]
        assert all(w["start"].month == 8 for w in windows)

    def test_windows_limited_to_near_years(self):
        assert calculate_time_period_windows(["A"], 2030, 1, today=date(2025, 1, 1)) == []
        assert calculate_time_period_windows(["A"], 2024, 1, today=date(2025, 1, 1)) == []

    def test_booking_must_sit_in_assigned_window(self):
        windows = calculate_time_period_windows(["A", "B"], 2025, 8, "Friday", 7, today=date(2025, 1, 1))
        assert find_window(windows, date(2025, 8, 2), date(2025, 8, 5), "A") is not None

        result = validate_booking(date(2025, 8, 2), date(2025, 8, 5), "B", windows, 7)
        assert not result["is_valid"]
        assert "assigned time period window" in result["errors"][0]

        result = validate_booking(
            date(2025, 8, 2), date(2025, 8, 5), "B", windows, 7, admin_override=True
        )
        assert result["is_valid"]

    def test_allowance_exhausted(self):
        windows = calculate_time_period_windows(["A"], 2025, 8, "Friday", 7, today=date(2025, 1, 1))

        class Usage:
            time_periods_used = 2
            time_periods_allowed = 2

        result = validate_booking(date(2025, 8, 1), date(2025, 8, 3), "A", windows, 7, usage=Usage())
        assert not result["is_valid"]
        assert "already used all allocated" in result["errors"][0]


def test_member_books_for_own_group(client, org, smith_member, groups):
    response = client.post(f"/organizations/{org.id}/reservations", json=booking(), headers=auth(smith_member))
    assert response.status_code == 200
    body = response.json()
    assert body["family_group"] == "Smith"
    assert body["nights_used"] == 3
    assert body["total_cost"] is None


def test_member_cannot_book_for_other_group(client, org, smith_member, groups):
    response = client.post(
        f"/organizations/{org.id}/reservations", json=booking("Jones"), headers=auth(smith_member)
    )
    assert response.status_code == 403


def test_member_cannot_override_rules(client, org, smith_member, groups):
    response = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking(admin_override=True),
        headers=auth(smith_member),
    )
    assert response.status_code == 403


def test_unknown_group(client, org, keeper, groups):
    response = client.post(f"/organizations/{org.id}/reservations", json=booking("Nobody"), headers=auth(keeper))
    assert response.status_code == 404


def test_end_before_start_rejected(client, org, keeper, groups):
    response = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking(start="2025-07-07", end="2025-07-04"),
        headers=auth(keeper),
    )
    assert response.status_code == 422


def test_overlapping_confirmed_stays_conflict(client, org, keeper, groups):
    url = f"/organizations/{org.id}/reservations"
    assert client.post(url, json=booking(), headers=auth(keeper)).status_code == 200

    response = client.post(url, json=booking("Jones", "2025-07-06", "2025-07-09"), headers=auth(keeper))
    assert response.status_code == 409
    assert response.json()["detail"]["conflicts"][0]["family_group"] == "Smith"

    # Checkout day is free for the next arrival
    response = client.post(url, json=booking("Jones", "2025-07-07", "2025-07-09"), headers=auth(keeper))
    assert response.status_code == 200


def test_cancelled_stay_frees_dates(client, org, keeper, groups):
    url = f"/organizations/{org.id}/reservations"
    first = client.post(url, json=booking(), headers=auth(keeper)).json()
    response = client.post(f"{url}/{first['id']}/cancel", headers=auth(keeper))
    assert response.json()["status"] == "cancelled"

    response = client.post(url, json=booking("Jones"), headers=auth(keeper))
    assert response.status_code == 200


def test_cost_from_settings(client, org, keeper, treasurer, groups):
    response = client.put(
        f"/organizations/{org.id}/financial/settings",
        json={"financial_method": "per_person_per_night", "nightly_rate": 20, "cleaning_fee": 50},
        headers=auth(treasurer),
    )
    assert response.status_code == 200
    assert response.json()["financial_method"] == "per-person-per-day"

    response = client.post(
        f"/organizations/{org.id}/reservations", json=booking(guest_count=4), headers=auth(keeper)
    )
    # 4 guests x 3 nights x $20 + $50 cleaning
    assert response.json()["total_cost"] == 290


@pytest.fixture
def live_round(client, org, keeper, groups):
    client.put(
        f"/organizations/{org.id}/rotation",
        json={"rotation_year": NEXT_YEAR, "rotation_order": ["Smith", "Jones", "Lee"], "max_time_slots": 1},
        headers=auth(keeper),
    )
    response = client.post(f"/organizations/{org.id}/rotation/{NEXT_YEAR}/selection/start", headers=auth(keeper))
    assert response.json()["current_family_group"] == "Smith"


def test_only_current_group_books_during_round(client, org, jones_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    response = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Jones", str(start), str(start + timedelta(days=3))),
        headers=auth(jones_member),
    )
    assert response.status_code == 409
    assert "Smith" in response.json()["detail"]


def test_using_last_period_passes_turn(client, org, smith_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    response = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=3))),
        headers=auth(smith_member),
    )
    assert response.status_code == 200
    assert response.json()["time_period_number"] is not None

    state = client.get(
        f"/organizations/{org.id}/rotation/{NEXT_YEAR}/selection", headers=auth(smith_member)
    ).json()
    assert state["current_family_group"] == "Jones"
    smith = next(s for s in state["family_statuses"] if s["family_group"] == "Smith")
    assert smith["status"] == "completed"
    assert smith["periods_used"] == 1


def test_stay_longer_than_max_nights_rejected(client, org, smith_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    response = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=10))),
        headers=auth(smith_member),
    )
    assert response.status_code == 422


def test_stretching_stay_past_rules_rejected(client, org, smith_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    created = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=3))),
        headers=auth(smith_member),
    ).json()

    response = client.patch(
        f"/organizations/{org.id}/reservations/{created['id']}",
        json={"end_date": str(start + timedelta(days=20))},
        headers=auth(smith_member),
    )
    assert response.status_code == 422

    stored = client.get(
        f"/organizations/{org.id}/reservations/{created['id']}", headers=auth(smith_member)
    ).json()
    assert stored["end_date"] == str(start + timedelta(days=3))


def test_keeper_can_override_rules_on_update(client, org, keeper, live_round):
    start = first_friday(NEXT_YEAR, 6)
    created = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=3))),
        headers=auth(keeper),
    ).json()

    response = client.patch(
        f"/organizations/{org.id}/reservations/{created['id']}",
        json={"end_date": str(start + timedelta(days=20)), "admin_override": True},
        headers=auth(keeper),
    )
    assert response.status_code == 200
    assert response.json()["nights_used"] == 20


def test_confirming_tentative_stay_counts_period(client, org, smith_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    created = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=3)), status="tentative"),
        headers=auth(smith_member),
    )
    assert created.status_code == 200

    state = client.get(
        f"/organizations/{org.id}/rotation/{NEXT_YEAR}/selection", headers=auth(smith_member)
    ).json()
    assert state["current_family_group"] == "Smith"

    response = client.patch(
        f"/organizations/{org.id}/reservations/{created.json()['id']}",
        json={"status": "confirmed"},
        headers=auth(smith_member),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    state = client.get(
        f"/organizations/{org.id}/rotation/{NEXT_YEAR}/selection", headers=auth(smith_member)
    ).json()
    assert state["current_family_group"] == "Jones"
    smith = next(s for s in state["family_statuses"] if s["family_group"] == "Smith")
    assert smith["periods_used"] == 1


def test_confirming_out_of_turn_rejected(client, org, smith_member, jones_member, live_round):
    start = first_friday(NEXT_YEAR, 6)
    tentative = client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start), str(start + timedelta(days=3)), status="tentative"),
        headers=auth(smith_member),
    ).json()
    client.post(
        f"/organizations/{org.id}/reservations",
        json=booking("Smith", str(start + timedelta(days=7)), str(start + timedelta(days=10))),
        headers=auth(smith_member),
    )

    response = client.patch(
        f"/organizations/{org.id}/reservations/{tentative['id']}",
        json={"status": "confirmed"},
        headers=auth(smith_member),
    )
    assert response.status_code == 409
