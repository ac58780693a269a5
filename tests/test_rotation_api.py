import asyncio
from datetime import datetime, timedelta

import pytest

from app.domain.rotation.service import RotationService
from app.models_rotation import TimePeriodUsage
from conftest import auth

YEAR = 2025


@pytest.fixture
def rotation(client, org, keeper, groups):
    response = client.put(
        f"/organizations/{org.id}/rotation",
        json={
            "rotation_year": YEAR,
            "rotation_order": ["Smith", "Jones", "Lee"],
            "max_time_slots": 1,
            "enable_secondary_selection": True,
            "secondary_max_periods": 1,
        },
        headers=auth(keeper),
    )
    assert response.status_code == 200
    return response.json()


def test_rotation_requires_known_groups(client, org, keeper, groups):
    response = client.put(
        f"/organizations/{org.id}/rotation",
        json={"rotation_year": YEAR, "rotation_order": ["Smith", "Nobody"]},
        headers=auth(keeper),
    )
    assert response.status_code == 422
    assert "Nobody" in response.json()["detail"]


def test_members_cannot_edit_rotation(client, org, smith_member, groups):
    response = client.put(
        f"/organizations/{org.id}/rotation",
        json={"rotation_year": YEAR, "rotation_order": ["Smith"]},
        headers=auth(smith_member),
    )
    assert response.status_code == 403


def test_later_year_is_rotated(client, org, smith_member, rotation):
    response = client.get(f"/organizations/{org.id}/rotation/{YEAR + 1}", headers=auth(smith_member))
    assert response.status_code == 200
    body = response.json()
    assert body["rotation_order"] == ["Jones", "Lee", "Smith"]
    assert body["base_year"] == YEAR
    assert body["id"] is None


def test_outsider_is_rejected(client, org, outsider, rotation):
    response = client.get(f"/organizations/{org.id}/rotation/{YEAR}", headers=auth(outsider))
    assert response.status_code == 403


def test_full_round_rolls_into_secondary(client, org, keeper, smith_member, jones_member, rotation):
    base = f"/organizations/{org.id}/rotation/{YEAR}/selection"

    response = client.post(f"{base}/start", headers=auth(keeper))
    assert response.status_code == 200
    assert response.json()["current_family_group"] == "Smith"
    assert response.json()["phase"] == "primary"

    # Only the group holding the turn (or a keeper) can finish it
    response = client.post(f"{base}/complete", json={"family_group": "Smith"}, headers=auth(jones_member))
    assert response.status_code == 403

    response = client.post(f"{base}/complete", json={"family_group": "Smith"}, headers=auth(smith_member))
    assert response.status_code == 200
    assert response.json()["current_family_group"] == "Jones"

    response = client.post(f"{base}/complete", json={"family_group": "Smith"}, headers=auth(smith_member))
    assert response.status_code == 409

    response = client.post(f"{base}/advance", headers=auth(keeper))
    assert response.json()["current_family_group"] == "Lee"

    response = client.post(f"{base}/complete", json={"family_group": "Lee"}, headers=auth(keeper))
    body = response.json()
    # Jones was passed over but still has its primary allowance
    assert body["phase"] == "primary"
    assert body["current_family_group"] == "Jones"

    response = client.post(f"{base}/complete", json={"family_group": "Jones"}, headers=auth(jones_member))
    body = response.json()
    assert body["phase"] == "secondary"
    assert body["current_family_group"] == "Lee"

    state = client.get(base, headers=auth(smith_member)).json()
    assert state["round_active"] is True
    assert [s["family_group"] for s in state["family_statuses"]] == ["Lee", "Jones", "Smith"]
    assert state["family_statuses"][0]["status"] == "active"


def test_start_twice_conflicts(client, org, keeper, rotation):
    base = f"/organizations/{org.id}/rotation/{YEAR}/selection"
    assert client.post(f"{base}/start", headers=auth(keeper)).status_code == 200
    assert client.post(f"{base}/start", headers=auth(keeper)).status_code == 409


def test_usage_initialized_with_allowances(client, org, keeper, rotation, db):
    response = client.post(f"/organizations/{org.id}/rotation/{YEAR}/usage/initialize", headers=auth(keeper))
    assert response.status_code == 200
    rows = response.json()
    assert [r["family_group"] for r in rows] == ["Smith", "Jones", "Lee"]
    assert all(r["time_periods_allowed"] == 1 for r in rows)
    assert all(r["secondary_periods_allowed"] == 1 for r in rows)


def test_expired_turn_is_advanced(client, org, keeper, rotation, db):
    client.post(f"/organizations/{org.id}/rotation/{YEAR}/selection/start", headers=auth(keeper))

    service = RotationService(db)
    summary = service.advance_expired_turns(now=datetime.utcnow() + timedelta(days=1))
    assert summary["advanced"] == 0

    summary = service.advance_expired_turns(now=datetime.utcnow() + timedelta(days=15))
    assert summary["advanced"] == 1
    assert summary["details"][0]["expired_group"] == "Smith"
    assert summary["details"][0]["next_group"] == "Jones"

    db.expire_all()
    smith = (
        db.query(TimePeriodUsage)
        .filter(TimePeriodUsage.organization_id == org.id, TimePeriodUsage.family_group == "Smith")
        .one()
    )
    assert smith.turn_completed is True


def test_extension_delays_expiry(client, org, keeper, rotation, db):
    client.post(f"/organizations/{org.id}/rotation/{YEAR}/selection/start", headers=auth(keeper))
    today = datetime.utcnow().date()
    response = client.put(
        f"/organizations/{org.id}/rotation/extensions",
        json={
            "rotation_year": YEAR,
            "family_group": "Smith",
            "original_end_date": str(today + timedelta(days=14)),
            "extended_until": str(today + timedelta(days=20)),
        },
        headers=auth(keeper),
    )
    assert response.status_code == 200

    summary = RotationService(db).advance_expired_turns(now=datetime.utcnow() + timedelta(days=16))
    assert summary["advanced"] == 0


@pytest.mark.parametrize("extra_days", [0, -3])
def test_extension_must_end_after_original(client, org, keeper, rotation, extra_days):
    original = datetime.utcnow().date() + timedelta(days=14)
    response = client.put(
        f"/organizations/{org.id}/rotation/extensions",
        json={
            "rotation_year": YEAR,
            "family_group": "Smith",
            "original_end_date": str(original),
            "extended_until": str(original + timedelta(days=extra_days)),
        },
        headers=auth(keeper),
    )
    assert response.status_code == 422


def test_saving_rotation_refreshes_unused_allowances(client, org, keeper, groups, db):
    base = f"/organizations/{org.id}/rotation"
    client.put(
        base,
        json={"rotation_year": YEAR, "rotation_order": ["Smith", "Jones", "Lee"], "max_time_slots": 1},
        headers=auth(keeper),
    )
    rows = client.post(f"{base}/{YEAR}/usage/initialize", headers=auth(keeper)).json()
    assert all(r["secondary_periods_allowed"] == 0 for r in rows)

    smith = (
        db.query(TimePeriodUsage)
        .filter(TimePeriodUsage.organization_id == org.id, TimePeriodUsage.family_group == "Smith")
        .first()
    )
    smith.time_periods_used = 1
    db.commit()

    response = client.put(
        base,
        json={
            "rotation_year": YEAR,
            "rotation_order": ["Smith", "Jones", "Lee"],
            "max_time_slots": 2,
            "enable_secondary_selection": True,
            "secondary_max_periods": 1,
        },
        headers=auth(keeper),
    )
    assert response.status_code == 200

    usage = {r["family_group"]: r for r in client.get(f"{base}/{YEAR}/usage", headers=auth(keeper)).json()}
    assert usage["Jones"]["time_periods_allowed"] == 2
    assert usage["Lee"]["time_periods_allowed"] == 2
    # Smith already booked a primary period, so that allowance stays as it was
    assert usage["Smith"]["time_periods_allowed"] == 1
    assert all(r["secondary_periods_allowed"] == 1 for r in usage.values())


def test_turn_notification_sent_once(client, org, keeper, rotation, db, sent_emails):
    org.automated_selection_turn_notifications_enabled = True
    db.commit()
    client.post(f"/organizations/{org.id}/rotation/{YEAR}/selection/start", headers=auth(keeper))

    service = RotationService(db)
    now = datetime(YEAR, 6, 1)
    first = asyncio.run(service.check_selection_turn_changes(now=now))
    second = asyncio.run(service.check_selection_turn_changes(now=now))

    assert first["notifications_sent"] == 1
    assert second["notifications_sent"] == 0
    assert sent_emails.await_count == 1
    assert sent_emails.await_args.kwargs["to"] == "smith.lead@example.com"
