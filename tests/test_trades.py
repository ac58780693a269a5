from datetime import date

import pytest

from app.models_reservation import Reservation
from conftest import auth


def trades_url(org, path=""):
    return f"/organizations/{org.id}/trades{path}"


@pytest.fixture
def bookings(db, org, groups):
    jones = Reservation(
        organization_id=org.id,
        family_group="Jones",
        start_date=date(2025, 7, 4),
        end_date=date(2025, 7, 11),
        host_assignments=[{"name": "Jo Jones"}],
    )
    smith = Reservation(
        organization_id=org.id,
        family_group="Smith",
        start_date=date(2025, 8, 1),
        end_date=date(2025, 8, 8),
    )
    db.add_all([jones, smith])
    db.commit()
    return {"Jones": jones.id, "Smith": smith.id}


def request_payload(**overrides):
    payload = {
        "requester_family_group": "Smith",
        "target_family_group": "Jones",
        "requested_start_date": "2025-07-04",
        "requested_end_date": "2025-07-11",
        "requester_message": "Could we have the Fourth this year?",
    }
    payload.update(overrides)
    return payload


def test_member_requests_for_own_group_and_target_is_notified(client, org, smith_member, bookings, sent_emails):
    response = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert sent_emails.await_args.kwargs["to"] == "jones.lead@example.com"


def test_member_cannot_request_for_another_group(client, org, jones_member, bookings):
    response = client.post(trades_url(org), json=request_payload(), headers=auth(jones_member))
    assert response.status_code == 403


def test_trade_offer_requires_offered_dates(client, org, smith_member, bookings):
    response = client.post(
        trades_url(org), json=request_payload(request_type="trade_offer"), headers=auth(smith_member)
    )
    assert response.status_code == 422


def test_approval_executes_the_transfer(client, org, db, smith_member, jones_member, bookings):
    trade_id = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member)).json()["id"]

    # Only the target group may respond
    assert client.post(trades_url(org, f"/{trade_id}/respond"), json={"approve": True}, headers=auth(smith_member)).status_code == 403

    response = client.post(
        trades_url(org, f"/{trade_id}/respond"), json={"approve": True, "message": "Enjoy"}, headers=auth(jones_member)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["trade"]["status"] == "approved"
    assert body["trade"]["execution_status"] == "completed"
    assert body["execution"]["success"] is True

    reservation = db.get(Reservation, bookings["Jones"])
    db.refresh(reservation)
    assert reservation.family_group == "Smith"
    assert reservation.host_assignments == []
    assert reservation.notes.startswith("Traded from Jones")


def test_trade_offer_swaps_both_reservations(client, org, db, smith_member, jones_member, bookings):
    payload = request_payload(
        request_type="trade_offer", offered_start_date="2025-08-01", offered_end_date="2025-08-08"
    )
    trade_id = client.post(trades_url(org), json=payload, headers=auth(smith_member)).json()["id"]
    client.post(trades_url(org, f"/{trade_id}/respond"), json={"approve": True}, headers=auth(jones_member))

    db.expire_all()
    assert db.get(Reservation, bookings["Jones"]).family_group == "Smith"
    assert db.get(Reservation, bookings["Smith"]).family_group == "Jones"


def test_execute_is_idempotent(client, org, keeper, smith_member, jones_member, bookings):
    trade_id = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member)).json()["id"]
    client.post(trades_url(org, f"/{trade_id}/respond"), json={"approve": True}, headers=auth(jones_member))

    response = client.post(trades_url(org, f"/{trade_id}/execute"), headers=auth(keeper))
    assert response.status_code == 200
    assert response.json()["already_executed"] is True


def test_missing_target_reservation_marks_failure(client, org, db, smith_member, jones_member, bookings):
    trade_id = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member)).json()["id"]
    db.get(Reservation, bookings["Jones"]).status = "cancelled"
    db.commit()

    body = client.post(
        trades_url(org, f"/{trade_id}/respond"), json={"approve": True}, headers=auth(jones_member)
    ).json()
    assert body["execution"]["success"] is False
    assert body["trade"]["execution_status"] == "failed"


def test_rejected_and_cancelled_trades_are_final(client, org, smith_member, jones_member, bookings):
    rejected = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member)).json()["id"]
    body = client.post(
        trades_url(org, f"/{rejected}/respond"), json={"approve": False}, headers=auth(jones_member)
    ).json()
    assert body["trade"]["status"] == "rejected"
    assert body["execution"] is None

    cancelled = client.post(trades_url(org), json=request_payload(), headers=auth(smith_member)).json()["id"]
    assert client.post(trades_url(org, f"/{cancelled}/cancel"), headers=auth(jones_member)).status_code == 403
    assert client.post(trades_url(org, f"/{cancelled}/cancel"), headers=auth(smith_member)).json()["status"] == "cancelled"
    assert client.post(trades_url(org, f"/{cancelled}/respond"), json={"approve": True}, headers=auth(jones_member)).status_code == 409

    listed = client.get(trades_url(org), params={"status": "pending"}, headers=auth(smith_member)).json()
    assert listed == []
