from datetime import date, timedelta

import pytest

from app.models_financial import Payment
from app.domain.financial.service import derive_payment_status
from conftest import auth


def url(org, path=""):
    return f"/organizations/{org.id}/financial{path}"


@pytest.fixture
def payment(client, org, treasurer, groups):
    response = client.post(
        url(org, "/payments"),
        json={"family_group": "Smith", "amount": 300, "payment_type": "other"},
        headers=auth(treasurer),
    )
    assert response.status_code == 200
    return response.json()


def test_status_derivation():
    today = date(2025, 7, 1)
    payment = Payment(amount=100, amount_paid=0, status="pending", due_date=date(2025, 6, 1))
    assert derive_payment_status(payment, today) == "overdue"
    payment.amount_paid = 40
    assert derive_payment_status(payment, today) == "partial"
    payment.amount_paid = 100
    assert derive_payment_status(payment, today) == "paid"
    payment.status = "refunded"
    assert derive_payment_status(payment, today) == "refunded"


def test_members_cannot_create_payments(client, org, smith_member, groups):
    response = client.post(
        url(org, "/payments"), json={"family_group": "Smith", "amount": 10}, headers=auth(smith_member)
    )
    assert response.status_code == 403


def test_payment_for_unknown_group(client, org, treasurer, groups):
    response = client.post(url(org, "/payments"), json={"family_group": "Nobody", "amount": 10}, headers=auth(treasurer))
    assert response.status_code == 404


def test_record_partial_then_full(client, org, treasurer, payment):
    record = url(org, f"/payments/{payment['id']}/record")

    response = client.post(record, json={"amount": 100, "payment_method": "venmo"}, headers=auth(treasurer))
    body = response.json()
    assert body["status"] == "partial"
    assert body["balance_due"] == 200

    response = client.post(record, json={"amount": 250}, headers=auth(treasurer))
    assert response.status_code == 422

    response = client.post(record, json={"amount": 200}, headers=auth(treasurer))
    body = response.json()
    assert body["status"] == "paid"
    assert body["paid_date"] == date.today().isoformat()


def test_cannot_record_on_cancelled(client, org, treasurer, payment):
    client.patch(url(org, f"/payments/{payment['id']}"), json={"status": "cancelled"}, headers=auth(treasurer))
    response = client.post(url(org, f"/payments/{payment['id']}/record"), json={"amount": 10}, headers=auth(treasurer))
    assert response.status_code == 409


def test_amount_cannot_drop_below_paid(client, org, treasurer, payment):
    client.post(url(org, f"/payments/{payment['id']}/record"), json={"amount": 150}, headers=auth(treasurer))
    response = client.patch(url(org, f"/payments/{payment['id']}"), json={"amount": 100}, headers=auth(treasurer))
    assert response.status_code == 422


@pytest.mark.parametrize("field", ["amount", "payment_type", "status"])
def test_required_fields_cannot_be_cleared(client, org, treasurer, payment, field):
    response = client.patch(url(org, f"/payments/{payment['id']}"), json={field: None}, headers=auth(treasurer))
    assert response.status_code == 422

    stored = client.get(url(org, f"/payments/{payment['id']}"), headers=auth(treasurer)).json()
    assert stored["amount"] == 300
    assert stored["payment_type"] == "other"


def test_partial_update_keeps_other_fields(client, org, treasurer, payment):
    response = client.patch(url(org, f"/payments/{payment['id']}"), json={"notes": "Cabin share"}, headers=auth(treasurer))
    assert response.status_code == 200
    assert response.json()["amount"] == 300
    assert response.json()["notes"] == "Cabin share"


def test_overdue_listing_refreshes_status(client, org, treasurer, smith_member, groups):
    past_due = (date.today() - timedelta(days=3)).isoformat()
    client.post(
        url(org, "/payments"),
        json={"family_group": "Jones", "amount": 50, "due_date": past_due},
        headers=auth(treasurer),
    )
    response = client.get(url(org, "/payments/overdue"), headers=auth(smith_member))
    assert [p["family_group"] for p in response.json()] == ["Jones"]
    assert response.json()[0]["status"] == "overdue"


def test_summary_and_balances(client, org, treasurer, payment):
    client.post(url(org, f"/payments/{payment['id']}/record"), json={"amount": 100}, headers=auth(treasurer))

    summary = client.get(url(org, "/payments/summary"), headers=auth(treasurer)).json()
    assert summary["total"] == 1
    assert summary["partial"] == 1
    assert summary["total_outstanding"] == 200

    balances = client.get(url(org, "/payments/balances"), headers=auth(treasurer)).json()
    assert balances["Smith"]["outstanding_balance"] == 200
    assert balances["Jones"]["total_charged"] == 0


def test_reservation_payment_split(client, org, treasurer, keeper, groups):
    client.put(
        url(org, "/settings"),
        json={"financial_method": "flat-rate-per-day", "nightly_rate": 100},
        headers=auth(treasurer),
    )
    start = date.today() + timedelta(days=30)
    reservation = client.post(
        f"/organizations/{org.id}/reservations",
        json={"family_group": "Lee", "start_date": str(start), "end_date": str(start + timedelta(days=4))},
        headers=auth(keeper),
    ).json()
    assert reservation["total_cost"] == 400

    path = url(org, f"/reservations/{reservation['id']}/payments")
    response = client.post(path, json={"split_deposit": True, "deposit_percentage": 25}, headers=auth(treasurer))
    payments = response.json()
    assert [p["payment_type"] for p in payments] == ["reservation_deposit", "reservation_balance"]
    assert [p["amount"] for p in payments] == [100, 300]
    assert payments[0]["due_date"] == date.today().isoformat()
    assert payments[1]["due_date"] == start.isoformat()

    response = client.post(path, json={"split_deposit": False}, headers=auth(treasurer))
    assert response.status_code == 409


def test_billing_calculation_needs_settings(client, org, smith_member, treasurer):
    body = {"guests": 2, "nights": 3}
    assert client.post(url(org, "/billing/calculate"), json=body, headers=auth(smith_member)).status_code == 400

    client.put(
        url(org, "/settings"),
        json={"financial_method": "per-person-per-day", "nightly_rate": 15, "pet_fee": 40},
        headers=auth(treasurer),
    )
    response = client.post(url(org, "/billing/calculate"), json={**body, "has_pets": True}, headers=auth(smith_member))
    assert response.json()["total"] == 130

    response = client.post(
        url(org, "/billing/calculate"),
        json={**body, "daily_occupancy": {"2025-07-01": 2}},
        headers=auth(smith_member),
    )
    assert response.status_code == 422


def test_bulk_reminders(client, org, treasurer, payment, sent_emails):
    response = client.post(
        url(org, "/payments/reminders"),
        json={"family_groups": ["Smith", "Jones"], "year": 2025},
        headers=auth(treasurer),
    )
    body = response.json()
    assert body["sent"] == 1
    assert body["details"]["skipped"] == ["Jones"]
    assert sent_emails.await_args.kwargs["to"] == "smith.lead@example.com"


def test_receipt_upload_and_image_link(client, org, smith_member, treasurer, storage):
    response = client.post(
        url(org, "/receipts"),
        data={"description": "Propane refill", "amount": "42.50", "date": "2025-07-04", "family_group": "Smith"},
        files={"file": ("tank.png", b"\x89PNG fake", "image/png")},
        headers=auth(smith_member),
    )
    assert response.status_code == 200
    receipt = response.json()
    assert receipt["amount"] == 42.5
    assert len(storage.objects) == 1

    link = client.get(url(org, f"/receipts/{receipt['id']}/image-url"), headers=auth(smith_member)).json()
    assert link["url"].startswith("https://r2.test/")

    assert client.delete(url(org, f"/receipts/{receipt['id']}"), headers=auth(treasurer)).status_code == 200
    assert storage.objects == {}
