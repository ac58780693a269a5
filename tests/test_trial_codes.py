from datetime import datetime, timedelta

from app.domain.trial_codes.service import CODE_ALPHABET, CODE_LENGTH, TrialCodeService, generate_code
from conftest import auth


def test_generated_codes_use_the_code_alphabet():
    code = generate_code()
    assert len(code) == CODE_LENGTH
    assert set(code) <= set(CODE_ALPHABET)


def test_supervisor_creates_and_lists_codes(client, supervisor):
    created = client.post("/trial-codes", json={"notes": "Spring outreach", "expires_in_days": 30}, headers=auth(supervisor))
    assert created.status_code == 200
    body = created.json()
    assert body["is_used"] is False
    assert body["expires_at"] is not None

    listed = client.get("/trial-codes", headers=auth(supervisor)).json()
    assert [c["code"] for c in listed] == [body["code"]]


def test_only_supervisors_create_codes(client, admin):
    assert client.post("/trial-codes", json={}, headers=auth(admin)).status_code == 403


def test_expiry_must_be_reasonable(client, supervisor):
    assert client.post("/trial-codes", json={"expires_in_days": 0}, headers=auth(supervisor)).status_code == 422


def test_validate_is_public_and_normalizes(client, supervisor):
    code = client.post("/trial-codes", json={}, headers=auth(supervisor)).json()["code"]

    response = client.post("/trial-codes/validate", json={"code": f"  {code.lower()} "})
    assert response.json() == {"valid": True, "message": None}

    response = client.post("/trial-codes/validate", json={"code": "NOTACODE"})
    assert response.json()["valid"] is False


def test_code_is_consumed_once(client, supervisor, outsider, admin):
    code = client.post("/trial-codes", json={}, headers=auth(supervisor)).json()["code"]

    assert client.post("/trial-codes/consume", json={"code": code}, headers=auth(outsider)).status_code == 200
    assert client.post("/trial-codes/consume", json={"code": code}, headers=auth(admin)).status_code == 409
    assert client.post("/trial-codes/validate", json={"code": code}).json()["valid"] is False

    used = client.get("/trial-codes", headers=auth(supervisor)).json()[0]
    assert used["used_by_user_id"] == outsider.id


def test_consume_requires_sign_in(client):
    assert client.post("/trial-codes/consume", json={"code": "ABCD1234"}).status_code == 401


def test_expired_codes_are_rejected(db, supervisor):
    service = TrialCodeService(db)
    issued = datetime(2025, 1, 1)
    trial_code = service.create_code(supervisor.id, expires_in_days=7, now=issued)

    assert service.validate_code(trial_code.code, now=issued + timedelta(days=6)) is True
    assert service.validate_code(trial_code.code, now=issued + timedelta(days=8)) is False
    assert service.consume_code(trial_code.code, supervisor.id, now=issued + timedelta(days=8)) is False
    assert service.consume_code(trial_code.code, supervisor.id, now=issued + timedelta(days=1)) is True
