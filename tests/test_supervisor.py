from datetime import date

from app.models import FamilyGroup, Organization, User, UserOrganization
from app.models_reservation import Reservation
from conftest import auth


def test_supervisor_overview_counts(client, db, org, admin, groups, supervisor):
    db.add(Reservation(organization_id=org.id, family_group="Smith", start_date=date(2025, 7, 4), end_date=date(2025, 7, 8)))
    db.commit()

    overview = client.get("/supervisor/organizations", headers=auth(supervisor)).json()
    assert len(overview) == 1
    assert overview[0]["family_group_count"] == 3
    assert overview[0]["reservation_count"] == 1
    assert overview[0]["member_count"] == 1


def test_non_supervisors_are_refused(client, admin):
    assert client.get("/supervisor/organizations", headers=auth(admin)).status_code == 403


def test_delete_organization_data(client, db, org, admin, groups, supervisor):
    response = client.delete(f"/supervisor/organizations/{org.id}", headers=auth(supervisor))
    assert response.status_code == 200
    body = response.json()
    assert body["deleted"]["family_groups"] == 3
    assert body["deleted"]["user_organizations"] == 1
    assert body["records_deleted"] == 5

    db.expire_all()
    assert db.query(Organization).count() == 0
    assert db.query(FamilyGroup).count() == 0
    assert db.query(UserOrganization).count() == 0
    # Profiles outlive the organization
    assert db.query(User).filter(User.id == admin.id).count() == 1

    audit = client.get("/supervisor/audit", headers=auth(supervisor)).json()
    assert audit[0]["operation_type"] == "delete_organization_data"


def test_bulk_update_leads(client, db, org, groups, supervisor):
    response = client.post(
        f"/supervisor/organizations/{org.id}/leads",
        json={"updates": [
            {"family_group": "Smith", "lead_name": "Ann Smith", "lead_email": "Ann@Example.com"},
            {"family_group": "Nobody", "lead_phone": "555-111-2222"},
        ]},
        headers=auth(supervisor),
    )
    body = response.json()
    assert body["records_affected"] == 1
    assert body["details"] == {"updated": ["Smith"], "not_found": ["Nobody"]}

    db.expire_all()
    smith = db.query(FamilyGroup).filter(FamilyGroup.name == "Smith").one()
    assert (smith.lead_name, smith.lead_email) == ("Ann Smith", "ann@example.com")


def test_bulk_reassign_members(client, db, org, groups, smith_member, supervisor):
    response = client.post(
        f"/supervisor/organizations/{org.id}/reassign-members",
        json={"member_emails": ["SMITHY@example.com", "ghost@example.com"], "family_group": "Lee"},
        headers=auth(supervisor),
    )
    body = response.json()
    assert body["records_affected"] == 1
    assert body["details"]["not_found"] == ["ghost@example.com"]

    db.expire_all()
    assert db.get(User, smith_member.id).family_group == "Lee"

    missing = client.post(
        f"/supervisor/organizations/{org.id}/reassign-members",
        json={"member_emails": ["smithy@example.com"], "family_group": "Nope"},
        headers=auth(supervisor),
    )
    assert missing.status_code == 404


def test_manage_supervisors(client, supervisor):
    added = client.post("/supervisor/supervisors", json={"email": "Second@Example.com", "name": "Sec Ond"}, headers=auth(supervisor))
    assert added.json()["email"] == "second@example.com"
    assert client.post("/supervisor/supervisors", json={"email": "second@example.com"}, headers=auth(supervisor)).status_code == 409

    toggled = client.post(f"/supervisor/supervisors/{added.json()['id']}/toggle", headers=auth(supervisor))
    assert toggled.json()["is_active"] is False

    mine = next(s for s in client.get("/supervisor/supervisors", headers=auth(supervisor)).json() if s["email"] == supervisor.email)
    assert client.post(f"/supervisor/supervisors/{mine['id']}/toggle", headers=auth(supervisor)).status_code == 409


def test_alternate_supervisor(client, org, supervisor):
    response = client.put(
        f"/supervisor/organizations/{org.id}/alternate-supervisor",
        json={"email": "Backup@Example.com"},
        headers=auth(supervisor),
    )
    assert response.json()["alternate_supervisor_email"] == "backup@example.com"
