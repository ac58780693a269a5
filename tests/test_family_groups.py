from app.domain.family_groups.service import FAMILY_GROUP_COLORS
from app.models import User
from app.models_reservation import Reservation
from app.models_rotation import RotationOrder
from conftest import auth


def groups_url(org, path=""):
    return f"/organizations/{org.id}/family-groups{path}"


def test_create_group_gets_first_free_color(client, org, keeper):
    response = client.post(
        groups_url(org),
        json={
            "name": "  The   Smiths ",
            "lead_name": "Ann Smith",
            "lead_email": "ANN@Example.com",
            "lead_phone": "(555) 123-4567",
            "host_members": [{"name": "Bob Smith", "email": "bob@example.com", "canHost": True}],
        },
        headers=auth(keeper),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "The Smiths"
    assert body["lead_email"] == "ann@example.com"
    assert body["color"] == FAMILY_GROUP_COLORS[0]
    assert body["host_members"][0]["canHost"] is True


def test_lead_name_needs_first_and_last(client, org, keeper):
    response = client.post(groups_url(org), json={"name": "Smith", "lead_name": "Ann"}, headers=auth(keeper))
    assert response.status_code == 422


def test_duplicate_member_emails_rejected(client, org, keeper):
    response = client.post(
        groups_url(org),
        json={
            "name": "Smith",
            "host_members": [
                {"name": "Bob", "email": "same@example.com"},
                {"name": "Sue", "email": "same@example.com"},
            ],
        },
        headers=auth(keeper),
    )
    assert response.status_code == 422


def test_duplicate_group_name_conflicts(client, org, keeper, groups):
    response = client.post(groups_url(org), json={"name": "Smith"}, headers=auth(keeper))
    assert response.status_code == 409


def test_members_edit_only_their_own_group(client, org, smith_member, groups):
    listed = client.get(groups_url(org), headers=auth(smith_member)).json()
    by_name = {g["name"]: g["id"] for g in listed}

    response = client.patch(
        groups_url(org, f"/{by_name['Smith']}"), json={"lead_phone": "555-987-6543"}, headers=auth(smith_member)
    )
    assert response.status_code == 200
    assert client.patch(
        groups_url(org, f"/{by_name['Jones']}"), json={"lead_phone": "555-987-6543"}, headers=auth(smith_member)
    ).status_code == 403


def test_color_uniqueness(client, org, keeper, groups):
    listed = client.get(groups_url(org), headers=auth(keeper)).json()
    assigned = client.post(groups_url(org, "/colors/assign-defaults"), headers=auth(keeper))
    # Keepers cannot run the admin-only bulk assignment
    assert assigned.status_code == 403

    first, second = listed[0]["id"], listed[1]["id"]
    assert client.put(groups_url(org, f"/{first}/color"), json={"color": "#ef4444"}, headers=auth(keeper)).json()["color"] == "#EF4444"
    response = client.put(groups_url(org, f"/{second}/color"), json={"color": "#EF4444"}, headers=auth(keeper))
    assert response.status_code == 409

    available = client.get(groups_url(org, "/colors/available"), headers=auth(keeper)).json()["colors"]
    assert "#EF4444" not in available


def test_assign_default_colors(client, org, admin, groups):
    response = client.post(groups_url(org, "/colors/assign-defaults"), headers=auth(admin))
    assigned = response.json()["assigned"]
    assert set(assigned) == {"Smith", "Jones", "Lee"}
    assert len(set(assigned.values())) == 3


def test_rename_cascades(client, org, admin, keeper, smith_member, groups, db):
    client.put(
        f"/organizations/{org.id}/rotation",
        json={"rotation_year": 2025, "rotation_order": ["Smith", "Jones", "Lee"]},
        headers=auth(keeper),
    )
    client.post(
        f"/organizations/{org.id}/reservations",
        json={"family_group": "Smith", "start_date": "2025-07-04", "end_date": "2025-07-07"},
        headers=auth(keeper),
    )

    response = client.post(
        groups_url(org, "/rename"), json={"old_name": "Smith", "new_name": "Smythe"}, headers=auth(admin)
    )
    assert response.status_code == 200
    updated = response.json()["updated"]
    assert updated["reservations.family_group"] == 1
    assert updated["rotation_orders.rotation_order"] == 1
    assert updated["users.family_group"] == 1

    db.expire_all()
    assert db.query(Reservation).one().family_group == "Smythe"
    assert db.query(RotationOrder).one().rotation_order == ["Smythe", "Jones", "Lee"]
    assert db.query(User).filter(User.id == smith_member.id).one().family_group == "Smythe"


def test_rename_to_existing_name_conflicts(client, org, admin, groups):
    response = client.post(
        groups_url(org, "/rename"), json={"old_name": "Smith", "new_name": "Jones"}, headers=auth(admin)
    )
    assert response.status_code == 409
