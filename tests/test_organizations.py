from conftest import auth


def test_create_organization_makes_creator_admin(client, outsider):
    response = client.post(
        "/organizations", json={"name": "Pine Ridge", "code": " pine1 "}, headers=auth(outsider)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "PINE1"
    assert body["admin_email"] == outsider.email

    mine = client.get("/organizations/mine", headers=auth(outsider)).json()
    assert len(mine) == 1
    assert mine[0]["role"] == "admin"
    assert mine[0]["is_primary"] is True


def test_create_organization_rejects_taken_code(client, org, outsider):
    response = client.post(
        "/organizations", json={"name": "Copycat", "code": "lake01"}, headers=auth(outsider)
    )
    assert response.status_code == 409


def test_create_organization_validates_code(client, outsider):
    response = client.post(
        "/organizations", json={"name": "Pine Ridge", "code": "no-dashes"}, headers=auth(outsider)
    )
    assert response.status_code == 422


def test_requests_without_token_are_unauthorized(client, org):
    assert client.get(f"/organizations/{org.id}").status_code == 401


def test_join_by_code_is_idempotent(client, org, outsider):
    first = client.post("/organizations/join", json={"code": "lake01"}, headers=auth(outsider))
    assert first.status_code == 200
    assert first.json()["role"] == "member"
    assert first.json()["organization"]["id"] == org.id

    again = client.post("/organizations/join", json={"code": "LAKE01"}, headers=auth(outsider))
    assert again.status_code == 200

    members = client.get(f"/organizations/{org.id}/members", headers=auth(outsider)).json()
    assert [m["email"] for m in members].count(outsider.email) == 1


def test_join_unknown_code(client, outsider):
    response = client.post("/organizations/join", json={"code": "NOPE"}, headers=auth(outsider))
    assert response.status_code == 404


def test_join_with_elevated_role_needs_supervisor(client, org, outsider, supervisor):
    denied = client.post(
        "/organizations/join", json={"code": "LAKE01", "role": "admin"}, headers=auth(outsider)
    )
    assert denied.status_code == 403

    allowed = client.post(
        "/organizations/join", json={"code": "LAKE01", "role": "admin"}, headers=auth(supervisor)
    )
    assert allowed.status_code == 200
    assert allowed.json()["role"] == "admin"


def test_primary_organization_switches(client, org, admin):
    other = client.post("/organizations", json={"name": "Second Place", "code": "TWO2"}, headers=auth(admin))
    other_id = other.json()["id"]

    mine = {m["organization"]["id"]: m["is_primary"] for m in client.get("/organizations/mine", headers=auth(admin)).json()}
    assert mine == {org.id: True, other_id: False}

    response = client.post(f"/organizations/{other_id}/primary", headers=auth(admin))
    assert response.json()["is_primary"] is True
    mine = {m["organization"]["id"]: m["is_primary"] for m in client.get("/organizations/mine", headers=auth(admin)).json()}
    assert mine == {org.id: False, other_id: True}


def test_last_admin_cannot_leave_or_step_down(client, org, admin):
    assert client.post(f"/organizations/{org.id}/leave", headers=auth(admin)).status_code == 409
    response = client.put(
        f"/organizations/{org.id}/members/{admin.id}/role", json={"role": "member"}, headers=auth(admin)
    )
    assert response.status_code == 409


def test_admin_manages_roles(client, org, admin, smith_member):
    promoted = client.put(
        f"/organizations/{org.id}/members/{smith_member.id}/role", json={"role": "admin"}, headers=auth(admin)
    )
    assert promoted.json() == {"user_id": smith_member.id, "role": "admin"}

    # With a second admin the first may leave
    assert client.post(f"/organizations/{org.id}/leave", headers=auth(admin)).status_code == 200
    assert client.get(f"/organizations/{org.id}", headers=auth(admin)).status_code == 403


def test_members_cannot_change_roles_or_settings(client, org, smith_member, jones_member):
    response = client.put(
        f"/organizations/{org.id}/members/{jones_member.id}/role", json={"role": "admin"}, headers=auth(smith_member)
    )
    assert response.status_code == 403
    assert client.patch(f"/organizations/{org.id}", json={"name": "Mine"}, headers=auth(smith_member)).status_code == 403


def test_admin_updates_contacts(client, org, admin):
    response = client.patch(
        f"/organizations/{org.id}",
        json={"treasurer_email": "Money@Example.com", "automated_selection_turn_notifications_enabled": True},
        headers=auth(admin),
    )
    assert response.status_code == 200
    assert response.json()["treasurer_email"] == "money@example.com"
    assert response.json()["automated_selection_turn_notifications_enabled"] is True
