from conftest import auth


def url(org, path):
    return f"/organizations/{org.id}{path}"


def test_checklist_crud_sanitizes_items(client, org, keeper, smith_member):
    created = client.post(
        url(org, "/checklists"),
        json={"checklist_type": " Closing ", "items": [{"text": "Drain pipes <script>x()</script>"}]},
        headers=auth(keeper),
    )
    assert created.status_code == 200
    checklist = created.json()
    assert checklist["checklist_type"] == "closing"
    assert "<script>" not in checklist["items"][0]["text"]
    assert checklist["items"][0]["id"]

    # Members read but cannot edit
    assert client.get(url(org, "/checklists"), params={"checklist_type": "closing"}, headers=auth(smith_member)).json()[0]["id"] == checklist["id"]
    assert client.patch(url(org, f"/checklists/{checklist['id']}"), json={"images": []}, headers=auth(smith_member)).status_code == 403

    assert client.post(url(org, "/checklists"), json={"checklist_type": "x", "items": [{"text": "   "}]}, headers=auth(keeper)).status_code == 422
    assert client.delete(url(org, f"/checklists/{checklist['id']}"), headers=auth(keeper)).status_code == 200
    assert client.get(url(org, f"/checklists/{checklist['id']}"), headers=auth(keeper)).status_code == 404


def test_checkin_session_flow(client, org, smith_member):
    session = client.post(
        url(org, "/checkins"),
        json={"check_date": "2025-07-04", "session_type": "arrival", "guest_names": ["Ann", "Bob"]},
        headers=auth(smith_member),
    ).json()
    assert session["family_group"] == "Smith"
    assert session["completed_at"] is None

    updated = client.patch(
        url(org, f"/checkins/{session['id']}"), json={"checklist_responses": {"water": True}}, headers=auth(smith_member)
    ).json()
    assert updated["checklist_responses"] == {"water": True}

    completed = client.post(url(org, f"/checkins/{session['id']}/complete"), headers=auth(smith_member)).json()
    assert completed["completed_at"] is not None
    assert client.patch(
        url(org, f"/checkins/{session['id']}"), json={"notes": "late"}, headers=auth(smith_member)
    ).status_code == 409

    listed = client.get(url(org, "/checkins"), params={"family_group": "Smith"}, headers=auth(smith_member)).json()
    assert [s["id"] for s in listed] == [session["id"]]


def test_survey_responses(client, org, smith_member):
    client.post(url(org, "/surveys"), json={"responses": {"rating": 5}}, headers=auth(smith_member))
    listed = client.get(url(org, "/surveys"), headers=auth(smith_member)).json()
    assert listed[0]["responses"] == {"rating": 5}
    assert listed[0]["family_group"] == "Smith"
