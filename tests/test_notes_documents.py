from conftest import auth


def notes_url(org, path=""):
    return f"/organizations/{org.id}/notes{path}"


def docs_url(org, path=""):
    return f"/organizations/{org.id}/documents{path}"


def test_notes_are_sanitized_and_pinned_first(client, org, smith_member):
    first = client.post(
        notes_url(org),
        json={"title": "Water heater", "content": "<script>alert(1)</script><p>Breaker 4</p>", "tags": [" Utilities ", "utilities"]},
        headers=auth(smith_member),
    ).json()
    assert "<script>" not in first["content"]
    assert "<p>Breaker 4</p>" in first["content"]
    assert first["tags"] == ["utilities"]

    pinned = client.post(
        notes_url(org), json={"title": "Wifi", "content": "Password on the fridge", "is_pinned": True}, headers=auth(smith_member)
    ).json()

    listed = client.get(notes_url(org), headers=auth(smith_member)).json()
    assert [n["id"] for n in listed] == [pinned["id"], first["id"]]

    found = client.get(notes_url(org), params={"search": "breaker"}, headers=auth(smith_member)).json()
    assert [n["id"] for n in found] == [first["id"]]


def test_only_author_or_admin_edits_notes(client, org, admin, smith_member, jones_member):
    note_id = client.post(notes_url(org), json={"title": "Boat", "content": "Key in the shed"}, headers=auth(smith_member)).json()["id"]

    assert client.patch(notes_url(org, f"/{note_id}"), json={"title": "Mine"}, headers=auth(jones_member)).status_code == 403
    assert client.patch(notes_url(org, f"/{note_id}"), json={"priority": "high"}, headers=auth(smith_member)).json()["priority"] == "high"
    assert client.delete(notes_url(org, f"/{note_id}"), headers=auth(jones_member)).status_code == 403
    assert client.delete(notes_url(org, f"/{note_id}"), headers=auth(admin)).status_code == 200
    assert client.get(notes_url(org, f"/{note_id}"), headers=auth(admin)).status_code == 404


def test_note_priority_is_validated(client, org, smith_member):
    response = client.post(notes_url(org), json={"title": "x", "content": "y", "priority": "urgent"}, headers=auth(smith_member))
    assert response.status_code == 422


def test_document_lifecycle(client, org, smith_member, jones_member, storage):
    uploaded = client.post(
        docs_url(org),
        files={"file": ("bylaws.pdf", b"%PDF-1.4 cabin bylaws", "application/pdf")},
        data={"category": "legal"},
        headers=auth(smith_member),
    )
    assert uploaded.status_code == 200
    document = uploaded.json()
    assert document["title"] == "bylaws.pdf"
    assert document["file_size"] == len(b"%PDF-1.4 cabin bylaws")

    listed = client.get(docs_url(org), params={"category": "legal"}, headers=auth(jones_member)).json()
    assert [d["id"] for d in listed] == [document["id"]]

    link = client.get(docs_url(org, f"/{document['id']}/download"), headers=auth(jones_member)).json()
    assert link["url"].startswith(f"https://r2.test/{org.id}/documents/")
    assert link["content_type"] == "application/pdf"

    assert client.delete(docs_url(org, f"/{document['id']}"), headers=auth(jones_member)).status_code == 403
    assert client.delete(docs_url(org, f"/{document['id']}"), headers=auth(smith_member)).status_code == 200
    assert storage.objects == {}


def test_document_type_is_checked(client, org, smith_member, storage):
    response = client.post(
        docs_url(org), files={"file": ("run.exe", b"MZ", "application/x-msdownload")}, headers=auth(smith_member)
    )
    assert response.status_code == 400
