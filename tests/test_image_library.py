from collections import namedtuple

import pytest

from app.domain.checklists.image_references import count_references, find_usage, rewrite_checklist
from conftest import auth

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

FakeChecklist = namedtuple("FakeChecklist", "id checklist_type images items")


def url(org, path):
    return f"/organizations/{org.id}{path}"


def test_count_references_counts_each_location():
    checklists = [
        FakeChecklist("c1", "arrival", ["a.png", "b.png"], [{"text": "Water", "imageUrls": ["a.png"]}]),
        FakeChecklist("c2", "departure", [], [{"text": "Lock up", "imageUrls": ["a.png"]}, {"text": "Trash"}]),
    ]
    assert count_references(checklists) == {"a.png": 3, "b.png": 1}
    usage = find_usage(checklists, "a.png")
    assert [u["location"] for u in usage] == ["top_level", "item", "item"]
    assert usage[2]["item_text"] == "Lock up"


def test_rewrite_checklist_dedupes_and_strips():
    class Checklist:
        images = ["old.png", "new.png"]
        items = [{"text": "Dock", "imageUrls": ["old.png"]}]

    checklist = Checklist()
    assert rewrite_checklist(checklist, "old.png", "new.png") is True
    assert checklist.images == ["new.png"]
    assert checklist.items[0]["imageUrls"] == ["new.png"]

    assert rewrite_checklist(checklist, "new.png", None) is True
    assert checklist.images == []
    assert checklist.items[0]["imageUrls"] == []
    assert rewrite_checklist(checklist, "missing.png", None) is False


@pytest.fixture
def image(client, org, keeper, storage):
    response = client.post(
        url(org, "/checklist-images/upload"),
        files={"file": ("Dock Photo.png", PNG, "image/png")},
        data={"marker_name": "Dock"},
        headers=auth(keeper),
    )
    assert response.status_code == 200
    return response.json()


def make_checklist(client, org, keeper, image_url):
    response = client.post(
        url(org, "/checklists"),
        json={
            "checklist_type": "Arrival",
            "images": [image_url],
            "items": [{"text": "Check the dock", "imageUrls": [image_url]}],
        },
        headers=auth(keeper),
    )
    assert response.status_code == 200
    return response.json()


def test_upload_stores_object(image, storage, org):
    assert image["usage_count"] == 0
    assert image["content_type"] == "image/png"
    assert image["image_url"].startswith(f"{org.id}/checklist-images/")
    assert storage.objects[image["image_url"]] == PNG


def test_upload_rejects_non_images(client, org, keeper, storage):
    response = client.post(
        url(org, "/checklist-images/upload"),
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth(keeper),
    )
    assert response.status_code == 400


def test_members_cannot_manage_library(client, org, smith_member, storage):
    response = client.post(
        url(org, "/checklist-images/upload"),
        files={"file": ("dock.png", PNG, "image/png")},
        headers=auth(smith_member),
    )
    assert response.status_code == 403


def test_usage_and_recount(client, org, keeper, image):
    make_checklist(client, org, keeper, image["image_url"])

    usage = client.get(url(org, "/checklist-images/usage"), params={"image_url": image["image_url"]}, headers=auth(keeper)).json()
    assert len(usage) == 2

    assert client.post(url(org, "/checklist-images/recount"), headers=auth(keeper)).json()["images_updated"] == 1
    listed = client.get(url(org, "/checklist-images"), params={"search": "dock"}, headers=auth(keeper)).json()
    assert listed[0]["usage_count"] == 2


def test_replace_globally(client, org, keeper, image):
    checklist = make_checklist(client, org, keeper, image["image_url"])
    client.post(
        url(org, "/checklist-images"),
        json={"image_url": "https://cdn.example.com/new-dock.png", "original_filename": "new-dock.png"},
        headers=auth(keeper),
    )

    response = client.post(
        url(org, "/checklist-images/replace"),
        json={"old_image_url": image["image_url"], "new_image_url": "https://cdn.example.com/new-dock.png"},
        headers=auth(keeper),
    )
    assert response.json()["affected_checklists"] == 1

    updated = client.get(url(org, f"/checklists/{checklist['id']}"), headers=auth(keeper)).json()
    assert updated["images"] == ["https://cdn.example.com/new-dock.png"]
    assert updated["items"][0]["imageUrls"] == ["https://cdn.example.com/new-dock.png"]

    counts = {i["image_url"]: i["usage_count"] for i in client.get(url(org, "/checklist-images"), headers=auth(keeper)).json()}
    assert counts == {image["image_url"]: 0, "https://cdn.example.com/new-dock.png": 2}


def test_delete_in_use_requires_force(client, org, keeper, image, storage):
    checklist = make_checklist(client, org, keeper, image["image_url"])

    refused = client.post(url(org, "/checklist-images/delete"), json={"image_url": image["image_url"]}, headers=auth(keeper)).json()
    assert refused["requires_force"] is True
    assert refused["usage_count"] == 2

    forced = client.post(
        url(org, "/checklist-images/delete"), json={"image_url": image["image_url"], "force": True}, headers=auth(keeper)
    ).json()
    assert forced == {"success": True, "removed_references": 2}
    assert image["image_url"] not in storage.objects

    updated = client.get(url(org, f"/checklists/{checklist['id']}"), headers=auth(keeper)).json()
    assert updated["images"] == []
    assert client.get(url(org, "/checklist-images"), headers=auth(keeper)).json() == []
