import json
from datetime import datetime, timedelta

from app.domain.backups.service import BackupService, backup_timestamp
from app.models import BackupMetadata, FamilyGroup, Organization
from conftest import auth


def backups_url(org, path=""):
    return f"/organizations/{org.id}/backups{path}"


def test_backup_timestamp_format():
    assert backup_timestamp(datetime(2025, 3, 9, 14, 5, 7, 123456)) == "2025-03-09T14-05-07-123Z"


def test_create_backup_uploads_snapshot(client, org, admin, groups, storage):
    response = client.post(backups_url(org), headers=auth(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["backups_created"] == 1
    result = body["results"][0]
    assert result["status"] == "success"
    assert result["file_path"].startswith(f"{org.id}/Lakeside_Cabin_backup_")

    payload = json.loads(storage.objects[f"organization-backups/{result['file_path']}"])
    assert payload["metadata"]["organization_name"] == "Lakeside Cabin"
    assert payload["metadata"]["backup_type"] == "manual"
    assert {g["name"] for g in payload["data"]["family_groups"]} == {"Smith", "Jones", "Lee"}
    assert [m["role"] for m in payload["data"]["user_organizations"]] == ["admin"]

    listed = client.get(backups_url(org), headers=auth(admin)).json()
    assert [b["file_path"] for b in listed] == [result["file_path"]]


def test_backups_are_admin_only(client, org, treasurer, storage):
    assert client.post(backups_url(org), headers=auth(treasurer)).status_code == 403


def test_retention_keeps_newest(db, org, storage):
    service = BackupService(db)
    start = datetime(2025, 1, 1, 3, 0)
    for day in range(5):
        service.create_organization_backup(org.id, "automatic", now=start + timedelta(days=day))

    backups = service.list_backups(org.id)
    assert len(backups) == 3
    assert backups[0].created_at.date() == (start + timedelta(days=4)).date()
    assert len(storage.objects) == 3


def test_failed_backup_is_reported(db, org):
    # Storage is not configured here
    result = BackupService(db).create_organization_backup(org.id)
    assert result["backups_created"] == 0
    assert result["results"][0]["status"] == "error"


def test_download_url(client, org, admin, storage):
    client.post(backups_url(org), headers=auth(admin))
    backup_id = client.get(backups_url(org), headers=auth(admin)).json()[0]["id"]
    url = client.get(backups_url(org, f"/{backup_id}/download"), headers=auth(admin)).json()["url"]
    assert url.startswith(f"https://r2.test/organization-backups/{org.id}/")
    assert client.get(backups_url(org, "/missing/download"), headers=auth(admin)).status_code == 404


def test_restore_preview_then_confirm(client, db, org, admin, groups, storage):
    client.post(backups_url(org), headers=auth(admin))
    backup_id = client.get(backups_url(org), headers=auth(admin)).json()[0]["id"]

    # Changes made after the backup
    db.query(FamilyGroup).filter(FamilyGroup.name == "Lee").delete()
    db.add(FamilyGroup(organization_id=org.id, name="Newcomers", host_members=[]))
    db.query(Organization).filter(Organization.id == org.id).update({"name": "Renamed Cabin"})
    db.commit()

    preview = client.post(backups_url(org, f"/{backup_id}/restore"), json={}, headers=auth(admin)).json()
    assert preview["preview"] is True
    assert preview["data"]["organization"] == "Lakeside Cabin"
    assert preview["data"]["data_summary"]["family_groups"] == 3

    restored = client.post(backups_url(org, f"/{backup_id}/restore"), json={"confirm": True}, headers=auth(admin))
    assert restored.status_code == 200
    body = restored.json()
    assert body["restored_counts"]["family_groups"] == 3
    assert f"organization-backups/{body['pre_restore_backup']}" in storage.objects

    db.expire_all()
    names = {g.name for g in db.query(FamilyGroup).filter(FamilyGroup.organization_id == org.id)}
    assert names == {"Smith", "Jones", "Lee"}
    assert db.get(Organization, org.id).name == "Lakeside Cabin"

    kinds = [b.backup_type for b in db.query(BackupMetadata).filter(BackupMetadata.organization_id == org.id)]
    assert sorted(kinds) == ["manual", "restore_operation"]


def test_supervisor_backs_up_every_organization(client, db, org, supervisor, storage):
    db.add(Organization(name="Second Lodge", code="LODGE2"))
    db.commit()

    response = client.post("/supervisor/backups", headers=auth(supervisor))
    assert response.json()["backups_created"] == 2


def test_supervisor_backup_route_requires_supervisor(client, admin, storage):
    assert client.post("/supervisor/backups", headers=auth(admin)).status_code == 403
