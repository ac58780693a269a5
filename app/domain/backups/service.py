"""
Backup service - JSON snapshots of an organization's data in object storage

A backup file holds ``metadata`` (organization, date, type) and ``data``
(one list of rows per table). Only the newest BACKUP_RETENTION_COUNT
backups per organization are kept.
"""

import json
import logging
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser
from fastapi import HTTPException
from sqlalchemy import Date, DateTime
from sqlalchemy.orm import Session

from ...config import BACKUP_BUCKET_PREFIX, BACKUP_RETENTION_COUNT
from ...models import BackupMetadata, Organization, User, UserOrganization
from ...shared.org_tables import MODELS_BY_TABLE, ORGANIZATION_SCOPED_MODELS
from ...utils.sanitization import safe_storage_name
from ...utils.storage import delete_object, generate_presigned_url, get_object, put_object

logger = logging.getLogger(__name__)

BACKUP_TYPES = ("manual", "automatic")
RESTORE_OPERATION = "restore_operation"

# Organization columns a restore writes back
RESTORABLE_ORG_COLUMNS = (
    "name",
    "admin_name",
    "admin_email",
    "admin_phone",
    "treasurer_name",
    "treasurer_email",
    "treasurer_phone",
    "calendar_keeper_name",
    "calendar_keeper_email",
    "calendar_keeper_phone",
    "alternate_supervisor_email",
    "automated_selection_turn_notifications_enabled",
)


def serialize_row(row) -> dict:
    result = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        result[column.key] = value
    return result


def deserialize_row(model, data: dict) -> dict:
    """Column values for ``model`` from a serialized row, parsing dates back"""
    values = {}
    for column in model.__table__.columns:
        if column.key not in data:
            continue
        value = data[column.key]
        if isinstance(value, str):
            if isinstance(column.type, DateTime):
                value = date_parser.isoparse(value)
            elif isinstance(column.type, Date):
                value = date_parser.isoparse(value).date()
        values[column.key] = value
    return values


def backup_timestamp(now: datetime) -> str:
    return now.strftime("%Y-%m-%dT%H-%M-%S-%f")[:-3] + "Z"


def storage_key(file_path: str) -> str:
    return f"{BACKUP_BUCKET_PREFIX}/{file_path}"


class BackupService:
    """Service layer for organization backups"""

    def __init__(self, db: Session):
        self.db = db

    def build_backup_data(self, organization: Organization, backup_type: str, now: datetime) -> dict:
        data: dict[str, list] = {"organizations": [serialize_row(organization)]}
        for model in ORGANIZATION_SCOPED_MODELS:
            rows = self.db.query(model).filter(model.organization_id == organization.id).all()
            data[model.__tablename__] = [serialize_row(r) for r in rows]

        memberships = (
            self.db.query(UserOrganization)
            .filter(UserOrganization.organization_id == organization.id)
            .all()
        )
        data["user_organizations"] = [serialize_row(m) for m in memberships]
        user_ids = [m.user_id for m in memberships]
        profiles = self.db.query(User).filter(User.id.in_(user_ids)).all() if user_ids else []
        data["profiles"] = [serialize_row(p) for p in profiles]

        return {
            "metadata": {
                "organization_id": organization.id,
                "organization_name": organization.name,
                "backup_date": now.isoformat(),
                "backup_type": backup_type,
            },
            "data": data,
        }

    def _upload(self, file_path: str, payload: dict) -> int:
        body = json.dumps(payload, indent=2, default=str).encode("utf-8")
        put_object(storage_key(file_path), body, "application/json")
        return len(body)

    def _prune_old_backups(self, org_id: str) -> int:
        old_backups = (
            self.db.query(BackupMetadata)
            .filter(
                BackupMetadata.organization_id == org_id,
                BackupMetadata.backup_type.in_(BACKUP_TYPES),
                BackupMetadata.status == "completed",
            )
            .order_by(BackupMetadata.created_at.desc())
            .offset(BACKUP_RETENTION_COUNT)
            .all()
        )
        for backup in old_backups:
            delete_object(storage_key(backup.file_path))
            self.db.delete(backup)
        if old_backups:
            self.db.commit()
            logger.info(f"🧹 Cleaned up {len(old_backups)} old backup(s) for org {org_id}")
        return len(old_backups)

    def _backup_one(
        self, organization: Organization, backup_type: str, user_id: Optional[str], now: datetime
    ) -> dict:
        payload = self.build_backup_data(organization, backup_type, now)
        file_path = (
            f"{organization.id}/{safe_storage_name(organization.name)}_backup_{backup_timestamp(now)}.json"
        )
        file_size = self._upload(file_path, payload)

        self.db.add(
            BackupMetadata(
                organization_id=organization.id,
                backup_type=backup_type,
                file_path=file_path,
                file_size=file_size,
                status="completed",
                created_by_user_id=user_id,
                created_at=now,
            )
        )
        self.db.commit()
        self._prune_old_backups(organization.id)
        logger.info(f"💾 Backup completed for {organization.name}: {file_path}")
        return {
            "organization_id": organization.id,
            "organization_name": organization.name,
            "status": "success",
            "file_path": file_path,
            "file_size": file_size,
        }

    def create_organization_backup(
        self,
        org_id: Optional[str] = None,
        backup_type: str = "manual",
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """Back up one organization, or every organization when ``org_id`` is None"""
        now = now or datetime.utcnow()
        if org_id:
            organization = self.db.query(Organization).filter(Organization.id == org_id).first()
            if not organization:
                raise HTTPException(status_code=404, detail="Organization not found")
            organizations = [organization]
        else:
            organizations = self.db.query(Organization).all()

        results = []
        for organization in organizations:
            try:
                results.append(self._backup_one(organization, backup_type, user_id, now))
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Error creating backup for {organization.name}: {str(e)}")
                results.append(
                    {
                        "organization_id": organization.id,
                        "organization_name": organization.name,
                        "status": "error",
                        "error": str(e),
                    }
                )

        return {
            "success": True,
            "backups_created": sum(1 for r in results if r["status"] == "success"),
            "results": results,
        }

    def list_backups(self, org_id: str) -> list[BackupMetadata]:
        return (
            self.db.query(BackupMetadata)
            .filter(BackupMetadata.organization_id == org_id)
            .order_by(BackupMetadata.created_at.desc())
            .all()
        )

    def get_backup(self, org_id: str, backup_id: str) -> BackupMetadata:
        backup = (
            self.db.query(BackupMetadata)
            .filter(BackupMetadata.organization_id == org_id, BackupMetadata.id == backup_id)
            .first()
        )
        if not backup or backup.backup_type == RESTORE_OPERATION:
            raise HTTPException(status_code=404, detail="Backup not found")
        return backup

    def download_url(self, org_id: str, backup_id: str) -> str:
        return generate_presigned_url(storage_key(self.get_backup(org_id, backup_id).file_path))

    def restore_organization_backup(
        self,
        org_id: str,
        backup_id: str,
        confirm: bool = False,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """
        Replace the organization's rows with those in a backup.
        Without ``confirm`` only a preview of the backup contents is returned.
        The current state is saved as a pre-restore snapshot first.
        """
        now = now or datetime.utcnow()
        backup = self.get_backup(org_id, backup_id)
        payload = json.loads(get_object(storage_key(backup.file_path)))
        metadata = payload.get("metadata", {})
        data = payload.get("data", {})

        if metadata.get("organization_id") != org_id:
            raise HTTPException(status_code=422, detail="Backup belongs to a different organization")

        if not confirm:
            return {
                "preview": True,
                "data": {
                    "organization": metadata.get("organization_name"),
                    "backup_date": metadata.get("backup_date"),
                    "backup_type": metadata.get("backup_type"),
                    "data_summary": {
                        table: len(rows) for table, rows in data.items() if table in MODELS_BY_TABLE
                    },
                },
                "message": "This is a preview. Call again with confirm set to true to proceed.",
            }

        organization = self.db.query(Organization).filter(Organization.id == org_id).first()
        pre_restore_path = f"{org_id}/pre_restore_backup_{backup_timestamp(now)}.json"
        self._upload(pre_restore_path, self.build_backup_data(organization, "pre_restore", now))

        restored_counts: dict[str, int] = {}
        try:
            for model in ORGANIZATION_SCOPED_MODELS:
                self.db.query(model).filter(model.organization_id == org_id).delete()

            org_rows = data.get("organizations") or []
            if org_rows:
                for key in RESTORABLE_ORG_COLUMNS:
                    if key in org_rows[0]:
                        setattr(organization, key, org_rows[0][key])

            for model in reversed(ORGANIZATION_SCOPED_MODELS):
                rows = data.get(model.__tablename__) or []
                for row in rows:
                    values = deserialize_row(model, row)
                    values["organization_id"] = org_id
                    self.db.add(model(**values))
                if rows:
                    restored_counts[model.__tablename__] = len(rows)
                self.db.flush()

            self.db.add(
                BackupMetadata(
                    organization_id=org_id,
                    backup_type=RESTORE_OPERATION,
                    file_path=backup.file_path,
                    status="completed",
                    created_by_user_id=user_id,
                    created_at=now,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Restore of backup {backup_id} failed: {str(e)}")
            raise

        logger.info(f"♻️ Restored {org_id} from {backup.file_path}: {restored_counts}")
        return {
            "success": True,
            "message": "Data restored successfully",
            "restored_from": {
                "backup_date": metadata.get("backup_date"),
                "backup_type": metadata.get("backup_type"),
            },
            "restored_counts": restored_counts,
            "pre_restore_backup": pre_restore_path,
        }
