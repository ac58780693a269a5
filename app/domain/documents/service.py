"""Document service - Organization documents kept in object storage"""

import logging
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import OrgAccess
from ...models_content import Document
from ...utils.sanitization import sanitize_filename, sanitize_plain_text
from ...utils.storage import (
    DOCUMENT_CONTENT_TYPES,
    check_upload,
    delete_object,
    generate_presigned_url,
    put_object,
)

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(self, db: Session):
        self.db = db

    def list_documents(self, org_id: str, category: Optional[str] = None) -> list[Document]:
        query = self.db.query(Document).filter(Document.organization_id == org_id)
        if category:
            query = query.filter(Document.category == category)
        return query.order_by(Document.created_at.desc()).all()

    def get_document(self, org_id: str, document_id: str) -> Document:
        document = (
            self.db.query(Document)
            .filter(Document.organization_id == org_id, Document.id == document_id)
            .first()
        )
        if not document:
            raise HTTPException(status_code=404, detail="Document not found")
        return document

    def upload_document(
        self,
        org_id: str,
        access: OrgAccess,
        contents: bytes,
        filename: str,
        content_type: Optional[str],
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: str = "general",
    ) -> Document:
        check_upload(contents, content_type, DOCUMENT_CONTENT_TYPES)
        safe_name = sanitize_filename(filename)
        key = put_object(f"{org_id}/documents/{uuid.uuid4().hex}_{safe_name}", contents, content_type)

        document = Document(
            organization_id=org_id,
            title=sanitize_plain_text(title) or safe_name,
            description=sanitize_plain_text(description),
            category=category or "general",
            file_path=key,
            file_size=len(contents),
            content_type=content_type,
            uploaded_by_user_id=access.user.id,
        )
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)
        logger.info(f"📄 Document uploaded: {document.title} ({document.file_size} bytes)")
        return document

    def download_url(self, org_id: str, document_id: str) -> dict:
        document = self.get_document(org_id, document_id)
        return {
            "url": generate_presigned_url(document.file_path),
            "filename": document.title,
            "content_type": document.content_type,
        }

    def delete_document(self, org_id: str, document_id: str, access: OrgAccess) -> None:
        document = self.get_document(org_id, document_id)
        if document.uploaded_by_user_id != access.user.id and not access.is_admin:
            raise HTTPException(status_code=403, detail="You can only delete documents you uploaded")
        key = document.file_path
        self.db.delete(document)
        self.db.commit()
        delete_object(key)
        logger.info(f"🗑️ Document {document_id} deleted")
