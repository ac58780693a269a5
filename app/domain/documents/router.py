"""Document router - Upload, list, download and delete organization documents"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import OrgAccess, require_org_role
from ...database import get_db
from .service import DocumentService

router = APIRouter(prefix="/organizations/{organization_id}/documents", tags=["Documents"])


class DocumentResponse(BaseModel):
    id: str
    organization_id: str
    title: str
    description: Optional[str]
    category: str
    file_size: Optional[int]
    content_type: Optional[str]
    uploaded_by_user_id: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    category: Optional[str] = Query(None),
    access: OrgAccess = Depends(require_org_role()),
    service: DocumentService = Depends(get_document_service),
):
    return service.list_documents(access.organization.id, category)


@router.post("", response_model=DocumentResponse)
async def upload_document(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: str = Form("general"),
    access: OrgAccess = Depends(require_org_role()),
    service: DocumentService = Depends(get_document_service),
):
    contents = await file.read()
    return service.upload_document(
        access.organization.id,
        access,
        contents,
        file.filename,
        file.content_type,
        title=title,
        description=description,
        category=category,
    )


@router.get("/{document_id}/download")
async def download_document(
    document_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: DocumentService = Depends(get_document_service),
):
    return service.download_url(access.organization.id, document_id)


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    access: OrgAccess = Depends(require_org_role()),
    service: DocumentService = Depends(get_document_service),
):
    service.delete_document(access.organization.id, document_id, access)
    return {"message": "Document deleted"}


__all__ = ["router"]
