"""Checklist domain schemas - Pydantic models for validation"""

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...utils.sanitization import sanitize_html

SESSION_TYPES = ("arrival", "daily", "departure")


class ChecklistItem(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str
    imageUrls: list[str] = []

    @field_validator("text")
    @classmethod
    def clean_text(cls, v):
        v = sanitize_html(v) or ""
        if not v.strip():
            raise ValueError("Checklist item text is required")
        return v


class ChecklistCreate(BaseModel):
    checklist_type: str
    items: list[ChecklistItem] = []
    images: list[str] = []

    @field_validator("checklist_type")
    @classmethod
    def validate_type(cls, v):
        v = (v or "").strip().lower()
        if not v:
            raise ValueError("Checklist type is required")
        return v


class ChecklistUpdate(BaseModel):
    checklist_type: Optional[str] = None
    items: Optional[list[ChecklistItem]] = None
    images: Optional[list[str]] = None


class ChecklistResponse(BaseModel):
    id: str
    organization_id: str
    checklist_type: str
    items: list[dict]
    images: Optional[list[str]]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# IMAGE LIBRARY
# ============================================================================


class ImageByUrlCreate(BaseModel):
    image_url: str
    original_filename: str
    marker_name: Optional[str] = None
    file_size: Optional[int] = None
    content_type: Optional[str] = None

    @field_validator("image_url")
    @classmethod
    def validate_url(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Image URL is required")
        return v


class ImageUpdate(BaseModel):
    marker_name: Optional[str] = None
    original_filename: Optional[str] = None


class ReplaceImageRequest(BaseModel):
    old_image_url: str
    new_image_url: str


class DeleteImageRequest(BaseModel):
    image_url: str
    force: bool = False


class ChecklistImageResponse(BaseModel):
    id: str
    organization_id: str
    image_url: str
    original_filename: Optional[str]
    marker_name: Optional[str]
    usage_count: int
    file_size: Optional[int]
    content_type: Optional[str]
    uploaded_by_user_id: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# CHECK-IN SESSIONS
# ============================================================================


class CheckinSessionCreate(BaseModel):
    check_date: date
    session_type: str
    family_group: Optional[str] = None
    checklist_responses: dict[str, Any] = {}
    guest_names: list[str] = []
    notes: Optional[str] = None

    @field_validator("session_type")
    @classmethod
    def validate_session_type(cls, v):
        if v not in SESSION_TYPES:
            raise ValueError(f"Session type must be one of: {', '.join(SESSION_TYPES)}")
        return v


class CheckinSessionUpdate(BaseModel):
    checklist_responses: Optional[dict[str, Any]] = None
    guest_names: Optional[list[str]] = None
    notes: Optional[str] = None


class CheckinSessionResponse(BaseModel):
    id: str
    organization_id: str
    user_id: Optional[str]
    family_group: Optional[str]
    check_date: date
    session_type: str
    checklist_responses: Optional[dict]
    guest_names: Optional[list]
    notes: Optional[str]
    completed_at: Optional[datetime]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SurveyResponseCreate(BaseModel):
    family_group: Optional[str] = None
    responses: dict[str, Any]


class SurveyResponseResponse(BaseModel):
    id: str
    organization_id: str
    user_id: Optional[str]
    family_group: Optional[str]
    responses: dict
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
