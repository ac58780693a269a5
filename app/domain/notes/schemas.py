"""Shared note schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

NOTE_PRIORITIES = ("low", "normal", "high")


class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str
    category: str = "general"
    priority: str = "normal"
    is_pinned: bool = False
    tags: list[str] = []

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v not in NOTE_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(NOTE_PRIORITIES)}")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v):
        tags = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    is_pinned: Optional[bool] = None
    tags: Optional[list[str]] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v):
        if v is not None and v not in NOTE_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(NOTE_PRIORITIES)}")
        return v


class NoteResponse(BaseModel):
    id: str
    organization_id: str
    title: str
    content: str
    category: str
    priority: str
    is_pinned: bool
    tags: Optional[list[str]]
    created_by_user_id: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
