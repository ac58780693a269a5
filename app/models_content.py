from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class CustomChecklist(Base):
    __tablename__ = "custom_checklists"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    checklist_type = Column(String(50), nullable=False)  # arrival, departure, seasonal, ...
    # [{"id": ..., "text": ..., "imageUrls": [...]}]
    items = Column(JSON, default=list, nullable=False)
    images = Column(JSON, default=list, nullable=True)  # Top-level image URLs
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ChecklistImage(Base):
    """Shared image library entry referenced by checklists"""

    __tablename__ = "checklist_images"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url = Column(String(500), nullable=False)
    storage_key = Column(String(500), nullable=True)  # Only set for uploaded images
    original_filename = Column(String(255), nullable=True)
    marker_name = Column(String(255), nullable=True)
    usage_count = Column(Integer, default=0, nullable=False)
    file_size = Column(Integer, nullable=True)
    content_type = Column(String(100), nullable=True)
    uploaded_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class CheckinSession(Base):
    __tablename__ = "checkin_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=True)
    family_group = Column(String(255), nullable=True)
    check_date = Column(Date, nullable=False)
    session_type = Column(String(50), nullable=False)  # arrival, daily, departure
    checklist_responses = Column(JSON, default=dict, nullable=True)
    guest_names = Column(JSON, default=list, nullable=True)
    notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SurveyResponse(Base):
    __tablename__ = "survey_responses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=True)
    family_group = Column(String(255), nullable=True)
    responses = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SharedNote(Base):
    __tablename__ = "shared_notes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)  # Sanitized HTML
    category = Column(String(50), default="general", nullable=False)
    priority = Column(String(20), default="normal", nullable=False)  # low, normal, high
    is_pinned = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON, default=list, nullable=True)
    created_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), default="general", nullable=False)
    file_path = Column(String(500), nullable=False)  # Storage key
    file_size = Column(Integer, nullable=True)
    content_type = Column(String(100), nullable=True)
    uploaded_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
