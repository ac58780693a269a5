import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


ORG_ROLES = ("admin", "treasurer", "calendar_keeper", "member")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    auth_user_id = Column(String(255), unique=True, index=True, nullable=False)  # JWT "sub"
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    family_group = Column(String(255), nullable=True)  # Self-declared family group name
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    memberships = relationship(
        "UserOrganization", back_populates="user", cascade="all, delete-orphan"
    )


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    code = Column(String(10), unique=True, index=True, nullable=False)  # Join code, uppercase
    admin_name = Column(String(255), nullable=True)
    admin_email = Column(String(255), nullable=True)
    admin_phone = Column(String(50), nullable=True)
    treasurer_name = Column(String(255), nullable=True)
    treasurer_email = Column(String(255), nullable=True)
    treasurer_phone = Column(String(50), nullable=True)
    calendar_keeper_name = Column(String(255), nullable=True)
    calendar_keeper_email = Column(String(255), nullable=True)
    calendar_keeper_phone = Column(String(50), nullable=True)
    alternate_supervisor_email = Column(String(255), nullable=True)
    automated_selection_turn_notifications_enabled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    members = relationship(
        "UserOrganization", back_populates="organization", cascade="all, delete-orphan"
    )
    family_groups = relationship(
        "FamilyGroup", back_populates="organization", cascade="all, delete-orphan"
    )


class UserOrganization(Base):
    __tablename__ = "user_organizations"
    __table_args__ = (UniqueConstraint("user_id", "organization_id", name="uq_user_organization"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(50), default="member", nullable=False)  # admin, treasurer, calendar_keeper, member
    is_primary = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="members")


class Supervisor(Base):
    __tablename__ = "supervisors"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class FamilyGroup(Base):
    __tablename__ = "family_groups"
    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_family_group_name"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    lead_name = Column(String(255), nullable=True)
    lead_email = Column(String(255), nullable=True)
    lead_phone = Column(String(50), nullable=True)
    alternate_lead_id = Column(String(255), nullable=True)  # Member name acting as backup lead
    color = Column(String(7), nullable=True)  # e.g., #RRGGBB
    # [{"name": ..., "email": ..., "phone": ..., "canHost": bool}]
    host_members = Column(JSON, default=list, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    organization = relationship("Organization", back_populates="family_groups")


class TrialAccessCode(Base):
    __tablename__ = "trial_access_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(8), unique=True, index=True, nullable=False)
    notes = Column(Text, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    is_used = Column(Boolean, default=False, nullable=False)
    used_by_user_id = Column(String(36), nullable=True)
    used_at = Column(DateTime, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BulkOperationAudit(Base):
    __tablename__ = "bulk_operation_audit"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    operation_type = Column(String(100), nullable=False)  # delete_organization_data, bulk_update_leads, ...
    organization_id = Column(String(36), nullable=True, index=True)  # Not a FK: survives org deletion
    performed_by_user_id = Column(String(36), nullable=True)
    records_affected = Column(Integer, default=0, nullable=False)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class NotificationLog(Base):
    __tablename__ = "notification_log"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    family_group = Column(String(255), nullable=True)
    notification_type = Column(String(100), nullable=False)  # selection_turn, payment_reminder, ...
    email_sent = Column(Boolean, default=False, nullable=False)
    sms_sent = Column(Boolean, default=False, nullable=False)
    reservation_period_id = Column(String(36), nullable=True)
    details = Column(JSON, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BackupMetadata(Base):
    __tablename__ = "backup_metadata"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), nullable=False, index=True)
    backup_type = Column(String(50), default="manual", nullable=False)  # manual, automatic
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=True)
    status = Column(String(50), default="pending", nullable=False)  # pending, completed, failed
    created_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False)
