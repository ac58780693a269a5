"""Supervisor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_full_name, validate_phone


class SupervisorCreate(BaseModel):
    email: str
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_supervisor_email(cls, v):
        email = validate_email(v)
        if not email:
            raise ValueError("Email is required")
        return email


class SupervisorResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrganizationOverview(BaseModel):
    id: str
    name: str
    code: str
    admin_name: Optional[str]
    admin_email: Optional[str]
    alternate_supervisor_email: Optional[str]
    family_group_count: int
    reservation_count: int
    member_count: int
    created_at: Optional[datetime] = None


class AlternateSupervisorUpdate(BaseModel):
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_alternate_email(cls, v):
        return validate_email(v)


class LeadUpdate(BaseModel):
    family_group: str
    lead_name: Optional[str] = None
    lead_email: Optional[str] = None
    lead_phone: Optional[str] = None

    @field_validator("lead_name")
    @classmethod
    def validate_lead_name(cls, v):
        return validate_full_name(v)

    @field_validator("lead_email")
    @classmethod
    def validate_lead_email(cls, v):
        return validate_email(v)

    @field_validator("lead_phone")
    @classmethod
    def validate_lead_phone(cls, v):
        return validate_phone(v)


class BulkLeadUpdateRequest(BaseModel):
    updates: list[LeadUpdate] = Field(..., min_length=1)


class BulkReassignRequest(BaseModel):
    """Move organization members (by email) into a family group"""

    member_emails: list[str] = Field(..., min_length=1)
    family_group: str

    @field_validator("member_emails")
    @classmethod
    def normalize_emails(cls, v):
        return [e.strip().lower() for e in v if e and e.strip()]


class BulkOperationResult(BaseModel):
    operation_type: str
    records_affected: int
    details: dict
