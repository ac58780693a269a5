"""Organization domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import ORG_ROLES
from ...shared.validators import validate_email, validate_org_code, validate_phone

EMAIL_FIELDS = ("admin_email", "treasurer_email", "calendar_keeper_email", "alternate_supervisor_email")
PHONE_FIELDS = ("admin_phone", "treasurer_phone", "calendar_keeper_phone")


class OrganizationContacts(BaseModel):
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None
    admin_phone: Optional[str] = None
    treasurer_name: Optional[str] = None
    treasurer_email: Optional[str] = None
    treasurer_phone: Optional[str] = None
    calendar_keeper_name: Optional[str] = None
    calendar_keeper_email: Optional[str] = None
    calendar_keeper_phone: Optional[str] = None

    @field_validator("admin_email", "treasurer_email", "calendar_keeper_email")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator(*PHONE_FIELDS)
    @classmethod
    def validate_contact_phone(cls, v):
        return validate_phone(v)


class OrganizationCreate(OrganizationContacts):
    """Schema for creating a new organization"""

    name: str
    code: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if len(v) < 2:
            raise ValueError("Organization name must be at least 2 characters")
        if len(v) > 255:
            raise ValueError("Organization name must be less than 255 characters")
        return v

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        return validate_org_code(v)


class OrganizationUpdate(OrganizationContacts):
    name: Optional[str] = None
    alternate_supervisor_email: Optional[str] = None
    automated_selection_turn_notifications_enabled: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Organization name must be at least 2 characters")
        return v

    @field_validator("alternate_supervisor_email")
    @classmethod
    def validate_alternate_email(cls, v):
        return validate_email(v)


class JoinOrganizationRequest(BaseModel):
    code: str
    role: str = "member"

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return (v or "").strip().upper()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in ORG_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(ORG_ROLES)}")
        return v


class MemberRoleUpdate(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in ORG_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(ORG_ROLES)}")
        return v


class OrganizationResponse(BaseModel):
    id: str
    name: str
    code: str
    admin_name: Optional[str]
    admin_email: Optional[str]
    admin_phone: Optional[str]
    treasurer_name: Optional[str]
    treasurer_email: Optional[str]
    treasurer_phone: Optional[str]
    calendar_keeper_name: Optional[str]
    calendar_keeper_email: Optional[str]
    calendar_keeper_phone: Optional[str]
    alternate_supervisor_email: Optional[str]
    automated_selection_turn_notifications_enabled: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipResponse(BaseModel):
    organization: OrganizationResponse
    role: str
    is_primary: bool
    joined_at: Optional[datetime] = None


class MemberResponse(BaseModel):
    user_id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    display_name: Optional[str]
    family_group: Optional[str]
    role: str
    is_primary: bool
