"""Family group domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import (
    find_duplicates,
    normalize_phone_digits,
    validate_email,
    validate_full_name,
    validate_hex_color,
    validate_phone,
)


class HostMember(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    canHost: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Member name is required")
        return " ".join(v.split())

    @field_validator("email")
    @classmethod
    def validate_member_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_member_phone(cls, v):
        return validate_phone(v)


def _check_unique_members(members: Optional[list[HostMember]]) -> None:
    if not members:
        return
    duplicate_names = find_duplicates([m.name.lower() for m in members])
    if duplicate_names:
        raise ValueError(f"Duplicate member names: {', '.join(duplicate_names)}")
    duplicate_emails = find_duplicates([m.email for m in members if m.email])
    if duplicate_emails:
        raise ValueError(f"Duplicate member emails: {', '.join(duplicate_emails)}")
    duplicate_phones = find_duplicates(
        [normalize_phone_digits(m.phone) for m in members if m.phone]
    )
    if duplicate_phones:
        raise ValueError("Duplicate member phone numbers")


class FamilyGroupCreate(BaseModel):
    """Schema for creating a new family group"""

    name: str
    lead_name: Optional[str] = None
    lead_email: Optional[str] = None
    lead_phone: Optional[str] = None
    alternate_lead_id: Optional[str] = None
    color: Optional[str] = None
    host_members: list[HostMember] = []

    @field_validator("name")
    @classmethod
    def validate_group_name(cls, v):
        v = " ".join((v or "").split())
        if not v:
            raise ValueError("Family group name is required")
        return v

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

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)

    @model_validator(mode="after")
    def validate_members(self):
        _check_unique_members(self.host_members)
        return self


class FamilyGroupUpdate(BaseModel):
    """Schema for updating a family group (rename via the rename endpoint)"""

    lead_name: Optional[str] = None
    lead_email: Optional[str] = None
    lead_phone: Optional[str] = None
    alternate_lead_id: Optional[str] = None
    color: Optional[str] = None
    host_members: Optional[list[HostMember]] = None

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

    @field_validator("color")
    @classmethod
    def validate_color(cls, v):
        return validate_hex_color(v)

    @model_validator(mode="after")
    def validate_members(self):
        _check_unique_members(self.host_members)
        return self


class RenameRequest(BaseModel):
    old_name: str
    new_name: str

    @field_validator("new_name")
    @classmethod
    def validate_new_name(cls, v):
        v = " ".join((v or "").split())
        if not v:
            raise ValueError("New name is required")
        return v


class FamilyGroupResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    lead_name: Optional[str]
    lead_email: Optional[str]
    lead_phone: Optional[str]
    alternate_lead_id: Optional[str]
    color: Optional[str]
    host_members: Optional[list[dict]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
