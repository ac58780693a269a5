"""Trial access code schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


class TrialCodeCreate(BaseModel):
    notes: Optional[str] = None
    expires_in_days: Optional[int] = Field(None, gt=0, le=365)


class TrialCodeValidateRequest(BaseModel):
    code: str

    @field_validator("code")
    @classmethod
    def normalize(cls, v):
        v = normalize_code(v)
        if not v:
            raise ValueError("Code is required")
        return v


class TrialCodeValidation(BaseModel):
    valid: bool
    message: Optional[str] = None


class TrialCodeResponse(BaseModel):
    id: str
    code: str
    notes: Optional[str]
    expires_at: Optional[datetime]
    is_used: bool
    used_by_user_id: Optional[str]
    used_at: Optional[datetime]
    created_by: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
