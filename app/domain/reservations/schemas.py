"""Reservation domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator


class HostAssignment(BaseModel):
    host_name: str
    host_email: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ReservationCreate(BaseModel):
    """Schema for booking a stay"""

    family_group: str
    start_date: date
    end_date: date
    guest_count: int = 1
    property_name: Optional[str] = None
    status: str = "confirmed"
    host_assignments: list[HostAssignment] = []
    notes: Optional[str] = None
    has_pets: bool = False
    admin_override: bool = False

    @field_validator("guest_count")
    @classmethod
    def validate_guest_count(cls, v):
        if v < 1:
            raise ValueError("Guest count must be at least 1")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in ("confirmed", "tentative"):
            raise ValueError("New reservations must be confirmed or tentative")
        return v

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class ReservationUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    guest_count: Optional[int] = None
    property_name: Optional[str] = None
    status: Optional[str] = None
    host_assignments: Optional[list[HostAssignment]] = None
    notes: Optional[str] = None
    admin_override: bool = False

    @field_validator("guest_count")
    @classmethod
    def validate_guest_count(cls, v):
        if v is not None and v < 1:
            raise ValueError("Guest count must be at least 1")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in ("confirmed", "tentative", "cancelled"):
            raise ValueError("Invalid reservation status")
        return v


class ReservationResponse(BaseModel):
    id: str
    organization_id: str
    family_group: str
    start_date: date
    end_date: date
    guest_count: int
    property_name: Optional[str]
    status: str
    time_period_number: Optional[int]
    nights_used: Optional[int]
    total_cost: Optional[float]
    host_assignments: Optional[list[dict]] = None
    allocated_start_date: Optional[date] = None
    allocated_end_date: Optional[date] = None
    notes: Optional[str]
    user_id: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingValidationRequest(BaseModel):
    family_group: str
    start_date: date
    end_date: date
    admin_override: bool = False


class BookingValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str]
    time_period_number: Optional[int] = None


class ConflictCheckRequest(BaseModel):
    start_date: date
    end_date: date
    property_name: Optional[str] = None
    exclude_id: Optional[str] = None


class TimePeriodWindow(BaseModel):
    period_number: int
    family_group: str
    start: datetime
    end: datetime
    max_nights: int
