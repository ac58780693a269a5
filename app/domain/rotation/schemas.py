"""Rotation domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...config import (
    DEFAULT_MAX_NIGHTS,
    DEFAULT_MAX_TIME_SLOTS,
    DEFAULT_SECONDARY_MAX_PERIODS,
    DEFAULT_SECONDARY_SELECTION_DAYS,
    DEFAULT_SELECTION_DAYS,
)
from .turns import WEEKDAYS, month_number


class RotationOrderUpsert(BaseModel):
    """Schema for creating or replacing a year's rotation order"""

    rotation_year: int
    rotation_order: list[str]
    first_last_option: str = "first"
    max_time_slots: int = DEFAULT_MAX_TIME_SLOTS
    max_nights: int = DEFAULT_MAX_NIGHTS
    start_day: str = "Friday"
    start_time: str = "12:00"
    start_month: Optional[str] = None
    selection_days: int = DEFAULT_SELECTION_DAYS
    enable_secondary_selection: bool = False
    secondary_max_periods: int = DEFAULT_SECONDARY_MAX_PERIODS
    secondary_selection_days: int = DEFAULT_SECONDARY_SELECTION_DAYS
    enable_post_rotation_selection: bool = False

    @field_validator("rotation_order")
    @classmethod
    def validate_order(cls, v):
        names = [name.strip() for name in v if name and name.strip()]
        if not names:
            raise ValueError("Rotation order must include at least one family group")
        if len(set(names)) != len(names):
            raise ValueError("A family group can only appear once in the rotation order")
        return names

    @field_validator("first_last_option")
    @classmethod
    def validate_first_last(cls, v):
        if v not in ("first", "last"):
            raise ValueError("first_last_option must be 'first' or 'last'")
        return v

    @field_validator("start_day")
    @classmethod
    def validate_start_day(cls, v):
        if v.strip().lower() not in WEEKDAYS:
            raise ValueError("start_day must be a day of the week")
        return v.strip().capitalize()

    @field_validator("start_month")
    @classmethod
    def validate_start_month(cls, v):
        if v and month_number(v) is None:
            raise ValueError("start_month must be a month name")
        return v

    @field_validator("max_time_slots", "max_nights", "selection_days", "secondary_selection_days")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator("secondary_max_periods")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Value cannot be negative")
        return v


class RotationOrderResponse(BaseModel):
    id: Optional[str] = None
    organization_id: str
    rotation_year: int
    base_year: int
    rotation_order: list[str]
    first_last_option: str
    max_time_slots: int
    max_nights: int
    start_day: str
    start_time: str
    start_month: Optional[str]
    selection_days: int
    enable_secondary_selection: bool
    secondary_max_periods: int
    secondary_selection_days: int
    enable_post_rotation_selection: bool


class UsageResponse(BaseModel):
    id: str
    family_group: str
    rotation_year: int
    time_periods_used: int
    time_periods_allowed: int
    secondary_periods_used: int
    secondary_periods_allowed: int
    selection_round: str
    turn_completed: bool
    secondary_turn_completed: bool
    last_selection_date: Optional[datetime] = None
    selection_deadline: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoundResponse(BaseModel):
    organization_id: str
    rotation_year: int
    phase: str
    current_family_group: Optional[str]
    current_group_index: int
    started_at: Optional[datetime]
    ended_at: Optional[datetime]

    class Config:
        from_attributes = True


class CompleteTurnRequest(BaseModel):
    family_group: str


class ExtensionUpsert(BaseModel):
    rotation_year: int
    family_group: str
    original_end_date: date
    extended_until: date
    reason: Optional[str] = None

    @field_validator("extended_until")
    @classmethod
    def validate_extension(cls, v, info):
        original = info.data.get("original_end_date")
        if original and v <= original:
            raise ValueError("Extension must end after the original end date")
        return v


class ExtensionResponse(BaseModel):
    id: str
    rotation_year: int
    family_group: str
    original_end_date: date
    extended_until: date
    reason: Optional[str]
    extended_by_user_id: Optional[str]

    class Config:
        from_attributes = True


class FamilyStatus(BaseModel):
    family_group: str
    position: int
    periods_used: int
    periods_allowed: int
    status: str
    day_text: Optional[str] = None
    days_remaining: Optional[int] = None


class ProjectedWindow(BaseModel):
    family_group: str
    start_date: date
    end_date: date
    is_current: bool


class SelectionStateResponse(BaseModel):
    organization_id: str
    rotation_year: int
    phase: Optional[str]
    round_active: bool
    round_ended: bool
    current_family_group: Optional[str]
    turn_started_at: Optional[datetime] = None
    turn_deadline: Optional[datetime] = None
    rotation_order: list[str]
    family_statuses: list[FamilyStatus]
    projected_schedule: list[ProjectedWindow]
