"""Financial domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from datetime import date as DateType
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models_financial import PAYMENT_STATUSES, PAYMENT_TYPES
from .billing_calculator import BILLING_METHODS, normalize_method


# ============================================================================
# SETTINGS
# ============================================================================


class ReservationSettingsUpsert(BaseModel):
    property_name: Optional[str] = None
    address: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    max_guests: Optional[int] = Field(None, ge=1)
    nightly_rate: Optional[float] = Field(None, ge=0)
    cleaning_fee: Optional[float] = Field(None, ge=0)
    pet_fee: Optional[float] = Field(None, ge=0)
    damage_deposit: Optional[float] = Field(None, ge=0)
    financial_method: Optional[str] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    season_start_month: Optional[int] = Field(None, ge=1, le=12)
    season_start_day: Optional[int] = Field(None, ge=1, le=31)
    season_end_month: Optional[int] = Field(None, ge=1, le=12)
    season_end_day: Optional[int] = Field(None, ge=1, le=31)
    season_payment_deadline_offset_days: Optional[int] = None

    @field_validator("financial_method")
    @classmethod
    def validate_method(cls, v):
        if v is None:
            return v
        method = normalize_method(v)
        if method not in BILLING_METHODS:
            raise ValueError(f"Unknown billing method: {v}")
        return method


class ReservationSettingsResponse(ReservationSettingsUpsert):
    id: str
    organization_id: str

    class Config:
        from_attributes = True


class BillingCalculationRequest(BaseModel):
    guests: int = Field(..., ge=1)
    nights: int = Field(..., ge=1)
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    has_pets: bool = False
    # Optional per-day guest counts, keyed by ISO date
    daily_occupancy: Optional[dict[str, int]] = None


class BillingConfigRequest(BaseModel):
    method: Optional[str] = None
    amount: float = 0
    tax_rate: Optional[float] = None
    cleaning_fee: Optional[float] = None
    pet_fee: Optional[float] = None
    damage_deposit: Optional[float] = None


# ============================================================================
# PAYMENTS
# ============================================================================


class PaymentCreate(BaseModel):
    family_group: str
    amount: float
    payment_type: str = "other"
    reservation_id: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Amount must be greater than 0")
        return round(v, 2)

    @field_validator("payment_type")
    @classmethod
    def validate_type(cls, v):
        if v not in PAYMENT_TYPES:
            raise ValueError(f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}")
        return v


class PaymentUpdate(BaseModel):
    amount: Optional[float] = None
    payment_type: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None

    # Only runs on values sent in the request; omitted fields stay untouched
    @field_validator("amount", "payment_type", "status")
    @classmethod
    def validate_required(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v

    @field_validator("payment_type")
    @classmethod
    def validate_payment_type(cls, v):
        if v is not None and v not in PAYMENT_TYPES:
            raise ValueError(f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in PAYMENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(PAYMENT_STATUSES)}")
        return v


class RecordPaymentRequest(BaseModel):
    amount: float
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Payment amount must be greater than 0")
        return v


class ReservationPaymentRequest(BaseModel):
    split_deposit: bool = False
    deposit_percentage: float = Field(50, gt=0, lt=100)


class PaymentResponse(BaseModel):
    id: str
    organization_id: str
    family_group: str
    reservation_id: Optional[str]
    payment_type: str
    amount: float
    amount_paid: float
    balance_due: float
    status: str
    due_date: Optional[date]
    paid_date: Optional[date]
    payment_method: Optional[str]
    payment_reference: Optional[str]
    description: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentSummary(BaseModel):
    total: int
    pending: int
    paid: int
    overdue: int
    partial: int
    total_amount: float
    total_paid: float
    total_outstanding: float


class BulkReminderRequest(BaseModel):
    family_groups: list[str] = Field(..., min_length=1)
    year: Optional[int] = None


# ============================================================================
# RECURRING BILLS AND RECEIPTS
# ============================================================================


class RecurringBillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = None
    frequency: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[str] = None
    account_number: Optional[str] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    notes: Optional[str] = None


class RecurringBillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    frequency: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[str] = None
    account_number: Optional[str] = None
    website: Optional[str] = None
    phone_number: Optional[str] = None
    notes: Optional[str] = None


class RecurringBillResponse(RecurringBillCreate):
    id: str
    organization_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReceiptResponse(BaseModel):
    id: str
    organization_id: str
    user_id: Optional[str]
    family_group: Optional[str]
    description: str
    amount: float
    date: DateType
    image_url: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReceiptUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=3)
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[DateType] = None
    family_group: Optional[str] = None
