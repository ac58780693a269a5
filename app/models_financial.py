from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid

PAYMENT_STATUSES = ("pending", "paid", "partial", "overdue", "cancelled", "refunded")
PAYMENT_TYPES = (
    "reservation_deposit",
    "reservation_balance",
    "full_payment",
    "cleaning_fee",
    "damage_deposit",
    "pet_fee",
    "late_fee",
    "refund",
    "other",
)


class ReservationSettings(Base):
    """Property details and the organization's billing configuration"""

    __tablename__ = "reservation_settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    property_name = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    max_guests = Column(Integer, nullable=True)
    nightly_rate = Column(Float, nullable=True)
    cleaning_fee = Column(Float, nullable=True)
    pet_fee = Column(Float, nullable=True)
    damage_deposit = Column(Float, nullable=True)
    financial_method = Column(String(50), nullable=True)  # per-person-per-day, flat-rate-per-week, ...
    tax_rate = Column(Float, nullable=True)  # Percent
    season_start_month = Column(Integer, nullable=True)
    season_start_day = Column(Integer, nullable=True)
    season_end_month = Column(Integer, nullable=True)
    season_end_day = Column(Integer, nullable=True)
    season_payment_deadline_offset_days = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    family_group = Column(String(255), nullable=False, index=True)
    reservation_id = Column(String(36), nullable=True, index=True)
    payment_type = Column(String(50), default="other", nullable=False)
    amount = Column(Float, nullable=False)
    amount_paid = Column(Float, default=0.0, nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    due_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    payment_method = Column(String(50), nullable=True)  # cash, check, venmo, paypal, bank_transfer, ...
    payment_reference = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def balance_due(self) -> float:
        return round((self.amount or 0) - (self.amount_paid or 0), 2)


class RecurringBill(Base):
    __tablename__ = "recurring_bills"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)  # utilities, insurance, taxes, ...
    frequency = Column(String(50), nullable=True)  # monthly, quarterly, annually
    amount = Column(Float, nullable=True)
    due_date = Column(String(50), nullable=True)  # Free text, e.g. "15th of month"
    account_number = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)
    phone_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Receipt(Base):
    __tablename__ = "receipts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=True)
    family_group = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    image_url = Column(String(500), nullable=True)  # Storage key
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
