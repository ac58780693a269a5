from sqlalchemy import (
    JSON,
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

RESERVATION_STATUSES = ("confirmed", "tentative", "cancelled")
TRADE_STATUSES = ("pending", "approved", "rejected", "cancelled")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), nullable=True)
    family_group = Column(String(255), nullable=False, index=True)
    start_date = Column(Date, nullable=False)  # Check-in at noon
    end_date = Column(Date, nullable=False)  # Check-out at noon
    guest_count = Column(Integer, default=1, nullable=False)
    property_name = Column(String(255), nullable=True)
    status = Column(String(20), default="confirmed", nullable=False)
    time_period_number = Column(Integer, nullable=True)
    nights_used = Column(Integer, nullable=True)
    total_cost = Column(Float, nullable=True)
    # [{"host_name": ..., "host_email": ..., "start_date": ..., "end_date": ...}]
    host_assignments = Column(JSON, default=list, nullable=True)
    allocated_start_date = Column(Date, nullable=True)
    allocated_end_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class TradeRequest(Base):
    __tablename__ = "trade_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requester_family_group = Column(String(255), nullable=False)
    target_family_group = Column(String(255), nullable=False)
    requester_user_id = Column(String(36), nullable=True)
    requested_start_date = Column(Date, nullable=False)
    requested_end_date = Column(Date, nullable=False)
    offered_start_date = Column(Date, nullable=True)
    offered_end_date = Column(Date, nullable=True)
    request_type = Column(String(20), default="request", nullable=False)  # request, trade_offer
    status = Column(String(20), default="pending", nullable=False)
    requester_message = Column(Text, nullable=True)
    approver_message = Column(Text, nullable=True)
    approver_user_id = Column(String(36), nullable=True)
    execution_status = Column(String(20), nullable=True)  # completed, failed
    execution_notes = Column(Text, nullable=True)
    executed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
