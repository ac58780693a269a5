from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class RotationOrder(Base):
    """Yearly rotation order of family groups plus the selection rules for that year"""

    __tablename__ = "rotation_orders"
    __table_args__ = (
        UniqueConstraint("organization_id", "rotation_year", name="uq_rotation_org_year"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rotation_year = Column(Integer, nullable=False)
    rotation_order = Column(JSON, default=list, nullable=False)  # Family group names in order
    first_last_option = Column(String(10), default="first", nullable=False)  # first, last
    max_time_slots = Column(Integer, default=2, nullable=False)
    max_nights = Column(Integer, default=7, nullable=False)
    start_day = Column(String(20), default="Friday", nullable=False)
    start_time = Column(String(10), default="12:00", nullable=False)
    start_month = Column(String(20), nullable=True)  # e.g. "October"; None = calendar year
    selection_days = Column(Integer, default=14, nullable=False)
    enable_secondary_selection = Column(Boolean, default=False, nullable=False)
    secondary_max_periods = Column(Integer, default=1, nullable=False)
    secondary_selection_days = Column(Integer, default=7, nullable=False)
    enable_post_rotation_selection = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class TimePeriodUsage(Base):
    """Per family group allowance and consumption for a rotation year"""

    __tablename__ = "time_period_usage"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "rotation_year", "family_group", name="uq_usage_org_year_group"
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rotation_year = Column(Integer, nullable=False)
    family_group = Column(String(255), nullable=False)
    time_periods_used = Column(Integer, default=0, nullable=False)
    time_periods_allowed = Column(Integer, default=2, nullable=False)
    secondary_periods_used = Column(Integer, default=0, nullable=False)
    secondary_periods_allowed = Column(Integer, default=1, nullable=False)
    selection_round = Column(String(20), default="primary", nullable=False)  # primary, secondary
    turn_completed = Column(Boolean, default=False, nullable=False)
    secondary_turn_completed = Column(Boolean, default=False, nullable=False)
    last_selection_date = Column(DateTime, nullable=True)
    selection_deadline = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class SelectionRoundStatus(Base):
    """Cursor over the rotation list for an organization's active selection round"""

    __tablename__ = "secondary_selection_status"
    __table_args__ = (
        UniqueConstraint("organization_id", "rotation_year", name="uq_round_org_year"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rotation_year = Column(Integer, nullable=False)
    phase = Column(String(20), default="primary", nullable=False)  # primary, secondary
    current_family_group = Column(String(255), nullable=True)  # None once the round has ended
    current_group_index = Column(Integer, default=0, nullable=False)
    started_at = Column(DateTime, nullable=True)  # When the current group's turn began
    ended_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class SelectionPeriodExtension(Base):
    __tablename__ = "selection_period_extensions"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "rotation_year", "family_group", name="uq_extension_org_year_group"
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rotation_year = Column(Integer, nullable=False)
    family_group = Column(String(255), nullable=False)
    original_end_date = Column(Date, nullable=False)
    extended_until = Column(Date, nullable=False)
    reason = Column(Text, nullable=True)
    extended_by_user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SelectionTurnNotification(Base):
    """One row per turn notification already sent, so each turn is announced once"""

    __tablename__ = "selection_turn_notifications_sent"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "rotation_year",
            "family_group",
            "phase",
            name="uq_turn_notification",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rotation_year = Column(Integer, nullable=False)
    family_group = Column(String(255), nullable=False)
    phase = Column(String(20), nullable=False)
    sent_at = Column(DateTime, nullable=False)
