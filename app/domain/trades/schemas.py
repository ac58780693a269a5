"""Trade domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator


class TradeRequestCreate(BaseModel):
    requester_family_group: str
    target_family_group: str
    requested_start_date: date
    requested_end_date: date
    offered_start_date: Optional[date] = None
    offered_end_date: Optional[date] = None
    request_type: str = "request"
    requester_message: Optional[str] = None

    @field_validator("request_type")
    @classmethod
    def validate_request_type(cls, v):
        if v not in ("request", "trade_offer"):
            raise ValueError("request_type must be 'request' or 'trade_offer'")
        return v

    @model_validator(mode="after")
    def validate_dates(self):
        if self.requested_end_date <= self.requested_start_date:
            raise ValueError("Requested end date must be after start date")
        if self.requester_family_group == self.target_family_group:
            raise ValueError("A family group cannot trade with itself")
        if self.request_type == "trade_offer":
            if not self.offered_start_date or not self.offered_end_date:
                raise ValueError("Trade offers must include offered dates")
        if self.offered_start_date and self.offered_end_date:
            if self.offered_end_date <= self.offered_start_date:
                raise ValueError("Offered end date must be after start date")
        return self


class TradeResponseRequest(BaseModel):
    approve: bool
    message: Optional[str] = None


class TradeRequestResponse(BaseModel):
    id: str
    organization_id: str
    requester_family_group: str
    target_family_group: str
    requester_user_id: Optional[str]
    requested_start_date: date
    requested_end_date: date
    offered_start_date: Optional[date]
    offered_end_date: Optional[date]
    request_type: str
    status: str
    requester_message: Optional[str]
    approver_message: Optional[str]
    execution_status: Optional[str]
    execution_notes: Optional[str]
    executed_at: Optional[datetime]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
