"""
Fulfillment workflow schemas.

Request and response models for the operator-facing endpoints.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from admin_console.app.models.tracking_enums import TrackingStatus
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord


class TransitionDecision(BaseModel):
    """Validator verdict on a proposed status change. Never persisted."""
    valid: bool
    message: str = ""
    requires_confirmation: bool = False
    warning_message: str = ""

    class Config:
        frozen = True


class TrackingCreate(BaseModel):
    """Schema for attaching tracking to an order. Blank values are rejected by the workflow."""
    carrier: str = Field(..., max_length=100, description="Carrier name")
    tracking_number: str = Field(..., max_length=100, description="Carrier tracking number")
    tracking_url: Optional[str] = Field(None, max_length=500, description="External tracking page")


class TransitionRequest(BaseModel):
    """Schema for proposing or applying a status change."""
    status: TrackingStatus
    confirmed: bool = Field(False, description="Operator acknowledged the confirmation warning")


class StatusOption(BaseModel):
    """Picklist entry."""
    status: TrackingStatus
    label: str


class OrderFulfillmentView(BaseModel):
    """Everything the order detail screen needs for the tracking panel."""
    order: OrderSnapshot
    tracking: Optional[TrackingRecord] = None
    candidate_statuses: List[StatusOption] = Field(default_factory=list)
    can_create_tracking: bool
    can_reset: bool


class TransitionResponse(BaseModel):
    """Result of an applied status change."""
    decision: TransitionDecision
    tracking: TrackingRecord


class AuditLogResponse(BaseModel):
    """Schema for an audit trail entry."""
    id: int
    actor_username: Optional[str]
    action: str
    order_id: Optional[str]
    meta_data: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True
