"""
Wire models for the remote order / tracking service.

The remote API speaks camelCase JSON and identifies documents with `_id`;
these models accept that shape and serialize back with the same aliases.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel

from admin_console.app.models.tracking_enums import TrackingStatus


class WireModel(BaseModel):
    """Base for payloads exchanged with the commerce API."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        coerce_numbers_to_str = True


class StatusHistoryEntry(WireModel):
    """One appended status change. Insertion order is chronological order."""
    status: TrackingStatus
    notes: Optional[str] = None
    timestamp: datetime


class TrackingRecord(WireModel):
    """Shipment tracking of one order, as returned by the tracking service."""
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    order_id: str
    carrier: str
    tracking_number: str
    tracking_url: Optional[str] = None
    status: TrackingStatus
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def latest_entry(self) -> Optional[StatusHistoryEntry]:
        return self.status_history[-1] if self.status_history else None


class OrderSnapshot(WireModel):
    """
    Read-only view of an order, fetched once per operator session.

    Only payment status and method feed the workflow; the rest is display data.
    """
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    order_number: Optional[str] = None
    payment_status: str
    payment_method: str
    items: List[Dict[str, Any]] = Field(default_factory=list)
    shipping_address: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        frozen = True
