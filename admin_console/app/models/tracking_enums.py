"""
Tracking and order enumerations.

Status values are the snake_case identifiers shared with the remote
tracking service; they must never be renamed.
"""

import enum


class TrackingStatus(str, enum.Enum):
    """
    Delivery tracking status.

    Canonical flow:
        ORDER_PLACED → PROCESSING → READY_TO_SHIP → SHIPPED → IN_TRANSIT
        → OUT_FOR_DELIVERY → DELIVERED
    Side branches: CANCELLED, FAILED_DELIVERY, RETURNED
    """
    ORDER_PLACED = "order_placed"
    PROCESSING = "processing"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    FAILED_DELIVERY = "failed_delivery"
    RETURNED = "returned"

    @property
    def label(self) -> str:
        """Human readable name, e.g. 'Out For Delivery'."""
        return " ".join(word.capitalize() for word in self.value.split("_"))


class PaymentStatus(str, enum.Enum):
    """Known payment statuses reported by the order service."""
    PAID = "paid"
    UNPAID = "unpaid"
    PENDING = "pending"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    """Known payment methods reported by the order service."""
    CASH_ON_DELIVERY = "cash_on_delivery"
    ONLINE = "online"
