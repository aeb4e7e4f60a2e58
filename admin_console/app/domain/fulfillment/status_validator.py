"""
Status Validator (Domain Logic).

Decides whether a proposed tracking status change is permitted and whether
it needs operator confirmation. Pure: no I/O, no mutation.

Rules are evaluated in order and the first one that decides wins:
1.  Graph membership (transition table edge)
2.  Delivered orders accept only a return
3.  Cancelled orders are immutable
4.  shipped needs carrier and tracking number
5.  in_transit only from shipped
6.  out_for_delivery only from in_transit or failed_delivery
7.  delivered only from out_for_delivery
8.  cancelled: never after delivery, stronger warning once shipping started
9.  returned only from delivered or failed_delivery
10. failed_delivery only from out_for_delivery
11. processing needs payment (or cash on delivery)
12. ready_to_ship: packing reminder
13. Anything else: generic confirmation
"""

from typing import Optional

from admin_console.app.domain.fulfillment.transition_table import SHIPPING_PHASE, is_edge
from admin_console.app.models.tracking_enums import (
    PaymentMethod,
    PaymentStatus,
    TrackingStatus as S,
)
from admin_console.app.schemas.fulfillment import TransitionDecision
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord


PAYMENT_NOT_CONFIRMED = (
    "Payment not confirmed. Only paid or cash on delivery orders can move to processing."
)


def _reject(message: str) -> TransitionDecision:
    return TransitionDecision(valid=False, message=message)


def _confirm(warning: str) -> TransitionDecision:
    return TransitionDecision(valid=True, requires_confirmation=True, warning_message=warning)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def validate(
    current: S,
    target: S,
    order: OrderSnapshot,
    tracking: Optional[TrackingRecord],
) -> TransitionDecision:
    """
    Validate a proposed status change.

    Args:
        current: Status the tracking record is in now
        target: Status the operator wants to move to
        order: Order snapshot (payment status and method)
        tracking: Current tracking record (carrier and tracking number)

    Returns:
        TransitionDecision; never raises for business rule failures
    """
    # 1. Graph membership
    if not is_edge(current, target):
        return _reject(f"Cannot change status from {current.label} to {target.label}")

    # 2. Delivered lock
    if current == S.DELIVERED and target != S.RETURNED:
        return _reject("Delivered orders can only be marked as returned")

    # 3. Cancelled lock
    if current == S.CANCELLED:
        return _reject("Cancelled orders cannot be updated")

    # 4. Shipping preconditions
    if target == S.SHIPPED:
        if tracking is None or _blank(tracking.tracking_number) or _blank(tracking.carrier):
            return _reject("Tracking number and carrier are required before marking as shipped")
        return _confirm(
            f"Mark order as shipped via {tracking.carrier} "
            f"(tracking number {tracking.tracking_number})? The customer will be notified."
        )

    # 5. In transit only follows shipped; success falls through to the default prompt
    if target == S.IN_TRANSIT and current != S.SHIPPED:
        return _reject("Order must be shipped before it can be in transit")

    # 6. Out for delivery
    if target == S.OUT_FOR_DELIVERY:
        if current not in (S.IN_TRANSIT, S.FAILED_DELIVERY):
            return _reject(
                "Order must be in transit or have a failed delivery before going out for delivery"
            )
        return _confirm("Mark order as out for delivery? The delivery partner should now have the parcel.")

    # 7. Delivered
    if target == S.DELIVERED:
        if current != S.OUT_FOR_DELIVERY:
            return _reject("Order must be out for delivery before it can be delivered")
        return _confirm("Mark order as delivered? This action cannot be easily reversed.")

    # 8. Cancellation
    if target == S.CANCELLED:
        if current == S.DELIVERED:
            return _reject("Delivered orders cannot be cancelled. Use the return flow instead.")
        if current in SHIPPING_PHASE:
            return _confirm(
                "Order is already in shipping phase. Cancelling now may require recalling "
                "the parcel from the carrier. Are you sure you want to cancel this order?"
            )
        return _confirm("Are you sure you want to cancel this order? This action cannot be undone.")

    # 9. Returned
    if target == S.RETURNED:
        if current not in (S.DELIVERED, S.FAILED_DELIVERY):
            return _reject("Only delivered orders or failed deliveries can be marked as returned")
        return _confirm("Mark order as returned? Make sure the returned items have been received.")

    # 10. Failed delivery
    if target == S.FAILED_DELIVERY:
        if current != S.OUT_FOR_DELIVERY:
            return _reject("Delivery can only fail while the order is out for delivery")
        return _confirm(
            "Mark delivery as failed? The order can be sent out for delivery again or returned."
        )

    # 11. Processing needs payment
    if target == S.PROCESSING:
        if order.payment_status != PaymentStatus.PAID and order.payment_method != PaymentMethod.CASH_ON_DELIVERY:
            return _reject(PAYMENT_NOT_CONFIRMED)

    # 12. Ready to ship
    if target == S.READY_TO_SHIP:
        return _confirm(
            "Mark order as ready to ship? Make sure the items are packed and the shipping label is attached."
        )

    # 13. Default
    return _confirm(f"Are you sure you want to change status to {target.label}?")
