"""
Unit tests for the status validator business rules.
"""

import itertools

import pytest

from admin_console.app.domain.fulfillment.status_validator import validate
from admin_console.app.domain.fulfillment.transition_table import TRANSITIONS
from admin_console.app.models.tracking_enums import TrackingStatus as S
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord


def make_order(payment_status="paid", payment_method="online"):
    return OrderSnapshot(id="ord_1", payment_status=payment_status, payment_method=payment_method)


def make_tracking(status=S.ORDER_PLACED, carrier="DHL", tracking_number="DHL123456"):
    return TrackingRecord(
        id="trk_1",
        order_id="ord_1",
        carrier=carrier,
        tracking_number=tracking_number,
        status=status,
    )


def decide(current, target, order=None, tracking=None):
    order = order or make_order()
    tracking = tracking or make_tracking(current)
    return validate(current, target, order, tracking)


@pytest.mark.parametrize(
    "current,target",
    [(c, t) for c, t in itertools.product(S, S) if t not in TRANSITIONS[c]],
)
def test_non_edges_are_invalid(current, target):
    decision = decide(current, target)
    assert decision.valid is False
    assert decision.requires_confirmation is False
    assert decision.message


def test_non_edge_message_names_both_statuses():
    decision = decide(S.ORDER_PLACED, S.DELIVERED)
    assert "Order Placed" in decision.message
    assert "Delivered" in decision.message


@pytest.mark.parametrize("target", list(S))
def test_delivered_accepts_only_returned(target):
    decision = decide(S.DELIVERED, target)
    assert decision.valid is (target == S.RETURNED)


@pytest.mark.parametrize("target", list(S))
def test_cancelled_is_immutable(target):
    assert decide(S.CANCELLED, target).valid is False


@pytest.mark.parametrize("carrier,tracking_number", [
    ("", "DHL123456"),
    ("   ", "DHL123456"),
    ("DHL", ""),
    ("DHL", "  "),
])
def test_shipping_requires_carrier_and_number(carrier, tracking_number):
    for current in S:
        if S.SHIPPED not in TRANSITIONS[current]:
            continue
        tracking = make_tracking(current, carrier=carrier, tracking_number=tracking_number)
        decision = validate(current, S.SHIPPED, make_order(), tracking)
        assert decision.valid is False
        assert "required" in decision.message


def test_shipping_rejected_without_tracking_record():
    decision = validate(S.READY_TO_SHIP, S.SHIPPED, make_order(), None)
    assert decision.valid is False


def test_shipping_warning_names_carrier_and_number():
    decision = decide(S.READY_TO_SHIP, S.SHIPPED)
    assert decision.valid is True
    assert decision.requires_confirmation is True
    assert "DHL" in decision.warning_message
    assert "DHL123456" in decision.warning_message


def test_out_for_delivery_to_delivered_needs_confirmation():
    decision = decide(S.OUT_FOR_DELIVERY, S.DELIVERED)
    assert decision.valid is True
    assert decision.requires_confirmation is True
    assert "cannot be easily reversed" in decision.warning_message


@pytest.mark.parametrize("current", [s for s in S if s != S.OUT_FOR_DELIVERY])
def test_delivered_only_from_out_for_delivery(current):
    assert decide(current, S.DELIVERED).valid is False


def test_payment_not_confirmed_blocks_processing():
    decision = decide(
        S.ORDER_PLACED, S.PROCESSING,
        order=make_order(payment_status="unpaid", payment_method="online"),
    )
    assert decision.valid is False
    assert "Payment not confirmed" in decision.message


@pytest.mark.parametrize("payment_status,payment_method", [
    ("paid", "online"),
    ("unpaid", "cash_on_delivery"),
])
def test_processing_allowed_when_paid_or_cash_on_delivery(payment_status, payment_method):
    decision = decide(
        S.ORDER_PLACED, S.PROCESSING,
        order=make_order(payment_status=payment_status, payment_method=payment_method),
    )
    assert decision.valid is True
    assert decision.requires_confirmation is True
    assert "Processing" in decision.warning_message


def test_in_transit_falls_through_to_default_confirmation():
    decision = decide(S.SHIPPED, S.IN_TRANSIT)
    assert decision.valid is True
    assert decision.requires_confirmation is True
    assert decision.warning_message == "Are you sure you want to change status to In Transit?"


def test_cancel_during_shipping_uses_stronger_warning():
    decision = decide(S.OUT_FOR_DELIVERY, S.CANCELLED)
    assert decision.valid is True
    assert decision.requires_confirmation is True
    assert "already in shipping phase" in decision.warning_message


@pytest.mark.parametrize("current", [S.SHIPPED, S.IN_TRANSIT, S.OUT_FOR_DELIVERY])
def test_all_shipping_phase_cancellations_warn_strongly(current):
    assert "already in shipping phase" in decide(current, S.CANCELLED).warning_message


@pytest.mark.parametrize("current", [S.ORDER_PLACED, S.PROCESSING, S.READY_TO_SHIP, S.FAILED_DELIVERY])
def test_cancel_before_shipping_uses_standard_warning(current):
    decision = decide(current, S.CANCELLED)
    assert decision.valid is True
    assert "shipping phase" not in decision.warning_message
    assert "cannot be undone" in decision.warning_message


def test_ready_to_ship_reminds_about_packing():
    decision = decide(S.PROCESSING, S.READY_TO_SHIP)
    assert decision.valid is True
    assert "packed" in decision.warning_message


@pytest.mark.parametrize("current", [S.ORDER_PLACED, S.PROCESSING, S.READY_TO_SHIP, S.SHIPPED, S.IN_TRANSIT])
def test_failed_delivery_only_while_out_for_delivery(current):
    # The edge exists, the business rule refuses it
    assert S.FAILED_DELIVERY in TRANSITIONS[current]
    assert decide(current, S.FAILED_DELIVERY).valid is False


def test_failed_delivery_can_go_back_out_or_be_returned():
    assert decide(S.OUT_FOR_DELIVERY, S.FAILED_DELIVERY).valid is True
    assert decide(S.FAILED_DELIVERY, S.OUT_FOR_DELIVERY).valid is True
    assert decide(S.FAILED_DELIVERY, S.RETURNED).valid is True


def test_every_accepted_transition_needs_confirmation():
    for current, targets in TRANSITIONS.items():
        for target in targets:
            decision = decide(current, target)
            if decision.valid:
                assert decision.requires_confirmation is True
                assert decision.warning_message
                assert decision.message == ""


def test_validate_does_not_mutate_inputs():
    order = make_order()
    tracking = make_tracking(S.READY_TO_SHIP)
    before = tracking.model_dump()
    validate(S.READY_TO_SHIP, S.SHIPPED, order, tracking)
    assert tracking.model_dump() == before
