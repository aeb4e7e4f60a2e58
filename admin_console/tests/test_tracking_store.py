"""
Unit tests for the in-memory TrackingRecord store.
"""

from admin_console.app.models.tracking_enums import TrackingStatus as S
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord
from admin_console.app.services.tracking_store import TrackingStore


def record(status, history=None):
    return TrackingRecord.model_validate({
        "_id": "trk_1",
        "orderId": "ord_1",
        "carrier": "DHL",
        "trackingNumber": "DHL1",
        "status": status,
        "statusHistory": history or [],
    })


ORDER = OrderSnapshot.model_validate({"_id": "ord_1", "paymentStatus": "paid", "paymentMethod": "online"})


def test_wire_payload_parsing():
    rec = record("shipped", [{"status": "shipped", "notes": "n", "timestamp": "2026-10-01T10:00:00Z"}])

    assert rec.id == "trk_1"
    assert rec.order_id == "ord_1"
    assert rec.status == S.SHIPPED
    assert rec.latest_entry.status == S.SHIPPED
    assert rec.model_dump(by_alias=True)["trackingNumber"] == "DHL1"


def test_replace_never_merges():
    store = TrackingStore()
    store.open("ord_1", ORDER, record("processing", [
        {"status": "processing", "notes": "a", "timestamp": "2026-10-01T10:00:00Z"},
    ]))

    store.replace("ord_1", record("order_placed"))

    assert store.get("ord_1").status == S.ORDER_PLACED
    assert store.get("ord_1").status_history == []
    assert store.get_order("ord_1") == ORDER


def test_evict_makes_pending_responses_stale():
    store = TrackingStore()
    store.open("ord_1", ORDER, record("shipped"))
    generation = store.generation("ord_1")

    store.evict("ord_1")

    assert store.replace("ord_1", record("in_transit"), generation) is False
    assert store.get("ord_1") is None
    assert store.replace("ord_1", record("in_transit"), store.generation("ord_1")) is True


def test_unknown_order():
    store = TrackingStore()
    assert store.get("nope") is None
    assert store.get_order("nope") is None
    assert not store.is_open("nope")


def test_least_recently_used_session_is_closed_past_the_cap():
    store = TrackingStore(max_sessions=2)
    store.open("ord_1", ORDER, record("shipped"))
    store.open("ord_2", ORDER, record("shipped"))
    pending = store.generation("ord_1")

    # Touching ord_1 makes ord_2 the oldest
    store.replace("ord_1", record("in_transit"), pending)
    store.open("ord_3", ORDER, record("processing"))

    assert len(store) == 2
    assert store.is_open("ord_1")
    assert not store.is_open("ord_2")
    assert store.replace("ord_2", record("in_transit"), 0) is False


def test_closed_generations_are_bounded():
    store = TrackingStore(max_sessions=2)
    for order_id in ("ord_1", "ord_2", "ord_3"):
        store.open(order_id, ORDER, record("shipped"))
        store.evict(order_id)

    assert len(store) == 0
    assert store.generation("ord_1") == 0
    assert store.generation("ord_3") == 1


def test_reopened_session_keeps_generation():
    store = TrackingStore()
    store.open("ord_1", ORDER, record("shipped"))
    store.evict("ord_1")
    store.open("ord_1", ORDER, record("shipped"))

    assert store.generation("ord_1") == 1
    assert store.replace("ord_1", record("in_transit"), 0) is False
