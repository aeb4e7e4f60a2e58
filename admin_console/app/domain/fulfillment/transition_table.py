"""
Transition Table.

Static graph of directly permitted status changes. An edge here is necessary
but not sufficient: the status validator layers business rules on top.
"""

from types import MappingProxyType
from typing import List

from admin_console.app.models.tracking_enums import TrackingStatus as S


CANONICAL_FLOW = (
    S.ORDER_PLACED,
    S.PROCESSING,
    S.READY_TO_SHIP,
    S.SHIPPED,
    S.IN_TRANSIT,
    S.OUT_FOR_DELIVERY,
    S.DELIVERED,
)

TERMINAL_STATUSES = frozenset({S.DELIVERED, S.CANCELLED, S.RETURNED})

# Shipping has left the warehouse; cancelling now needs a stronger warning
SHIPPING_PHASE = frozenset({S.SHIPPED, S.IN_TRANSIT, S.OUT_FOR_DELIVERY})

TRANSITIONS = MappingProxyType({
    S.ORDER_PLACED: frozenset({S.PROCESSING, S.CANCELLED, S.FAILED_DELIVERY}),
    S.PROCESSING: frozenset({S.READY_TO_SHIP, S.CANCELLED, S.FAILED_DELIVERY}),
    S.READY_TO_SHIP: frozenset({S.SHIPPED, S.CANCELLED, S.FAILED_DELIVERY}),
    S.SHIPPED: frozenset({S.IN_TRANSIT, S.CANCELLED, S.FAILED_DELIVERY}),
    S.IN_TRANSIT: frozenset({S.OUT_FOR_DELIVERY, S.CANCELLED, S.FAILED_DELIVERY}),
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERED, S.CANCELLED, S.FAILED_DELIVERY}),
    S.FAILED_DELIVERY: frozenset({S.OUT_FOR_DELIVERY, S.RETURNED, S.CANCELLED}),
    S.DELIVERED: frozenset({S.RETURNED}),
    S.CANCELLED: frozenset(),
    S.RETURNED: frozenset(),
})

# Picklist additions beyond the canonical flow slice
_SIDE_BRANCHES = MappingProxyType({
    S.OUT_FOR_DELIVERY: (S.FAILED_DELIVERY,),
    S.DELIVERED: (S.RETURNED,),
    S.FAILED_DELIVERY: (S.OUT_FOR_DELIVERY, S.RETURNED),
})

_missing = set(S) - set(TRANSITIONS)
if _missing:
    raise RuntimeError(f"Transition table has no entry for: {sorted(s.value for s in _missing)}")


def allowed_next(status: S) -> frozenset:
    return TRANSITIONS[status]


def is_edge(current: S, target: S) -> bool:
    return target in TRANSITIONS[current]


def is_terminal(status: S) -> bool:
    return status in TERMINAL_STATUSES


def remaining_statuses(current: S) -> List[S]:
    """
    Candidate statuses to offer the operator for `current`.

    The canonical flow strictly after `current`, then side branches that
    apply to it, then `cancelled` for non-terminal statuses. The list can
    offer skips that the validator will refuse.
    """
    if current in CANONICAL_FLOW:
        candidates = list(CANONICAL_FLOW[CANONICAL_FLOW.index(current) + 1:])
    else:
        candidates = []

    for status in _SIDE_BRANCHES.get(current, ()):
        if status not in candidates:
            candidates.append(status)

    if not is_terminal(current):
        candidates.append(S.CANCELLED)

    return candidates
