"""
TrackingRecord Store.

Memory-based holder of the order snapshot and current TrackingRecord for
every order an operator has open. Records are replaced wholesale by the
server's response, never merged.

Each order carries a generation counter that is bumped when the operator
session is closed; a remote response that arrives for an older generation
is dropped instead of resurrecting the closed session.

The store is bounded: past `max_sessions` open orders the least recently
used session is closed as if the operator had left it. Generations of
closed sessions are remembered for the same number of orders; a late
response for an order forgotten from that list can be stored again.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from admin_console.app.core.config import settings
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord

logger = logging.getLogger("admin_console.tracking_store")


@dataclass
class OrderSession:
    order: Optional[OrderSnapshot] = None
    tracking: Optional[TrackingRecord] = None
    generation: int = 0


class TrackingStore:

    def __init__(self, max_sessions: int = None):
        self.max_sessions = max_sessions or settings.tracking_store_max_sessions
        self._sessions: "OrderedDict[str, OrderSession]" = OrderedDict()
        self._closed: "OrderedDict[str, int]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, order_id: str, order: OrderSnapshot, tracking: Optional[TrackingRecord]) -> OrderSession:
        """Start (or refresh) the operator session for an order."""
        return self._put(order_id, OrderSession(order=order, tracking=tracking))

    def is_open(self, order_id: str) -> bool:
        return order_id in self._sessions

    def get_order(self, order_id: str) -> Optional[OrderSnapshot]:
        session = self._sessions.get(order_id)
        return session.order if session else None

    def get(self, order_id: str) -> Optional[TrackingRecord]:
        session = self._sessions.get(order_id)
        return session.tracking if session else None

    def generation(self, order_id: str) -> int:
        session = self._sessions.get(order_id)
        if session is not None:
            return session.generation
        return self._closed.get(order_id, 0)

    def replace(self, order_id: str, record: TrackingRecord, generation: Optional[int] = None) -> bool:
        """
        Replace the order's TrackingRecord with an authoritative server copy.

        Args:
            order_id: Order the record belongs to
            record: Record returned by the tracking service
            generation: Generation observed before the remote call was issued

        Returns:
            False if the response was stale and dropped
        """
        if generation is not None and generation != self.generation(order_id):
            logger.debug("Dropping late tracking response for closed order %s", order_id)
            return False

        session = self._sessions.get(order_id)
        if session is None:
            session = self._put(order_id, OrderSession())
        else:
            self._sessions.move_to_end(order_id)
        session.tracking = record
        return True

    def evict(self, order_id: str) -> None:
        """Close the operator session; in-flight responses for it become stale."""
        generation = self.generation(order_id)
        self._sessions.pop(order_id, None)
        self._retire(order_id, generation + 1)

    def _put(self, order_id: str, session: OrderSession) -> OrderSession:
        session.generation = self.generation(order_id)
        self._closed.pop(order_id, None)
        self._sessions[order_id] = session
        self._sessions.move_to_end(order_id)

        while len(self._sessions) > self.max_sessions:
            oldest, dropped = self._sessions.popitem(last=False)
            logger.debug("Closing least recently used session for order %s", oldest)
            self._retire(oldest, dropped.generation + 1)
        return session

    def _retire(self, order_id: str, generation: int) -> None:
        self._closed[order_id] = generation
        self._closed.move_to_end(order_id)
        while len(self._closed) > self.max_sessions:
            self._closed.popitem(last=False)


# Process-wide store shared by all requests
tracking_store = TrackingStore()


async def get_tracking_store() -> TrackingStore:
    """FastAPI dependency for the shared tracking store."""
    return tracking_store
