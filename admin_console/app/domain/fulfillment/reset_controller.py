"""
Reset Controller (Domain Logic).

Reverts an order's tracking to the initial status defined by the server,
for correcting an erroneous sequence of updates. The terminal-status guard
belongs to the caller (see `ensure_resettable`).
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.exceptions import (
    RemoteServiceError,
    RemoteServiceUnavailableError,
    ResetNotAllowedError,
)
from admin_console.app.core.mutation_guard import OrderMutationGuard
from admin_console.app.core.observability import log_context
from admin_console.app.domain.fulfillment.transition_table import is_terminal
from admin_console.app.schemas.tracking import TrackingRecord
from admin_console.app.services.audit import AuditAction, log_event
from admin_console.app.services.commerce_client import CommerceApiClient
from admin_console.app.services.tracking_store import TrackingStore

logger = logging.getLogger("admin_console.fulfillment")


def can_reset(tracking: Optional[TrackingRecord]) -> bool:
    return tracking is not None and not is_terminal(tracking.status)


def ensure_resettable(tracking: TrackingRecord) -> None:
    """Raise ResetNotAllowedError once the order reached a terminal status."""
    if is_terminal(tracking.status):
        raise ResetNotAllowedError(tracking.status.value)


class ResetController:

    def __init__(
        self,
        client: CommerceApiClient,
        store: TrackingStore,
        guard: OrderMutationGuard,
        db: Optional[AsyncSession] = None,
        actor: str = "admin",
    ):
        self.client = client
        self.store = store
        self.guard = guard
        self.db = db
        self.actor = actor

    async def reset(self, order_id: str) -> TrackingRecord:
        """Reset tracking to its initial status. Repeated calls re-fetch the same reset state."""
        async with self.guard.hold(order_id):
            return await self.apply(order_id)

    async def apply(self, order_id: str) -> TrackingRecord:
        """Reset without taking the guard; the caller must hold it."""
        previous = self.store.get(order_id)
        generation = self.store.generation(order_id)

        try:
            record = await self.client.reset_tracking(order_id)
        except (RemoteServiceError, RemoteServiceUnavailableError) as e:
            logger.warning(
                "Tracking reset failed for order %s: %s", order_id, e.message,
                extra=log_context(order_id=order_id),
            )
            if self.db is not None:
                await log_event(
                    db=self.db,
                    action=AuditAction.TRACKING_UPDATE_FAILED,
                    actor_username=self.actor,
                    order_id=order_id,
                    metadata={"operation": "reset", "error": e.message},
                )
            raise

        self.store.replace(order_id, record, generation)

        logger.info(
            "Tracking reset for order %s to %s", order_id, record.status.value,
            extra=log_context(order_id=order_id),
        )
        if self.db is not None:
            await log_event(
                db=self.db,
                action=AuditAction.TRACKING_RESET,
                actor_username=self.actor,
                order_id=order_id,
                metadata={
                    "from_status": previous.status.value if previous else None,
                    "to_status": record.status.value,
                },
            )

        return record
