"""
Transition Executor (Domain Logic).

Applies an accepted status change through the tracking service and replaces
the stored TrackingRecord with the server's authoritative copy.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.exceptions import (
    RemoteServiceError,
    RemoteServiceUnavailableError,
    TransitionRejectedError,
)
from admin_console.app.core.mutation_guard import OrderMutationGuard
from admin_console.app.core.observability import log_context
from admin_console.app.models.tracking_enums import TrackingStatus
from admin_console.app.schemas.fulfillment import TransitionDecision
from admin_console.app.schemas.tracking import TrackingRecord
from admin_console.app.services.audit import AuditAction, log_event
from admin_console.app.services.commerce_client import CommerceApiClient
from admin_console.app.services.tracking_store import TrackingStore

logger = logging.getLogger("admin_console.fulfillment")


def build_status_note(target_status: TrackingStatus, actor: str = "admin") -> str:
    return f"Status changed to {target_status.value} by {actor}"


class TransitionExecutor:

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

    async def execute(
        self, order_id: str, target_status: TrackingStatus, decision: TransitionDecision
    ) -> TrackingRecord:
        """
        Apply a validated transition while holding the order's mutation guard.

        The caller must already hold operator confirmation when
        `decision.requires_confirmation` is set. Exactly one remote
        mutation is issued; it is never retried.

        Raises:
            TransitionRejectedError: decision is not valid (no network call)
            TransitionInFlightError: another mutation for the order is pending
            RemoteServiceError: the tracking service rejected the update
        """
        if not decision.valid:
            raise TransitionRejectedError(decision.message, target_status=target_status.value)

        async with self.guard.hold(order_id):
            return await self.apply(order_id, target_status)

    async def apply(self, order_id: str, target_status: TrackingStatus) -> TrackingRecord:
        """Send the update and store the result. The caller holds the guard."""
        previous = self.store.get(order_id)
        previous_status = previous.status.value if previous else None
        notes = build_status_note(target_status, self.actor)
        generation = self.store.generation(order_id)

        try:
            record = await self.client.update_tracking_status(order_id, target_status, notes)
        except (RemoteServiceError, RemoteServiceUnavailableError) as e:
            logger.warning(
                "Tracking status update failed for order %s: %s", order_id, e.message,
                extra=log_context(order_id=order_id, target_status=target_status.value),
            )
            if self.db is not None:
                await log_event(
                    db=self.db,
                    action=AuditAction.TRACKING_UPDATE_FAILED,
                    actor_username=self.actor,
                    order_id=order_id,
                    metadata={
                        "operation": "status_change",
                        "from_status": previous_status,
                        "to_status": target_status.value,
                        "error": e.message,
                    },
                )
            raise

        self.store.replace(order_id, record, generation)

        logger.info(
            "Tracking status changed for order %s: %s -> %s",
            order_id, previous_status, record.status.value,
            extra=log_context(order_id=order_id),
        )
        if self.db is not None:
            await log_event(
                db=self.db,
                action=AuditAction.TRACKING_STATUS_CHANGED,
                actor_username=self.actor,
                order_id=order_id,
                metadata={
                    "from_status": previous_status,
                    "to_status": record.status.value,
                    "notes": notes,
                    "history_length": len(record.status_history),
                },
            )

        return record
