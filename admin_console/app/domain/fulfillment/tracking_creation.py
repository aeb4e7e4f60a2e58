"""
Tracking Creation (Domain Logic).

Attaches carrier tracking to an order that has none yet.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.exceptions import (
    InvalidTrackingDetailsError,
    RemoteServiceError,
    RemoteServiceUnavailableError,
    TrackingAlreadyExistsError,
)
from admin_console.app.core.mutation_guard import OrderMutationGuard
from admin_console.app.core.observability import log_context
from admin_console.app.schemas.tracking import TrackingRecord
from admin_console.app.services.audit import AuditAction, log_event
from admin_console.app.services.commerce_client import CommerceApiClient
from admin_console.app.services.tracking_store import TrackingStore

logger = logging.getLogger("admin_console.fulfillment")


def normalize_details(
    carrier: Optional[str], tracking_number: Optional[str], tracking_url: Optional[str] = None
) -> Tuple[str, str, Optional[str]]:
    """
    Trim tracking input.

    Raises:
        InvalidTrackingDetailsError: carrier or tracking number is blank
    """
    carrier = (carrier or "").strip()
    tracking_number = (tracking_number or "").strip()
    if not carrier or not tracking_number:
        raise InvalidTrackingDetailsError()
    return carrier, tracking_number, (tracking_url or "").strip() or None


class TrackingCreator:

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

    async def create(
        self,
        order_id: str,
        carrier: str,
        tracking_number: str,
        tracking_url: Optional[str] = None,
    ) -> TrackingRecord:
        """
        Create tracking for an order.

        Validates:
        - Carrier and tracking number are non-blank (no network call otherwise)
        - The order has no tracking record yet, checked while holding the guard
        """
        carrier, tracking_number, tracking_url = normalize_details(carrier, tracking_number, tracking_url)

        async with self.guard.hold(order_id):
            if self.store.get(order_id) is not None:
                raise TrackingAlreadyExistsError(order_id)

            generation = self.store.generation(order_id)
            try:
                record = await self.client.create_tracking(order_id, carrier, tracking_number, tracking_url)
            except (RemoteServiceError, RemoteServiceUnavailableError) as e:
                logger.warning(
                    "Tracking creation failed for order %s: %s", order_id, e.message,
                    extra=log_context(order_id=order_id, carrier=carrier),
                )
                if self.db is not None:
                    await log_event(
                        db=self.db,
                        action=AuditAction.TRACKING_UPDATE_FAILED,
                        actor_username=self.actor,
                        order_id=order_id,
                        metadata={
                            "operation": "create",
                            "carrier": carrier,
                            "tracking_number": tracking_number,
                            "error": e.message,
                        },
                    )
                raise

            self.store.replace(order_id, record, generation)

        logger.info(
            "Tracking created for order %s (%s %s)", order_id, carrier, tracking_number,
            extra=log_context(order_id=order_id),
        )
        if self.db is not None:
            await log_event(
                db=self.db,
                action=AuditAction.TRACKING_CREATED,
                actor_username=self.actor,
                order_id=order_id,
                metadata={
                    "carrier": carrier,
                    "tracking_number": tracking_number,
                    "tracking_url": tracking_url,
                    "status": record.status.value,
                },
            )

        return record
