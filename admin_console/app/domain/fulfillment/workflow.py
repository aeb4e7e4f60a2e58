"""
Fulfillment Workflow (Domain Logic).

Orchestrates one operator's work on an order's tracking:
proposal → validator → confirmation → executor → store.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.exceptions import (
    ConfirmationRequiredError,
    ResourceNotFoundError,
    TransitionRejectedError,
)
from admin_console.app.core.mutation_guard import OrderMutationGuard
from admin_console.app.core.observability import log_context
from admin_console.app.domain.fulfillment import status_validator
from admin_console.app.domain.fulfillment.reset_controller import (
    ResetController,
    can_reset,
    ensure_resettable,
)
from admin_console.app.domain.fulfillment.tracking_creation import TrackingCreator, normalize_details
from admin_console.app.domain.fulfillment.transition_executor import TransitionExecutor
from admin_console.app.domain.fulfillment.transition_table import remaining_statuses
from admin_console.app.models.tracking_enums import TrackingStatus
from admin_console.app.schemas.fulfillment import (
    OrderFulfillmentView,
    StatusOption,
    TransitionDecision,
    TransitionResponse,
)
from admin_console.app.schemas.tracking import OrderSnapshot, TrackingRecord
from admin_console.app.services.commerce_client import CommerceApiClient
from admin_console.app.services.tracking_store import TrackingStore

logger = logging.getLogger("admin_console.fulfillment")


def status_options(tracking: Optional[TrackingRecord]) -> List[StatusOption]:
    if tracking is None:
        return []
    return [StatusOption(status=s, label=s.label) for s in remaining_statuses(tracking.status)]


class FulfillmentWorkflow:

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
        self.executor = TransitionExecutor(client, store, guard, db=db, actor=actor)
        self.reset_controller = ResetController(client, store, guard, db=db, actor=actor)
        self.creator = TrackingCreator(client, store, guard, db=db, actor=actor)

    async def load(self, order_id: str) -> OrderFulfillmentView:
        """
        Fetch the order and its tracking and open the operator session.

        A missing tracking record is a normal state: the view offers creation.
        """
        order = await self.client.get_order(order_id)
        tracking = await self.client.get_tracking(order_id)
        self.store.open(order_id, order, tracking)
        return self._view(order, tracking)

    def close(self, order_id: str) -> None:
        self.store.evict(order_id)

    async def _session(self, order_id: str) -> Tuple[OrderSnapshot, Optional[TrackingRecord]]:
        if not self.store.is_open(order_id):
            await self.load(order_id)
        return self.store.get_order(order_id), self.store.get(order_id)

    async def _require_tracking(self, order_id: str) -> Tuple[OrderSnapshot, TrackingRecord]:
        order, tracking = await self._session(order_id)
        if tracking is None:
            raise ResourceNotFoundError("Tracking for order", order_id)
        return order, tracking

    def _held_tracking(self, order_id: str) -> Tuple[OrderSnapshot, TrackingRecord]:
        """Re-read the session while holding the guard; it may have changed or closed meanwhile."""
        tracking = self.store.get(order_id)
        if tracking is None:
            raise ResourceNotFoundError("Tracking for order", order_id)
        return self.store.get_order(order_id), tracking

    @staticmethod
    def _view(order: OrderSnapshot, tracking: Optional[TrackingRecord]) -> OrderFulfillmentView:
        return OrderFulfillmentView(
            order=order,
            tracking=tracking,
            candidate_statuses=status_options(tracking),
            can_create_tracking=tracking is None,
            can_reset=can_reset(tracking),
        )

    async def view(self, order_id: str) -> OrderFulfillmentView:
        order, tracking = await self._session(order_id)
        return self._view(order, tracking)

    async def candidates(self, order_id: str) -> List[StatusOption]:
        _, tracking = await self._session(order_id)
        return status_options(tracking)

    async def propose(self, order_id: str, target_status: TrackingStatus) -> TransitionDecision:
        """Validator decision for a proposed status against the session's current state."""
        order, tracking = await self._require_tracking(order_id)
        return status_validator.validate(tracking.status, target_status, order, tracking)

    async def transition(
        self, order_id: str, target_status: TrackingStatus, confirmed: bool = False
    ) -> TransitionResponse:
        """
        Validate and apply a status change.

        Raises:
            TransitionRejectedError: a business rule refused the change
            ConfirmationRequiredError: the change needs `confirmed=True`
        """
        await self._require_tracking(order_id)

        # Decide against the record as it stands once no other mutation can run
        async with self.guard.hold(order_id):
            order, tracking = self._held_tracking(order_id)
            current = tracking.status
            decision = status_validator.validate(current, target_status, order, tracking)

            if not decision.valid:
                logger.info(
                    "Rejected tracking transition for order %s: %s -> %s (%s)",
                    order_id, current.value, target_status.value, decision.message,
                    extra=log_context(order_id=order_id),
                )
                raise TransitionRejectedError(decision.message, current.value, target_status.value)

            if decision.requires_confirmation and not confirmed:
                raise ConfirmationRequiredError(decision.warning_message, current.value, target_status.value)

            record = await self.executor.apply(order_id, target_status)

        return TransitionResponse(decision=decision, tracking=record)

    async def create_tracking(
        self,
        order_id: str,
        carrier: str,
        tracking_number: str,
        tracking_url: Optional[str] = None,
    ) -> TrackingRecord:
        # Reject blank input before touching the network
        carrier, tracking_number, tracking_url = normalize_details(carrier, tracking_number, tracking_url)
        await self._session(order_id)
        return await self.creator.create(order_id, carrier, tracking_number, tracking_url)

    async def reset_tracking(self, order_id: str) -> TrackingRecord:
        """Reset tracking unless the order reached a terminal status."""
        await self._require_tracking(order_id)
        async with self.guard.hold(order_id):
            _, tracking = self._held_tracking(order_id)
            ensure_resettable(tracking)
            return await self.reset_controller.apply(order_id)
