"""
Request-scoped dependencies for FastAPI.

Wires the fulfillment workflow to the shared commerce client, tracking
store, mutation guard and the audit database session.
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.mutation_guard import OrderMutationGuard, get_mutation_guard
from admin_console.app.db.session import get_db
from admin_console.app.domain.fulfillment.workflow import FulfillmentWorkflow
from admin_console.app.services.commerce_client import CommerceApiClient, get_commerce_client
from admin_console.app.services.tracking_store import TrackingStore, get_tracking_store


async def get_operator(x_operator: str = Header("admin", alias="X-Operator")) -> str:
    """Operator name used in status notes and the audit trail."""
    return x_operator.strip() or "admin"


async def get_fulfillment_workflow(
    operator: str = Depends(get_operator),
    db: AsyncSession = Depends(get_db),
    client: CommerceApiClient = Depends(get_commerce_client),
    store: TrackingStore = Depends(get_tracking_store),
    guard: OrderMutationGuard = Depends(get_mutation_guard),
) -> FulfillmentWorkflow:
    return FulfillmentWorkflow(client, store, guard, db=db, actor=operator)
