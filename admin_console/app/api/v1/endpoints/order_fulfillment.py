"""
Order Fulfillment API Endpoints.

Lets an operator inspect an order's delivery tracking and move it through
the fulfillment workflow. Every mutation goes to the remote tracking
service; the response replaces the locally held record.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admin_console.app.core.dependencies import get_fulfillment_workflow
from admin_console.app.db.session import get_db
from admin_console.app.domain.fulfillment.workflow import FulfillmentWorkflow
from admin_console.app.schemas.fulfillment import (
    AuditLogResponse,
    OrderFulfillmentView,
    StatusOption,
    TrackingCreate,
    TransitionDecision,
    TransitionRequest,
    TransitionResponse,
)
from admin_console.app.schemas.tracking import TrackingRecord
from admin_console.app.services.audit import get_audit_trail

router = APIRouter(prefix="/orders/{order_id}/fulfillment", tags=["Orders - Fulfillment"])


@router.get("", response_model=OrderFulfillmentView)
async def get_fulfillment(
    order_id: str = Path(..., description="Order ID"),
    refresh: bool = Query(True, description="Re-fetch order and tracking from the commerce API"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """
    Open (or refresh) the operator session for an order.

    Returns the order snapshot, its tracking record (null when none exists
    yet), the status picklist, and which actions are currently available.
    """
    if refresh:
        return await workflow.load(order_id)
    return await workflow.view(order_id)


@router.get("/candidates", response_model=List[StatusOption])
async def list_candidate_statuses(
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """Statuses to offer in the status picklist for the current tracking status."""
    return await workflow.candidates(order_id)


@router.post("/tracking", response_model=TrackingRecord, status_code=status.HTTP_201_CREATED)
async def create_tracking(
    payload: TrackingCreate,
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """
    Attach carrier tracking to an order.

    Validates:
    - Carrier and tracking number are not blank
    - The order has no tracking yet
    """
    return await workflow.create_tracking(
        order_id, payload.carrier, payload.tracking_number, payload.tracking_url
    )


@router.post("/transitions/validate", response_model=TransitionDecision)
async def validate_transition(
    payload: TransitionRequest,
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """Decision for a proposed status without applying it. Always 200; see `valid`."""
    return await workflow.propose(order_id, payload.status)


@router.post("/transitions", response_model=TransitionResponse)
async def apply_transition(
    payload: TransitionRequest,
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """
    Change the tracking status.

    Returns 400 when a business rule refuses the change, and 409 with the
    warning text when the change needs `confirmed: true`.
    """
    return await workflow.transition(order_id, payload.status, confirmed=payload.confirmed)


@router.post("/reset", response_model=TrackingRecord)
async def reset_tracking(
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """Reset tracking to its initial status. Refused for delivered, cancelled and returned orders."""
    return await workflow.reset_tracking(order_id)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    order_id: str = Path(..., description="Order ID"),
    workflow: FulfillmentWorkflow = Depends(get_fulfillment_workflow),
):
    """Operator left the order; late responses for it are dropped."""
    workflow.close(order_id)


@router.get("/audit", response_model=List[AuditLogResponse])
async def get_order_audit_trail(
    order_id: str = Path(..., description="Order ID"),
    action: Optional[str] = Query(None, description="Filter by action"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Operator actions recorded for this order, newest first."""
    entries = await get_audit_trail(db, order_id=order_id, action=action, limit=limit)
    return [AuditLogResponse.model_validate(e) for e in entries]
