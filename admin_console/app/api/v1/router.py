"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from admin_console.app.api.v1.endpoints import order_fulfillment

router = APIRouter()

# Order fulfillment workflow endpoints
router.include_router(order_fulfillment.router)
