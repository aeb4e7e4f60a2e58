"""
Audit logging service for operator actions on order tracking.

Provides centralized, persisted records of who changed what and when.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from admin_console.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    TRACKING_CREATED = "TRACKING_CREATED"
    TRACKING_STATUS_CHANGED = "TRACKING_STATUS_CHANGED"
    TRACKING_RESET = "TRACKING_RESET"
    TRACKING_UPDATE_FAILED = "TRACKING_UPDATE_FAILED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_username: Optional[str] = None,
    order_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an operator event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_username: Operator performing the action
        order_id: Order whose tracking was affected
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_username=actor_username,
        action=action,
        order_id=order_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    order_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        order_id: Filter by order
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog entries, newest first
    """
    query = select(AuditLog)

    if order_id:
        query = query.where(AuditLog.order_id == order_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
