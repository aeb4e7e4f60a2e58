"""
Audit Log Database Model.

Tracks operator actions on order tracking (creation, status changes, resets).
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from admin_console.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking operator actions on fulfillment.

    Events logged:
    - TRACKING_CREATED
    - TRACKING_STATUS_CHANGED
    - TRACKING_RESET
    - TRACKING_UPDATE_FAILED (remote rejection)
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which order was affected (remote identifier)
    order_id = Column(String(64), nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, order={self.order_id})>"
