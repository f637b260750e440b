"""Application models package."""

from ict_orders.models.audit_log import AuditLog
from ict_orders.models.order import Order, OrderActivityLogEntry
from ict_orders.models.user import User

__all__ = ["AuditLog", "Order", "OrderActivityLogEntry", "User"]
