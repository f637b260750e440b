"""Audit recording and querying.

Recording is best effort: the business mutation has already been committed
when ``record_audit`` runs, so a failed audit write is logged and dropped
rather than surfaced to the caller.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any
from uuid import uuid4

from ict_orders.models.audit_log import AuditLog
from ict_orders.services.access_control import Capability, ensure_capability
from ict_orders.services.actor import Actor
from ict_orders.services.audit_store import AuditLogFilter, AuditLogStore
from ict_orders.services.pagination import Page, resolve_page
from ict_orders.utils.time import utcnow

logger = logging.getLogger(__name__)


class AuditActionType(str, Enum):
    ORDER_CREATE = "ORDER_CREATE"
    ORDER_UPDATE = "ORDER_UPDATE"
    ORDER_DELETE = "ORDER_DELETE"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_ROLE_CHANGE = "USER_ROLE_CHANGE"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"
    USER_LOGOUT = "USER_LOGOUT"
    INVOICE_STATUS_UPDATE = "INVOICE_STATUS_UPDATE"
    BILLING_SETTINGS_UPDATE = "BILLING_SETTINGS_UPDATE"
    CLIENT_REQUEST_CREATE = "CLIENT_REQUEST_CREATE"
    CLIENT_REQUEST_STATUS_UPDATE = "CLIENT_REQUEST_STATUS_UPDATE"
    SUBSCRIPTION_STATUS_UPDATE = "SUBSCRIPTION_STATUS_UPDATE"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    UNKNOWN = "UNKNOWN"


class AuditEntityType(str, Enum):
    ORDER = "Order"
    USER = "User"
    INVOICE = "Invoice"
    BILLING_SETTINGS = "BillingSettings"
    CLIENT_REQUEST = "ClientRequest"
    SUBSCRIPTION = "Subscription"
    SYSTEM = "System"
    NONE = "None"


def new_audit_id() -> str:
    return f"AUD-{uuid4().hex}"


def record_audit(
    store: AuditLogStore,
    *,
    actor: Actor,
    action_type: AuditActionType,
    entity_type: AuditEntityType,
    details: str,
    entity_id: str | None = None,
    previous_value: Any = None,
    new_value: Any = None,
) -> AuditLog | None:
    """Append one audit entry; return it, or ``None`` if the entry could not be built or written."""
    try:
        entry = AuditLog(
            id=new_audit_id(),
            timestamp=utcnow(),
            actor_user_id=actor.user_id,
            actor_username=actor.username,
            action_type=AuditActionType(action_type).value,
            entity_type=AuditEntityType(entity_type).value,
            entity_id=entity_id,
            details=details,
            previous_value=previous_value,
            new_value=new_value,
        )
        store.append(entry)
    except Exception:
        logger.exception(
            "[AUDIT] Failed to record %s on %s %s by %s",
            getattr(action_type, "value", action_type),
            getattr(entity_type, "value", entity_type),
            entity_id,
            actor.username,
        )
        return None
    return entry


def query_audit_log(
    store: AuditLogStore,
    *,
    actor: Actor,
    role: str,
    filters: AuditLogFilter | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> Page[AuditLog]:
    """Return a newest-first page of audit entries; elevated roles only."""
    ensure_capability(role, Capability.VIEW_AUDIT_LOG, "Only staff can view the audit log")
    offset, limit = resolve_page(page, page_size)
    items, total = store.query(filters or AuditLogFilter(), offset=offset, limit=limit)
    logger.debug("[AUDIT] %s queried audit log page=%s total=%s", actor.username, page, total)
    return Page(items=items, total=total, page=page, page_size=limit)
