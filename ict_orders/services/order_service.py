"""Order lifecycle: creation, updates, deletion and role-scoped reads.

Every effective change appends activity log entries to the order itself and
every successful mutation writes exactly one system audit entry afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from ict_orders.models.order import Order, OrderActivityLogEntry
from ict_orders.services.access_control import (
    Capability,
    ensure_can_create_order_for,
    ensure_can_update_order,
    ensure_can_view_order,
    ensure_capability,
    ensure_client_role,
    scoped_client_email,
)
from ict_orders.services.actor import Actor
from ict_orders.services.audit_service import AuditActionType, AuditEntityType, record_audit
from ict_orders.services.audit_store import AuditLogStore, SqlAuditLogStore
from ict_orders.services.errors import ConflictError, NotFoundError, ValidationError
from ict_orders.services.events import ClientProfileUpdated
from ict_orders.services.order_status import (
    OrderStatus,
    ensure_transition_allowed,
    normalize_status_label,
    parse_status,
)
from ict_orders.services.order_store import OrderFilter, OrderStore, SqlOrderStore
from ict_orders.services.pagination import Page, resolve_page
from ict_orders.utils.time import next_after, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ClientSnapshot:
    """Client details copied into the order when it is placed."""

    name: str
    email: str
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None
    id: str | None = None


@dataclass
class OrderChanges:
    """Partial order update; ``None`` means "not requested"."""

    status: str | None = None
    notes: str | None = None
    visp_reference_id: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_contact_number: str | None = None
    client_address: str | None = None

    def requested(self) -> dict[str, Any]:
        return {field: value for field, value in asdict(self).items() if value is not None}


# Activity entries are appended in this order when one call changes several fields.
UPDATABLE_FIELDS: tuple[str, ...] = (
    "client_name",
    "client_email",
    "client_contact_number",
    "client_address",
    "client_id_number",
    "status",
    "notes",
    "visp_reference_id",
)


CHATBOT_SOURCE = "chatbot"


def new_order_id() -> str:
    return f"ORD-{uuid4().hex}"


def new_activity_id() -> str:
    return f"ACT-{uuid4().hex}"


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _comparable(value: Any) -> str:
    return "" if value is None else str(value)


def describe_change(field: str, old: Any, new: Any) -> str:
    """Return the activity log text for one changed field."""
    if field == "client_name":
        return f'Client name updated from "{_comparable(old)}" to "{new}".'
    if field == "client_email":
        return f'Client email updated from "{_comparable(old)}" to "{new}".'
    if field == "client_contact_number":
        return "Client contact number updated."
    if field == "client_address":
        return "Client address updated."
    if field == "client_id_number":
        return "Client ID number updated."
    if field == "status":
        return f"Status changed from {old} to {new}."
    if field == "notes":
        return "Notes updated."
    if field == "visp_reference_id":
        return f"VISP Reference ID updated to {new}."
    return f"{field} updated."


def _append_activity(order: Order, texts: list[str], actor_label: str, timestamp) -> None:
    position = len(order.activity_log)
    for offset, text in enumerate(texts):
        order.activity_log.append(
            OrderActivityLogEntry(
                id=new_activity_id(),
                position=position + offset,
                timestamp=timestamp,
                text=text,
                actor=actor_label,
            )
        )


def apply_changes(order: Order, requested: dict[str, Any], actor_label: str) -> list[str]:
    """Apply requested values, log one activity entry per changed field.

    Returns the names of the fields that actually changed; ``updated_at`` is
    only moved forward when that list is non-empty.
    """
    changed: list[str] = []
    texts: list[str] = []
    for field in UPDATABLE_FIELDS:
        if field not in requested:
            continue
        old = getattr(order, field)
        new = requested[field]
        if _comparable(old) == _comparable(new):
            continue
        texts.append(describe_change(field, old, new))
        setattr(order, field, new)
        changed.append(field)

    if changed:
        now = next_after(order.updated_at)
        order.updated_at = now
        _append_activity(order, texts, actor_label, now)
    return changed


def order_snapshot(order: Order) -> dict[str, Any]:
    """JSON-safe copy of an order, used as forensic audit payload."""
    return {
        "id": order.id,
        "client": {
            "id": order.client_id,
            "name": order.client_name,
            "email": order.client_email,
            "contact_number": order.client_contact_number,
            "address": order.client_address,
            "id_number": order.client_id_number,
        },
        "service_type": order.service_type,
        "package_name": order.package_name,
        "notes": order.notes,
        "status": order.status,
        "visp_reference_id": order.visp_reference_id,
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
        "activity_log": [
            {
                "id": entry.id,
                "timestamp": entry.timestamp.isoformat(),
                "text": entry.text,
                "actor": entry.actor,
            }
            for entry in order.activity_log
        ],
    }


def _current_values(order: Order, fields: list[str] | dict[str, Any]) -> dict[str, Any]:
    return {field: getattr(order, field) for field in fields}


def create_order(
    orders: OrderStore,
    audit: AuditLogStore,
    *,
    client: ClientSnapshot | None,
    service_type: str | None,
    package_name: str | None,
    actor: Actor,
    role: str,
    notes: str | None = None,
    source: str | None = None,
) -> Order:
    """Place a new order in status NEW with its first activity entry.

    ``source`` names the channel the order came through (e.g. ``"chatbot"``);
    it is shown in the first activity entry and kept in the audit payload.
    """
    if client is None or _blank(client.name) or _blank(client.email):
        raise ValidationError("Client name and email are required")
    if "@" not in client.email:
        raise ValidationError("Client email is invalid")
    if _blank(service_type) or _blank(package_name):
        raise ValidationError("Service type and package name are required")
    ensure_can_create_order_for(actor, role, client.email)

    now = utcnow()
    order = Order(
        id=new_order_id(),
        client_id=client.id or f"CLI-{uuid4().hex[:12].upper()}",
        client_name=client.name.strip(),
        client_email=client.email.strip(),
        client_contact_number=client.contact_number,
        client_address=client.address,
        client_id_number=client.id_number,
        service_type=service_type.strip(),
        package_name=package_name.strip(),
        notes=notes,
        status=OrderStatus.NEW.value,
        created_at=now,
        updated_at=now,
    )
    created_text = f"Order created ({source})." if source else f"Order created by {order.client_name}."
    _append_activity(order, [created_text], actor.username, now)
    orders.add(order)
    logger.info("[ORDERS] Order %s created by %s", order.id, actor.username)

    created = {
        "client": {
            "name": order.client_name,
            "email": order.client_email,
            "contact_number": order.client_contact_number,
            "address": order.client_address,
        },
        "service_type": order.service_type,
        "package_name": order.package_name,
        "notes": order.notes,
    }
    if source:
        created["source"] = source
    record_audit(
        audit,
        actor=actor,
        action_type=AuditActionType.ORDER_CREATE,
        entity_type=AuditEntityType.ORDER,
        entity_id=order.id,
        details=(
            f"Order {order.id} created by {actor.username} for {order.client_name}: "
            f"{order.service_type} - {order.package_name}."
        ),
        new_value=created,
    )
    return order


def create_chatbot_order(
    orders: OrderStore,
    audit: AuditLogStore,
    *,
    client: ClientSnapshot,
    service_type: str | None,
    package_name: str | None,
    actor: Actor,
    role: str,
    notes: str | None = None,
) -> Order:
    """Place an order collected by the chatbot; only clients order this way."""
    ensure_client_role(role, "Only clients can place orders through the chatbot")
    return create_order(
        orders,
        audit,
        client=client,
        service_type=service_type,
        package_name=package_name,
        actor=actor,
        role=role,
        notes=notes,
        source=CHATBOT_SOURCE,
    )


def update_order(
    orders: OrderStore,
    audit: AuditLogStore,
    *,
    order_id: str,
    changes: OrderChanges,
    actor: Actor,
    role: str,
    expected_version: int | None = None,
) -> Order:
    """Apply a partial update; one activity entry per changed field, one audit entry per call."""
    order = orders.get(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)

    requested = changes.requested()
    if not requested:
        raise ValidationError("No fields to update")
    ensure_can_update_order(
        actor,
        role,
        order,
        changes_status="status" in requested,
        new_client_email=requested.get("client_email"),
    )

    if "status" in requested:
        requested["status"] = parse_status(requested["status"])
        ensure_transition_allowed(order.status, requested["status"])
    if "client_name" in requested and _blank(requested["client_name"]):
        raise ValidationError("Client name cannot be empty")
    if "client_email" in requested and (_blank(requested["client_email"]) or "@" not in requested["client_email"]):
        raise ValidationError("Client email is invalid")
    if expected_version is not None and expected_version != order.version:
        raise ConflictError(
            f"Order {order_id} has version {order.version}, update was based on version {expected_version}"
        )

    previous = _current_values(order, requested)
    changed = apply_changes(order, requested, actor.username)
    if changed:
        orders.save(order)
        logger.info("[ORDERS] Order %s updated by %s: %s", order_id, actor.username, ", ".join(changed))
    else:
        logger.info("[ORDERS] Order %s update by %s changed nothing", order_id, actor.username)

    summary = ", ".join(changed) if changed else "no effective changes"
    record_audit(
        audit,
        actor=actor,
        action_type=AuditActionType.ORDER_UPDATE,
        entity_type=AuditEntityType.ORDER,
        entity_id=order_id,
        details=f"Order {order_id} updated by {actor.username} ({summary}).",
        previous_value=previous,
        new_value=requested,
    )
    return order


def delete_order(
    orders: OrderStore,
    audit: AuditLogStore,
    *,
    order_id: str,
    actor: Actor,
    role: str,
) -> None:
    """Hard-delete an order; the audit entry keeps the full snapshot."""
    ensure_capability(role, Capability.DELETE_ORDER, "Only staff can delete orders")
    order = orders.get(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)

    snapshot = order_snapshot(order)
    orders.delete(order)
    logger.info("[ORDERS] Order %s deleted by %s", order_id, actor.username)

    record_audit(
        audit,
        actor=actor,
        action_type=AuditActionType.ORDER_DELETE,
        entity_type=AuditEntityType.ORDER,
        entity_id=order_id,
        details=(
            f"Order {order_id} for {snapshot['client']['name']} "
            f"({snapshot['service_type']} - {snapshot['package_name']}) deleted by {actor.username}."
        ),
        previous_value=snapshot,
    )


def get_order(orders: OrderStore, *, order_id: str, actor: Actor, role: str) -> Order:
    order = orders.get(order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    ensure_can_view_order(actor, role, order)
    return order


def list_orders(
    orders: OrderStore,
    *,
    actor: Actor,
    role: str,
    filters: OrderFilter | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> Page[Order]:
    """Newest-first page of orders; clients only ever see their own.

    An unknown status filter matches no orders.
    """
    requested = filters or OrderFilter()
    offset, limit = resolve_page(page, page_size)
    effective = OrderFilter(
        status=normalize_status_label(requested.status) if requested.status else None,
        client_email=scoped_client_email(actor, role, requested.client_email),
    )
    items, total = orders.list(effective, offset=offset, limit=limit)
    return Page(items=items, total=total, page=page, page_size=limit)


def handle_client_profile_updated(db: Session, event: ClientProfileUpdated) -> None:
    """Copy an edited client profile onto that client's open orders."""
    orders = SqlOrderStore(db)
    audit = SqlAuditLogStore(db)
    requested: dict[str, Any] = {
        "client_name": event.name,
        "client_email": event.email,
        "client_contact_number": event.contact_number,
        "client_address": event.address,
        "client_id_number": event.id_number,
    }
    requested = {field: value for field, value in requested.items() if value is not None}

    touched = 0
    for order in orders.list_open_for_client_email(event.previous_email):
        previous = _current_values(order, requested)
        changed = apply_changes(order, requested, event.actor.username)
        if not changed:
            continue
        orders.save(order)
        touched += 1
        record_audit(
            audit,
            actor=event.actor,
            action_type=AuditActionType.ORDER_UPDATE,
            entity_type=AuditEntityType.ORDER,
            entity_id=order.id,
            details=(
                f"Client details on order {order.id} synced from profile update "
                f"by {event.actor.username} ({', '.join(changed)})."
            ),
            previous_value=previous,
            new_value=requested,
        )
    logger.info("[ORDERS] Profile update for user %s synced to %s open order(s)", event.user_id, touched)
