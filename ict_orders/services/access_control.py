"""Role capabilities and ownership checks for orders, profiles and the audit log.

Everything here is a pure function of (actor, role, entity); callers decide
when to check and the functions raise ``AuthorizationError`` on denial.
"""

from __future__ import annotations

from enum import Enum

from ict_orders.models.order import Order
from ict_orders.models.user import normalize_user_role
from ict_orders.services.actor import Actor
from ict_orders.services.errors import AuthorizationError


class Capability(str, Enum):
    VIEW_ALL_ORDERS = "view_all_orders"
    CREATE_ORDER_FOR_ANY_CLIENT = "create_order_for_any_client"
    UPDATE_ANY_ORDER = "update_any_order"
    UPDATE_ORDER_STATUS = "update_order_status"
    DELETE_ORDER = "delete_order"
    VIEW_AUDIT_LOG = "view_audit_log"
    EDIT_ANY_PROFILE = "edit_any_profile"
    MANAGE_USERS = "manage_users"


_STAFF_CAPABILITIES: frozenset[Capability] = frozenset(
    {
        Capability.VIEW_ALL_ORDERS,
        Capability.CREATE_ORDER_FOR_ANY_CLIENT,
        Capability.UPDATE_ANY_ORDER,
        Capability.UPDATE_ORDER_STATUS,
        Capability.DELETE_ORDER,
        Capability.VIEW_AUDIT_LOG,
        Capability.EDIT_ANY_PROFILE,
    }
)

ROLE_CAPABILITIES: dict[str, frozenset[Capability]] = {
    "ADMIN": _STAFF_CAPABILITIES | {Capability.MANAGE_USERS},
    "STAFF": _STAFF_CAPABILITIES,
    "CLIENT": frozenset(),
}

ELEVATED_ROLES: frozenset[str] = frozenset({"ADMIN", "STAFF"})


def capabilities_for(role: str) -> frozenset[Capability]:
    """Return the capability set of a role; unknown roles get nothing."""
    try:
        canonical = normalize_user_role(role)
    except ValueError:
        return frozenset()
    return ROLE_CAPABILITIES[canonical]


def has_capability(role: str, capability: Capability) -> bool:
    return capability in capabilities_for(role)


def is_elevated(role: str) -> bool:
    try:
        return normalize_user_role(role) in ELEVATED_ROLES
    except ValueError:
        return False


def ensure_capability(role: str, capability: Capability, message: str = "Not enough permissions") -> None:
    """Raise ``AuthorizationError`` unless ``role`` grants ``capability``."""
    if not has_capability(role, capability):
        raise AuthorizationError(message)


def same_identity(left: str | None, right: str | None) -> bool:
    """Compare client identities (emails) case-insensitively."""
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def owns_order(actor: Actor, order: Order) -> bool:
    return same_identity(order.client_email, actor.username)


def can_view_order(actor: Actor, role: str, order: Order) -> bool:
    if has_capability(role, Capability.VIEW_ALL_ORDERS):
        return True
    return owns_order(actor, order)


def ensure_can_view_order(actor: Actor, role: str, order: Order) -> None:
    if not can_view_order(actor, role, order):
        raise AuthorizationError("Access denied")


def ensure_can_update_order(
    actor: Actor,
    role: str,
    order: Order,
    *,
    changes_status: bool,
    new_client_email: str | None = None,
) -> None:
    """Owners may edit their order's details; only elevated roles move status.

    Clients cannot re-key an order to another email; their email only changes
    through a profile update.
    """
    if changes_status and not has_capability(role, Capability.UPDATE_ORDER_STATUS):
        raise AuthorizationError("Only staff can change order status")
    if has_capability(role, Capability.UPDATE_ANY_ORDER):
        return
    if not owns_order(actor, order):
        raise AuthorizationError("Access denied")
    if new_client_email is not None and not same_identity(new_client_email, actor.username):
        raise AuthorizationError("Clients cannot move an order to another email")


def ensure_can_create_order_for(actor: Actor, role: str, client_email: str) -> None:
    if has_capability(role, Capability.CREATE_ORDER_FOR_ANY_CLIENT):
        return
    if not same_identity(client_email, actor.username):
        raise AuthorizationError("Clients can only place orders for themselves")


def ensure_client_role(role: str, message: str = "Only clients can do this") -> None:
    try:
        canonical = normalize_user_role(role)
    except ValueError:
        canonical = None
    if canonical != "CLIENT":
        raise AuthorizationError(message)


def ensure_can_edit_profile(actor: Actor, role: str, profile_user_id: str) -> None:
    if has_capability(role, Capability.EDIT_ANY_PROFILE):
        return
    if actor.user_id != profile_user_id:
        raise AuthorizationError("Access denied")


def scoped_client_email(actor: Actor, role: str, requested: str | None) -> str | None:
    """Return the client email filter to apply; clients always see only their own."""
    if has_capability(role, Capability.VIEW_ALL_ORDERS):
        return requested
    return actor.username
