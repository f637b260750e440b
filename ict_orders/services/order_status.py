"""Order status values and the optional transition table."""

from __future__ import annotations

from enum import Enum

from ict_orders.core.config import settings
from ict_orders.services.errors import ValidationError


class OrderStatus(str, Enum):
    NEW = "NEW"
    UNDER_REVIEW = "UNDER_REVIEW"
    SUBMITTED_TO_VISP = "SUBMITTED_TO_VISP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ORDER_STATUSES: list[str] = [status.value for status in OrderStatus]

CLOSED_STATUSES: frozenset[str] = frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value})

# Only consulted when ENFORCE_STATUS_TRANSITIONS=1; by default any status may move to any other.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "NEW": {"UNDER_REVIEW", "SUBMITTED_TO_VISP", "CANCELLED"},
    "UNDER_REVIEW": {"NEW", "SUBMITTED_TO_VISP", "CANCELLED"},
    "SUBMITTED_TO_VISP": {"UNDER_REVIEW", "COMPLETED", "CANCELLED"},
    "COMPLETED": set(),
    "CANCELLED": set(),
}


def normalize_status_label(value: str) -> str:
    """Map labels such as "Submitted to VISP" onto the stored spelling."""
    return str(value or "").strip().upper().replace(" ", "_")


def parse_status(value: str) -> str:
    """Return the canonical status value or raise ``ValidationError``."""
    normalized = normalize_status_label(value)
    if normalized not in ORDER_STATUSES:
        raise ValidationError(f"Invalid order status: {value!r}")
    return normalized


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition_allowed(current: str, new: str, *, enforce: bool | None = None) -> None:
    """Reject a status change only when transition enforcement is switched on."""
    if current == new:
        return
    enforced = settings.enforce_status_transitions if enforce is None else enforce
    if enforced and not can_transition(current, new):
        raise ValidationError(f"Status cannot change from {current} to {new}")


def is_open(status: str) -> bool:
    return status not in CLOSED_STATUSES
