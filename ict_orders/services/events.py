"""In-process domain events.

Handlers receive the publisher's session and run after the publisher has
committed its own change; a failing handler is logged and does not undo it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from ict_orders.services.actor import Actor

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Any], None]

_handlers: dict[type, list[Handler]] = defaultdict(list)


@dataclass(frozen=True)
class ClientProfileUpdated:
    """A client's profile changed; ``previous_email`` identifies their orders."""

    user_id: str
    previous_email: str
    name: str
    email: str
    contact_number: str | None
    address: str | None
    id_number: str | None
    actor: Actor


def subscribe(event_type: type) -> Callable[[Handler], Handler]:
    """Register the decorated function as a handler for ``event_type``."""

    def _register(handler: Handler) -> Handler:
        if handler not in _handlers[event_type]:
            _handlers[event_type].append(handler)
        return handler

    return _register


def handlers_for(event_type: type) -> list[Handler]:
    return list(_handlers.get(event_type, []))


def publish(db: Session, event: Any) -> None:
    for handler in list(_handlers.get(type(event), [])):
        try:
            handler(db, event)
        except Exception:
            db.rollback()
            logger.exception("[EVENTS] Handler %s failed for %s", getattr(handler, "__name__", handler), type(event).__name__)
