"""Audit log API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class AuditLogRead(BaseModel):
    """Serialized audit log entry."""

    id: str
    timestamp: datetime
    actor_user_id: str
    actor_username: str
    action_type: str
    entity_type: str
    entity_id: str | None = None
    details: str
    previous_value: Any = None
    new_value: Any = None

    model_config = ConfigDict(from_attributes=True)


class AuditLogPage(BaseModel):
    items: list[AuditLogRead]
    total: int
    page: int
    page_size: int
