"""Append-only persistence for audit log entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ict_orders.models.audit_log import AuditLog
from ict_orders.services.errors import StorageError
from ict_orders.utils.time import end_of_bound, start_of_bound


@dataclass
class AuditLogFilter:
    """Conjunctive audit query filter; unset fields do not constrain."""

    actor_id: str | None = None
    action_type: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    date_from: date | datetime | None = None
    date_to: date | datetime | None = None


class AuditLogStore(Protocol):
    def append(self, entry: AuditLog) -> None: ...

    def query(self, filters: AuditLogFilter, *, offset: int, limit: int) -> tuple[list[AuditLog], int]: ...


class SqlAuditLogStore:
    """Audit store backed by the ``audit_logs`` table.

    Entries are only ever appended; there is no update or delete.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, entry: AuditLog) -> None:
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to write audit log entry") from exc

    def query(self, filters: AuditLogFilter, *, offset: int, limit: int) -> tuple[list[AuditLog], int]:
        conditions = []
        if filters.actor_id:
            conditions.append(AuditLog.actor_user_id == filters.actor_id)
        if filters.action_type:
            conditions.append(AuditLog.action_type == filters.action_type)
        if filters.entity_type:
            conditions.append(AuditLog.entity_type == filters.entity_type)
        if filters.entity_id:
            conditions.append(AuditLog.entity_id == filters.entity_id)
        if filters.date_from is not None:
            conditions.append(AuditLog.timestamp >= start_of_bound(filters.date_from))
        if filters.date_to is not None:
            conditions.append(AuditLog.timestamp <= end_of_bound(filters.date_to))

        try:
            total = self.db.scalar(select(func.count()).select_from(AuditLog).where(*conditions)) or 0
            items = self.db.scalars(
                select(AuditLog)
                .where(*conditions)
                .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to read audit log") from exc
        return list(items), int(total)
