"""Persistence for Order aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from ict_orders.models.order import Order
from ict_orders.services.errors import ConflictError, StorageError
from ict_orders.services.order_status import CLOSED_STATUSES


@dataclass
class OrderFilter:
    status: str | None = None
    client_email: str | None = None


class OrderStore(Protocol):
    def get(self, order_id: str) -> Order | None: ...

    def add(self, order: Order) -> Order: ...

    def save(self, order: Order) -> Order: ...

    def delete(self, order: Order) -> None: ...

    def list(self, filters: OrderFilter, *, offset: int, limit: int) -> tuple[list[Order], int]: ...

    def list_open_for_client_email(self, email: str) -> list[Order]: ...


class SqlOrderStore:
    """Order store over the ``orders`` and ``order_activity_log`` tables."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, order_id: str) -> Order | None:
        try:
            return self.db.scalar(
                select(Order).options(selectinload(Order.activity_log)).where(Order.id == order_id).limit(1)
            )
        except SQLAlchemyError as exc:
            raise StorageError("Failed to load order") from exc

    def add(self, order: Order) -> Order:
        self.db.add(order)
        return self._commit(order)

    def save(self, order: Order) -> Order:
        return self._commit(order)

    def delete(self, order: Order) -> None:
        try:
            self.db.delete(order)
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConflictError("Order was modified concurrently; reload and retry") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to delete order") from exc

    def list(self, filters: OrderFilter, *, offset: int, limit: int) -> tuple[list[Order], int]:
        conditions = []
        if filters.status:
            conditions.append(Order.status == filters.status)
        if filters.client_email:
            conditions.append(func.lower(Order.client_email) == filters.client_email.strip().lower())

        try:
            total = self.db.scalar(select(func.count()).select_from(Order).where(*conditions)) or 0
            items = self.db.scalars(
                select(Order)
                .options(selectinload(Order.activity_log))
                .where(*conditions)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list orders") from exc
        return list(items), int(total)

    def list_open_for_client_email(self, email: str) -> list[Order]:
        try:
            return list(
                self.db.scalars(
                    select(Order)
                    .options(selectinload(Order.activity_log))
                    .where(
                        func.lower(Order.client_email) == email.strip().lower(),
                        Order.status.not_in(sorted(CLOSED_STATUSES)),
                    )
                    .order_by(Order.created_at.asc())
                ).all()
            )
        except SQLAlchemyError as exc:
            raise StorageError("Failed to load client orders") from exc

    def _commit(self, order: Order) -> Order:
        try:
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConflictError("Order was modified concurrently; reload and retry") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to save order") from exc
        self.db.refresh(order)
        return order
