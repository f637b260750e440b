"""User ORM model covering staff accounts and client portal accounts."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from ict_orders.db.base import Base

USER_ROLES = ("ADMIN", "STAFF", "CLIENT")

LEGACY_ROLE_ALIASES: dict[str, str] = {
    "USER": "STAFF",
}


def normalize_user_role(role: str | None) -> str:
    """Return the canonical upper-case role or raise for unknown values."""
    normalized = str(role or "").strip().upper()
    normalized = LEGACY_ROLE_ALIASES.get(normalized, normalized)
    if normalized not in USER_ROLES:
        raise ValueError(f"Unsupported role: {role!r}")
    return normalized


class User(Base):
    """Account used for login; client accounts use their email as username."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    id_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
