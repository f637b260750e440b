"""Account bootstrap and login helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from ict_orders.core.config import settings
from ict_orders.core.security import get_password_hash, verify_password
from ict_orders.models import User
from ict_orders.services.actor import Actor, SYSTEM_ACTOR, actor_from_user
from ict_orders.services.audit_service import AuditActionType, AuditEntityType, record_audit
from ict_orders.services.audit_store import SqlAuditLogStore
from ict_orders.services.user_service import create_user, get_user_by_username

logger = logging.getLogger(__name__)

ANONYMOUS_USER_ID = "anonymous"


def ensure_default_admin(db: Session) -> bool:
    """Ensure a bootstrap admin account exists.

    Returns:
        bool: True when an admin account already existed before this call.
    """
    existing_admin = db.scalar(select(User).where(User.role == "ADMIN").limit(1))
    if existing_admin is not None:
        if not existing_admin.is_active:
            existing_admin.is_active = True
            db.commit()
            logger.info("[BOOTSTRAP] Admin exists but was inactive; account re-activated.")
        logger.info("[BOOTSTRAP] Admin exists")
        return True

    if not settings.admin_pass:
        if settings.app_env != "dev":
            logger.warning("[BOOTSTRAP] No admin account and ADMIN_PASS is not set; skipping bootstrap.")
            return False
        logger.warning("[SECURITY] ADMIN_PASS not set; creating dev admin with default password. Change it immediately.")

    create_user(
        db,
        username=settings.admin_user,
        hashed_password=get_password_hash(settings.admin_pass or "admin"),
        role="ADMIN",
        actor=SYSTEM_ACTOR,
        name="Administrator",
    )
    logger.warning("[SECURITY] Default admin account '%s' created.", settings.admin_user)
    return False


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Check credentials and audit the attempt whether it succeeds or not."""
    audit = SqlAuditLogStore(db)
    user = get_user_by_username(db, username)
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        attempted = Actor(
            user_id=str(user.id) if user is not None else ANONYMOUS_USER_ID,
            username=username.strip(),
        )
        reason = "inactive account" if user is not None and not user.is_active else "invalid credentials"
        record_audit(
            audit,
            actor=attempted,
            action_type=AuditActionType.USER_LOGIN_FAILED,
            entity_type=AuditEntityType.USER,
            entity_id=str(user.id) if user is not None else None,
            details=f"Failed login for '{username.strip()}' ({reason}).",
        )
        logger.info("[AUTH] Failed login for %s", username.strip())
        return None

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    record_audit(
        audit,
        actor=actor_from_user(user),
        action_type=AuditActionType.USER_LOGIN,
        entity_type=AuditEntityType.USER,
        entity_id=str(user.id),
        details=f"User '{user.username}' logged in.",
    )
    return user


def record_logout(db: Session, user: User) -> None:
    record_audit(
        SqlAuditLogStore(db),
        actor=actor_from_user(user),
        action_type=AuditActionType.USER_LOGOUT,
        entity_type=AuditEntityType.USER,
        entity_id=str(user.id),
        details=f"User '{user.username}' logged out.",
    )
