"""User service operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ict_orders.models.user import User, normalize_user_role
from ict_orders.services.access_control import Capability, ensure_can_edit_profile, ensure_capability
from ict_orders.services.actor import Actor
from ict_orders.services.audit_service import AuditActionType, AuditEntityType, record_audit
from ict_orders.services.audit_store import SqlAuditLogStore
from ict_orders.services.errors import AuthorizationError, NotFoundError, StorageError, ValidationError
from ict_orders.services.events import ClientProfileUpdated, publish

logger = logging.getLogger(__name__)


@dataclass
class ClientProfileChanges:
    name: str
    email: str
    contact_number: str | None = None
    address: str | None = None
    id_number: str | None = None


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(func.lower(User.username) == username.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("Username is already taken") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(message) from exc


def _public_fields(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "name": user.name,
        "email": user.email,
        "contact_number": user.contact_number,
        "address": user.address,
    }


def create_user(
    db: Session,
    *,
    username: str,
    hashed_password: str,
    role: str,
    actor: Actor | None = None,
    name: str | None = None,
    email: str | None = None,
    contact_number: str | None = None,
    address: str | None = None,
    id_number: str | None = None,
) -> User:
    """Create an account; client accounts use their email as username."""
    try:
        canonical_role = normalize_user_role(role)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    if not username or not username.strip():
        raise ValidationError("Username is required")
    if get_user_by_username(db, username) is not None:
        raise ValidationError("Username is already taken")
    if canonical_role == "CLIENT" and "@" not in username:
        raise ValidationError("Client accounts must use an email address as username")

    user = User(
        username=username.strip(),
        password_hash=hashed_password,
        role=canonical_role,
        name=name,
        email=email or (username.strip() if canonical_role == "CLIENT" else None),
        contact_number=contact_number,
        address=address,
        id_number=id_number,
        is_active=True,
    )
    db.add(user)
    _commit(db, "Failed to create user")
    db.refresh(user)

    creator = actor or Actor(user_id=str(user.id), username=user.username)
    record_audit(
        SqlAuditLogStore(db),
        actor=creator,
        action_type=AuditActionType.USER_CREATE,
        entity_type=AuditEntityType.USER,
        entity_id=str(user.id),
        details=f"User '{user.username}' ({user.role}) created by '{creator.username}'.",
        new_value=_public_fields(user),
    )
    return user


def register_client(
    db: Session,
    *,
    email: str,
    hashed_password: str,
    name: str,
    contact_number: str | None = None,
    address: str | None = None,
) -> User:
    """Self-service registration for the client portal."""
    return create_user(
        db,
        username=email,
        hashed_password=hashed_password,
        role="CLIENT",
        name=name,
        email=email,
        contact_number=contact_number,
        address=address,
    )


def update_client_profile(
    db: Session,
    *,
    user_id: int,
    changes: ClientProfileChanges,
    actor: Actor,
    role: str,
) -> User:
    """Edit a client's profile, then cascade it to their open orders."""
    ensure_can_edit_profile(actor, role, str(user_id))
    user = get_user_by_id(db, user_id)
    if user is None or user.role != "CLIENT":
        raise NotFoundError("Client user", str(user_id))
    if not changes.name or not changes.name.strip():
        raise ValidationError("Name is required")
    if not changes.email or "@" not in changes.email:
        raise ValidationError("A valid email is required")

    original_email = user.username
    if changes.email.strip().lower() != original_email.lower():
        other = get_user_by_username(db, changes.email)
        if other is not None and other.id != user.id:
            raise ValidationError("Email is already in use")

    described: list[str] = []
    previous: dict[str, Any] = {}
    new: dict[str, Any] = {}

    if changes.name != user.name:
        described.append(f"Name from '{user.name}' to '{changes.name}'")
        previous["name"], new["name"] = user.name, changes.name
        user.name = changes.name
    if changes.email.strip().lower() != user.username.lower():
        described.append(f"Email (username) from '{user.username}' to '{changes.email}'")
        previous["username"], new["username"] = user.username, changes.email.strip()
        user.username = changes.email.strip()
        user.email = changes.email.strip()
    if changes.contact_number != user.contact_number:
        described.append("Contact number updated.")
        previous["contact_number"], new["contact_number"] = user.contact_number, changes.contact_number
        user.contact_number = changes.contact_number
    if changes.address != user.address:
        described.append("Address updated.")
        previous["address"], new["address"] = user.address, changes.address
        user.address = changes.address
    if changes.id_number is not None and changes.id_number != user.id_number:
        described.append("ID number updated.")
        previous["id_number"], new["id_number"] = user.id_number, changes.id_number
        user.id_number = changes.id_number

    if not described:
        return user

    _commit(db, "Failed to update client profile")
    db.refresh(user)
    record_audit(
        SqlAuditLogStore(db),
        actor=actor,
        action_type=AuditActionType.USER_UPDATE,
        entity_type=AuditEntityType.USER,
        entity_id=str(user.id),
        details=f"Client profile updated by '{actor.username}'. Changes: {', '.join(described)}.",
        previous_value=previous,
        new_value=new,
    )
    publish(
        db,
        ClientProfileUpdated(
            user_id=str(user.id),
            previous_email=original_email,
            name=user.name or "",
            email=user.username,
            contact_number=user.contact_number,
            address=user.address,
            id_number=user.id_number,
            actor=actor,
        ),
    )
    return user


def change_user_role(db: Session, *, user_id: int, new_role: str, actor: Actor, role: str) -> User:
    ensure_capability(role, Capability.MANAGE_USERS, "Only administrators can change roles")
    try:
        canonical_role = normalize_user_role(new_role)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", str(user_id))
    if str(user.id) == actor.user_id:
        raise AuthorizationError("Administrators cannot change their own role")

    previous_role = user.role
    if previous_role == canonical_role:
        return user
    user.role = canonical_role
    _commit(db, "Failed to change user role")
    db.refresh(user)
    record_audit(
        SqlAuditLogStore(db),
        actor=actor,
        action_type=AuditActionType.USER_ROLE_CHANGE,
        entity_type=AuditEntityType.USER,
        entity_id=str(user.id),
        details=f"Role of '{user.username}' changed from {previous_role} to {canonical_role} by '{actor.username}'.",
        previous_value=previous_role,
        new_value=canonical_role,
    )
    return user


def delete_user(db: Session, *, user_id: int, actor: Actor, role: str) -> None:
    ensure_capability(role, Capability.MANAGE_USERS, "Only administrators can delete users")
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", str(user_id))
    if str(user.id) == actor.user_id:
        raise AuthorizationError("Administrators cannot delete their own account")

    snapshot = _public_fields(user)
    db.delete(user)
    _commit(db, "Failed to delete user")
    logger.info("[USERS] User %s deleted by %s", user_id, actor.username)
    record_audit(
        SqlAuditLogStore(db),
        actor=actor,
        action_type=AuditActionType.USER_DELETE,
        entity_type=AuditEntityType.USER,
        entity_id=str(user_id),
        details=f"User '{snapshot['username']}' deleted by '{actor.username}'.",
        previous_value=snapshot,
    )
