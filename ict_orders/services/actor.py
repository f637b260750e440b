"""Identity attached to every mutating call."""

from __future__ import annotations

from dataclasses import dataclass

from ict_orders.models.user import User, normalize_user_role


@dataclass(frozen=True)
class Actor:
    """The user responsible for a mutation, as recorded in the audit log."""

    user_id: str
    username: str


SYSTEM_ACTOR = Actor(user_id="system", username="System")


def actor_from_user(user: User) -> Actor:
    return Actor(user_id=str(user.id), username=user.username)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller of an API request: the account, its actor and canonical role."""

    user: User
    actor: Actor
    role: str

    @classmethod
    def from_user(cls, user: User) -> Principal:
        return cls(user=user, actor=actor_from_user(user), role=normalize_user_role(user.role))
