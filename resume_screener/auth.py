"""Acting-user context and ownership guards.

Authentication happens outside the core; services only receive an ``Actor``
and call these guards at the top of each operation.
"""
from __future__ import annotations

from dataclasses import dataclass

from resume_screener.errors import Forbidden
from resume_screener.models import Role, User


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role

    @classmethod
    def of(cls, user: User) -> "Actor":
        if user.id is None:
            raise ValueError("Cannot act as an unsaved user")
        return cls(user_id=user.id, role=user.role)


def require_role(actor: Actor, role: Role, action: str = "perform this action") -> None:
    if actor.role != role:
        raise Forbidden(f"Only a {role.value.lower()} can {action}")


def require_owner(owner_id: int, actor: Actor, message: str = "You do not own this resource") -> None:
    if owner_id != actor.user_id:
        raise Forbidden(message)
