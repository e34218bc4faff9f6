"""User records; authentication itself lives outside the core."""
from __future__ import annotations

from resume_screener.errors import Conflict, DuplicateKeyError, NotFound, ValidationError
from resume_screener.log import get_logger
from resume_screener.models import Role, User, as_enum
from resume_screener.store import EntityStore

log = get_logger(__name__)


class UserService:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def register_user(
        self,
        email: str,
        full_name: str,
        role: Role,
        company_name: str | None = None,
    ) -> User:
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationError(f"Invalid email: {email!r}")
        try:
            user = self.store.save_user(User(
                id=None,
                email=email,
                full_name=full_name,
                role=as_enum(Role, role),
                company_name=company_name,
            ))
        except DuplicateKeyError as exc:
            raise Conflict(f"Email already registered: {email}") from exc
        log.info("User %d registered as %s", user.id, user.role.value)
        return user

    def get_user(self, user_id: int) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound(f"User not found with id: {user_id}")
        return user
