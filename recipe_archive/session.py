"""
Session and permission checks.

A Session is built once at the application boundary (after login, or restored from the
local store) and passed explicitly to every operation that needs the current user.
Nothing in the library reads the logged-in user from ambient storage.

Permission rules:
- admin: may edit, delete and moderate anything
- worker: may edit and delete own recipes, comment, like
- guest: read-only; may not comment
- sub-admin: an admin whose permissions list restricts which admin actions are allowed
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .connectors.users_connector import AuthConnector
from .models import Comment, Recipe, Role, User
from .utils.storage import LocalStore

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "current-user"


@dataclass
class Session:
    """
    The current user and the opaque token issued at login.

    Attributes:
        user: Logged-in user, or None for an anonymous (guest) session
        token: Session token forwarded to the backend, never inspected
    """
    user: Optional[User] = None
    token: Optional[str] = None

    @property
    def role(self) -> Role:
        return self.user.role if self.user else Role.GUEST

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_guest(self) -> bool:
        return self.role == Role.GUEST

    def owns(self, recipe: Recipe) -> bool:
        return self.user is not None and recipe.user_id is not None and recipe.user_id == self.user.id

    def can_edit_recipe(self, recipe: Recipe) -> bool:
        if self.is_admin:
            return True
        return self.role == Role.WORKER and self.owns(recipe)

    def can_delete_recipe(self, recipe: Recipe) -> bool:
        return self.can_edit_recipe(recipe)

    def can_comment(self) -> bool:
        return self.user is not None and not self.is_guest

    def can_modify_comment(self, comment: Comment) -> bool:
        """Admins may modify any comment; others only their own (matched by display name)."""
        if self.is_admin:
            return True
        return self.can_comment() and comment.author == self.user.name

    def can_perform(self, action: str) -> bool:
        """
        Check an admin action such as "approve_recipes" or "manage_users".

        Full admins may do everything. Sub-admins need the action (or "all") in their
        permissions list.
        """
        if not self.is_admin:
            return False
        if not self.user.permissions:
            return True
        return "all" in self.user.permissions or action in self.user.permissions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user.model_dump(mode="json") if self.user else None,
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Session":
        """
        Restore a session from its persisted form.

        Missing or invalid data yields an anonymous session.
        """
        if not data or not isinstance(data, dict):
            return cls()
        raw_user = data.get("user")
        if not isinstance(raw_user, dict):
            return cls()
        try:
            user = User.model_validate(raw_user)
        except ValueError as e:
            logger.warning("Discarding invalid persisted session: %s", e)
            return cls()
        return cls(user=user, token=data.get("token"))


def login(
    username: str,
    password: str,
    connector: Optional[AuthConnector] = None,
    store: Optional[LocalStore] = None,
) -> Session:
    """
    Log in and build a Session.

    Args:
        username: Login name
        password: Password
        connector: AuthConnector to use (a default one is created if omitted)
        store: If given, the session is persisted under "current-user"

    Returns:
        Session for the logged-in user

    Raises:
        ValidationError: If username or password is empty
        BusinessRuleError: If the backend rejects the credentials
        NetworkError: If the backend cannot be reached
    """
    connector = connector or AuthConnector()
    user, token = connector.login(username, password)
    session = Session(user=user, token=token)
    if store is not None:
        store.set(SESSION_STORAGE_KEY, session.to_dict())
    return session


def restore_session(store: LocalStore) -> Session:
    return Session.from_dict(store.get(SESSION_STORAGE_KEY))


def logout(store: LocalStore) -> Session:
    """Forget the persisted session and return an anonymous one."""
    store.delete(SESSION_STORAGE_KEY)
    return Session()
