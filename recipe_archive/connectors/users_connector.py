"""
Users and authentication connectors.

Wraps /users.php:
- GET                 list users
- POST                create {name, email, role, password?, permissions?}
- PUT    ?id=<id>     update any subset of fields
- DELETE ?id=<id>     delete

and /auth-simple.php:
- POST ?action=login {username, password} -> {success, token, user}

The session token is an opaque string; it is stored and forwarded, never inspected.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from recipe_archive.config import AUTH_ENDPOINT, USERS_ENDPOINT
from recipe_archive.errors import NetworkError, ValidationError
from recipe_archive.models import User

from .base import BaseConnector

logger = logging.getLogger(__name__)


def _parse_user(row: Dict[str, Any]) -> User:
    try:
        return User.from_api(row)
    except (KeyError, TypeError, ValueError) as e:
        raise NetworkError(f"Malformed user row from backend: {row!r}") from e


class UsersConnector(BaseConnector):
    """Connector for user management."""
    endpoint = USERS_ENDPOINT

    def list_users(self) -> List[User]:
        body = self._request("GET")
        return [_parse_user(row) for row in body.get("data") or []]

    def create_user(
        self,
        name: str,
        email: str,
        role: str,
        password: Optional[str] = None,
        permissions: Optional[List[str]] = None,
    ) -> Optional[User]:
        """
        Create a user (or a sub-admin, when role is admin and permissions are given).

        Raises:
            ValidationError: If name or email is empty
        """
        if not name.strip() or not email.strip():
            raise ValidationError("Name and email are required")
        payload: Dict[str, Any] = {"name": name.strip(), "email": email.strip(), "role": role}
        if password:
            payload["password"] = password
        if permissions:
            payload["permissions"] = permissions
        body = self._request("POST", payload=payload)
        data = body.get("data")
        return _parse_user(data) if isinstance(data, dict) and "id" in data else None

    def update_user(self, user_id: str, updates: Dict[str, Any]) -> None:
        self._request("PUT", params={"id": user_id}, payload=updates)

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", params={"id": user_id})


class AuthConnector(BaseConnector):
    """Connector for login."""
    endpoint = AUTH_ENDPOINT

    def login(self, username: str, password: str) -> Tuple[User, Optional[str]]:
        """
        Log in with username and password.

        Returns:
            Tuple of (user, token). The token may be None for backends that do not issue one.

        Raises:
            ValidationError: If username or password is empty
            BusinessRuleError: If the credentials are rejected
        """
        if not username.strip() or not password:
            raise ValidationError("Username and password are required")
        body = self._request(
            "POST",
            params={"action": "login"},
            payload={"username": username.strip(), "password": password},
        )
        raw_user = body.get("user") or body.get("data", {}).get("user")
        if not isinstance(raw_user, dict):
            raise NetworkError("Login response did not include a user")
        user = _parse_user(raw_user)
        logger.info("Logged in as %s (%s)", user.name, user.role.value)
        return user, body.get("token")
