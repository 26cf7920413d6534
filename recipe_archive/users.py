"""
User directory.

Resolves user ids to display names for recipe cards and the owner filter. Lookups are
secondary enrichment: a failed request is logged and the raw id is shown instead. A
failure is remembered for a short while, so a render with many cards waits on an
unreachable backend at most once.
"""

import logging
from typing import Dict, List, Optional

from .connectors.users_connector import UsersConnector
from .errors import RecipeClientError
from .models import User, UserStatus
from .utils import cache

logger = logging.getLogger(__name__)

_DIRECTORY_KEY = "user-directory"
_FAILURE_KEY = "user-directory-failed"

# How long a failed directory load is reused before retrying
FAILED_LOOKUP_TTL_SECONDS = 30


class UserDirectory:
    """Cached id -> User mapping backed by /users.php."""

    def __init__(self, connector: Optional[UsersConnector] = None) -> None:
        self.connector = connector or UsersConnector()

    def _users_by_id(self) -> Dict[str, User]:
        cached = cache.get_cached(_DIRECTORY_KEY)
        if cached is not None:
            return cached
        if cache.get_cached(_FAILURE_KEY, FAILED_LOOKUP_TTL_SECONDS) is not None:
            return {}
        try:
            users = {u.id: u for u in self.connector.list_users()}
        except RecipeClientError as e:
            logger.warning("Could not load users, showing raw ids for %ds: %s", FAILED_LOOKUP_TTL_SECONDS, e)
            cache.set_cached(_FAILURE_KEY, True)
            return {}
        cache.set_cached(_DIRECTORY_KEY, users)
        return users

    def list_active(self) -> List[User]:
        """Active users, for the owner filter. Empty if the backend is unreachable."""
        return [u for u in self._users_by_id().values() if u.status == UserStatus.ACTIVE]

    def display_name(self, user_id: Optional[str]) -> str:
        """Name of a user, or the id itself when it cannot be resolved."""
        if not user_id:
            return "Unbekannt"
        user = self._users_by_id().get(user_id)
        return user.name if user else user_id

    def invalidate(self) -> None:
        cache.clear_cache()
