"""
Tests for the cached user directory.
"""

from unittest.mock import Mock, patch

from recipe_archive.connectors.users_connector import UsersConnector
from recipe_archive.errors import NetworkError
from recipe_archive.models import Role, User, UserStatus
from recipe_archive.users import FAILED_LOOKUP_TTL_SECONDS, UserDirectory
from recipe_archive.utils import cache


def _connector():
    connector = Mock(spec=UsersConnector)
    connector.list_users.return_value = [
        User(id="u1", name="Maria", role=Role.WORKER),
        User(id="u2", name="Hans", role=Role.WORKER, status=UserStatus.INACTIVE),
    ]
    return connector


class TestUserDirectory:
    """Tests for UserDirectory."""

    def setup_method(self):
        cache.clear_cache()

    def test_display_name_is_cached(self):
        """Test names resolve through one backend call."""
        connector = _connector()
        directory = UserDirectory(connector)

        assert directory.display_name("u1") == "Maria"
        assert directory.display_name("u2") == "Hans"
        assert connector.list_users.call_count == 1

    def test_unknown_and_missing_ids(self):
        """Test unknown ids are shown as is and missing ids as 'Unbekannt'."""
        directory = UserDirectory(_connector())
        assert directory.display_name("u9") == "u9"
        assert directory.display_name(None) == "Unbekannt"

    def test_failure_falls_back_to_id(self):
        """Test a backend failure is not raised."""
        connector = Mock(spec=UsersConnector)
        connector.list_users.side_effect = NetworkError("down")
        directory = UserDirectory(connector)
        assert directory.display_name("u1") == "u1"
        assert directory.list_active() == []

    def test_failure_is_not_retried_per_card(self):
        """Test one failed lookup serves every later name until it expires."""
        connector = Mock(spec=UsersConnector)
        connector.list_users.side_effect = NetworkError("timed out")
        directory = UserDirectory(connector)

        directory.list_active()
        for user_id in ("u1", "u2", "u3"):
            assert directory.display_name(user_id) == user_id

        assert connector.list_users.call_count == 1

    def test_failure_expires(self):
        """Test the directory is fetched again once the failure window has passed."""
        connector = _connector()
        connector.list_users.side_effect = [NetworkError("down"), connector.list_users.return_value]
        directory = UserDirectory(connector)

        with patch("recipe_archive.utils.cache.time.time", return_value=1000.0):
            assert directory.display_name("u1") == "u1"
        with patch("recipe_archive.utils.cache.time.time", return_value=1000.0 + FAILED_LOOKUP_TTL_SECONDS + 1):
            assert directory.display_name("u1") == "Maria"
        assert connector.list_users.call_count == 2

    def test_list_active(self):
        """Test inactive users are hidden from the owner filter."""
        directory = UserDirectory(_connector())
        assert [u.id for u in directory.list_active()] == ["u1"]

    def test_invalidate(self):
        """Test invalidation forces a fresh lookup."""
        connector = _connector()
        directory = UserDirectory(connector)
        directory.display_name("u1")
        directory.invalidate()
        directory.display_name("u1")
        assert connector.list_users.call_count == 2
