"""
Tests for the explicit Session and its permission checks.
"""

from unittest.mock import Mock

import pytest

from recipe_archive.connectors.users_connector import AuthConnector
from recipe_archive.errors import BusinessRuleError
from recipe_archive.models import Comment, Recipe, Role, User
from recipe_archive.session import SESSION_STORAGE_KEY, Session, login, logout, restore_session
from recipe_archive.utils.storage import LocalStore


def _session(role, user_id="u1", name="Maria", permissions=None):
    return Session(user=User(id=user_id, name=name, role=role, permissions=permissions or []), token="tok")


class TestPermissions:
    """Tests for role-based checks."""

    def test_anonymous_is_guest(self):
        """Test a session without user behaves as guest."""
        session = Session()
        assert session.role == Role.GUEST
        assert session.user_id is None
        assert session.can_comment() is False
        assert session.can_edit_recipe(Recipe(id=1)) is False

    def test_admin_edits_everything(self):
        """Test admins may edit and delete any recipe."""
        session = _session(Role.ADMIN)
        assert session.can_edit_recipe(Recipe(id=1, user_id="other"))
        assert session.can_delete_recipe(Recipe(id=1))

    def test_worker_edits_own_only(self):
        """Test workers may only edit their own recipes."""
        session = _session(Role.WORKER)
        assert session.can_edit_recipe(Recipe(id=1, user_id="u1"))
        assert not session.can_edit_recipe(Recipe(id=2, user_id="u2"))
        assert not session.can_delete_recipe(Recipe(id=3))

    def test_guest_user_is_read_only(self):
        """Test logged-in guests cannot edit or comment."""
        session = _session(Role.GUEST)
        assert not session.can_edit_recipe(Recipe(id=1, user_id="u1"))
        assert not session.can_comment()

    def test_comment_ownership(self):
        """Test comment modification is limited to author and admins."""
        own = Comment(id="1", author="Maria")
        foreign = Comment(id="2", author="Anna")
        assert _session(Role.WORKER).can_modify_comment(own)
        assert not _session(Role.WORKER).can_modify_comment(foreign)
        assert _session(Role.ADMIN).can_modify_comment(foreign)
        assert not Session().can_modify_comment(own)

    def test_can_perform(self):
        """Test sub-admin permissions restrict admin actions."""
        assert _session(Role.ADMIN).can_perform("manage_users")
        assert _session(Role.ADMIN, permissions=["all"]).can_perform("manage_users")
        sub_admin = _session(Role.ADMIN, permissions=["approve_recipes"])
        assert sub_admin.can_perform("approve_recipes")
        assert not sub_admin.can_perform("manage_users")
        assert not _session(Role.WORKER).can_perform("approve_recipes")


class TestPersistence:
    """Tests for storing and restoring sessions."""

    def test_round_trip(self):
        """Test to_dict/from_dict preserve user and token."""
        session = _session(Role.WORKER, permissions=["x"])
        restored = Session.from_dict(session.to_dict())
        assert restored.user == session.user
        assert restored.token == "tok"

    @pytest.mark.parametrize("data", [None, {}, {"user": "x"}, {"user": {"name": "no id"}}, "garbage"])
    def test_invalid_blob_is_anonymous(self, data):
        """Test unusable persisted data yields an anonymous session."""
        assert Session.from_dict(data).user is None

    def test_login_persists_session(self, tmp_path):
        """Test login stores the session under current-user and it can be restored."""
        store = LocalStore(tmp_path)
        connector = Mock(spec=AuthConnector)
        connector.login.return_value = (User(id="u1", name="Maria", role=Role.WORKER), "tok")

        session = login("maria", "pw", connector=connector, store=store)

        connector.login.assert_called_once_with("maria", "pw")
        assert session.user_id == "u1"
        assert store.get(SESSION_STORAGE_KEY)["token"] == "tok"
        assert restore_session(store).user.name == "Maria"

    def test_failed_login_persists_nothing(self, tmp_path):
        """Test rejected credentials leave the store empty."""
        store = LocalStore(tmp_path)
        connector = Mock(spec=AuthConnector)
        connector.login.side_effect = BusinessRuleError("Ungültige Anmeldedaten")

        with pytest.raises(BusinessRuleError):
            login("maria", "wrong", connector=connector, store=store)
        assert store.get(SESSION_STORAGE_KEY) is None

    def test_logout(self, tmp_path):
        """Test logout removes the persisted session."""
        store = LocalStore(tmp_path)
        store.set(SESSION_STORAGE_KEY, _session(Role.ADMIN).to_dict())

        session = logout(store)

        assert session.user is None
        assert restore_session(store).user is None
