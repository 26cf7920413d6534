"""
Tests for backend connectors using a mocked requests.Session.

These tests mock the HTTP session to avoid making real API calls during testing.
The tests verify that:
- Requests go to the right endpoint with the right method, query and body
- Envelope handling maps transport, status, JSON and business failures to client errors
- Rows are normalized into models, and malformed rows are reported as network errors
- Recipe paging walks every page
"""

from unittest.mock import ANY, Mock

import pytest
import requests

from recipe_archive.connectors import (
    AuthConnector,
    CategoriesConnector,
    CommentsConnector,
    FavoritesConnector,
    RecipesConnector,
    UsersConnector,
)
from recipe_archive.errors import BusinessRuleError, NetworkError, ValidationError
from recipe_archive.models import Role

BASE_URL = "http://backend.test/apis"


def _response(body, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = body
    response.text = str(body)
    return response


def _http(*bodies):
    http = Mock(spec=requests.Session)
    http.request.side_effect = [b if isinstance(b, Mock) else _response(b) for b in bodies]
    return http


class TestEnvelopeHandling:
    """Tests for BaseConnector request and error mapping."""

    def test_successful_get(self):
        """Test a GET hits the endpoint URL and returns parsed rows."""
        http = _http({"success": True, "data": [{"id": 1, "name": "Desserts", "parent_id": None}]})
        connector = CategoriesConnector(base_url=BASE_URL + "/", session=http, timeout=5)

        categories = connector.list_categories()

        assert [c.id for c in categories] == ["1"]
        http.request.assert_called_once_with(
            "GET",
            BASE_URL + "/categories-simple.php",
            params=None,
            json=None,
            headers=ANY,
            timeout=5,
        )

    def test_token_is_sent_as_bearer(self):
        """Test the session token is forwarded in the Authorization header."""
        http = _http({"success": True, "data": []})
        CategoriesConnector(base_url=BASE_URL, session=http, token="tok").list_categories()

        headers = http.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"
        assert headers["Content-Type"] == "application/json"

    def test_timeout_maps_to_network_error(self):
        """Test a request timeout becomes NetworkError."""
        http = Mock(spec=requests.Session)
        http.request.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(NetworkError, match="timed out"):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()

    def test_connection_error_maps_to_network_error(self):
        """Test a connection failure becomes NetworkError."""
        http = Mock(spec=requests.Session)
        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(NetworkError):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()

    def test_non_2xx_maps_to_network_error(self):
        """Test HTTP errors are network errors carrying the status code."""
        http = _http(_response({"success": False, "error": "boom"}, status_code=500))
        with pytest.raises(NetworkError) as exc_info:
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()
        assert exc_info.value.status_code == 500

    def test_malformed_json_maps_to_network_error(self):
        """Test an undecodable body is a network error."""
        response = _response(None)
        response.json.side_effect = ValueError("not json")
        http = _http(response)
        with pytest.raises(NetworkError, match="malformed JSON"):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()

    def test_non_object_body_maps_to_network_error(self):
        """Test a JSON array instead of an envelope is a network error."""
        http = _http([1, 2, 3])
        with pytest.raises(NetworkError):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()

    def test_success_false_maps_to_business_rule_error(self):
        """Test the backend error message is surfaced verbatim."""
        http = _http({"success": False, "error": "Kategorie existiert bereits"})
        with pytest.raises(BusinessRuleError, match="^Kategorie existiert bereits$"):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()

    def test_error_only_body_is_business_rule_error(self):
        """Test an envelope without success flag is treated as a rejection."""
        http = _http({"error": "No hay campos para actualizar"})
        with pytest.raises(BusinessRuleError, match="No hay campos"):
            RecipesConnector(base_url=BASE_URL, session=http).update_recipe(1, {})


class TestCategoriesConnector:
    """Tests for category mutations."""

    def test_create_category_payload(self):
        """Test the create payload and returned id."""
        http = _http({"success": True, "data": {"id": 17}})
        connector = CategoriesConnector(base_url=BASE_URL, session=http)

        new_id = connector.create_category("Suppen", "#FFD700", None, "admin-001", 3)

        assert new_id == "17"
        assert http.request.call_args.kwargs["json"] == {
            "name": "Suppen",
            "color": "#FFD700",
            "parent_id": None,
            "user_id": "admin-001",
            "display_order": 3,
        }

    def test_rename_and_delete_use_id_query(self):
        """Test rename and delete address the category via ?id=."""
        http = _http({"success": True}, {"success": True})
        connector = CategoriesConnector(base_url=BASE_URL, session=http)

        connector.rename_category("5", "Neu")
        connector.delete_category("5")

        rename_call, delete_call = http.request.call_args_list
        assert rename_call.args[0] == "PUT"
        assert rename_call.kwargs["params"] == {"id": "5"}
        assert rename_call.kwargs["json"] == {"name": "Neu"}
        assert delete_call.args[0] == "DELETE"
        assert delete_call.kwargs["params"] == {"id": "5"}

    def test_malformed_row(self):
        """Test a category row without id is reported as a network error."""
        http = _http({"success": True, "data": [{"name": "no id"}]})
        with pytest.raises(NetworkError, match="Malformed category"):
            CategoriesConnector(base_url=BASE_URL, session=http).list_categories()


class TestRecipesConnector:
    """Tests for recipe listing, paging and mutations."""

    def test_list_recipes_drops_none_params(self):
        """Test only given query parameters are sent."""
        http = _http({"success": True, "data": [{"id": 1}], "pagination": {"page": 2, "hasMore": False}})
        recipes, pagination = RecipesConnector(base_url=BASE_URL, session=http).list_recipes(page=2)

        assert [r.id for r in recipes] == [1]
        assert pagination.page == 2
        assert http.request.call_args.kwargs["params"] == {"page": 2}

    def test_list_all_recipes_walks_pages(self):
        """Test pages are fetched until hasMore is false and repeated ids are skipped."""
        http = _http(
            {"success": True, "data": [{"id": 1}, {"id": 2}], "pagination": {"page": 1, "hasMore": True}},
            {"success": True, "data": [{"id": 2}, {"id": 3}], "pagination": {"page": 2, "hasMore": False}},
        )
        recipes = RecipesConnector(base_url=BASE_URL, session=http).list_all_recipes(user_id="u1")

        assert [r.id for r in recipes] == [1, 2, 3]
        first, second = http.request.call_args_list
        assert first.kwargs["params"] == {"page": 1, "limit": 50, "user_id": "u1"}
        assert second.kwargs["params"]["page"] == 2

    def test_malformed_recipe_row(self):
        """Test a recipe row without numeric id is reported as a network error."""
        http = _http({"success": True, "data": [{"id": "abc"}]})
        with pytest.raises(NetworkError, match="Malformed recipe"):
            RecipesConnector(base_url=BASE_URL, session=http).list_recipes()

    def test_create_recipe_requires_id(self):
        """Test a create response without id is rejected."""
        http = _http({"success": True, "data": {"status": "pending"}})
        with pytest.raises(NetworkError, match="did not return an id"):
            RecipesConnector(base_url=BASE_URL, session=http).create_recipe({"title": "T"})

    def test_create_recipe_returns_numeric_id(self):
        """Test the backend id is normalized to int."""
        http = _http({"success": True, "data": {"id": "42", "recipeId": "recipe_1", "status": "approved"}})
        data = RecipesConnector(base_url=BASE_URL, session=http).create_recipe({"title": "T"})
        assert data["id"] == 42
        assert http.request.call_args.args[0] == "POST"

    def test_get_recipe(self):
        """Test a single recipe is fetched by id."""
        http = _http({"success": True, "data": {"id": 7, "title": "Suppe"}}, {"success": True, "data": None})
        connector = RecipesConnector(base_url=BASE_URL, session=http)
        assert connector.get_recipe(7).title == "Suppe"
        assert connector.get_recipe(8) is None

    def test_update_and_delete(self):
        """Test PUT and DELETE address the recipe via ?id=."""
        http = _http({"success": True, "data": {"id": 7}}, {"success": True})
        connector = RecipesConnector(base_url=BASE_URL, session=http)

        assert connector.update_recipe(7, {"category_id": None}) == {"id": 7}
        connector.delete_recipe(7)

        update_call, delete_call = http.request.call_args_list
        assert update_call.kwargs["json"] == {"category_id": None}
        assert delete_call.args[0] == "DELETE"
        assert delete_call.kwargs["params"] == {"id": 7}


class TestFavoritesConnector:
    """Tests for the favorites endpoint."""

    def test_list_favorites(self):
        """Test favorite recipe rows become ids and the backend total is kept."""
        http = _http({"success": True, "data": [{"id": "5", "title": "x"}, {"id": 9}], "total": 2, "totalPages": 1})
        ids, total = FavoritesConnector(base_url=BASE_URL, session=http).list_favorites("u1")
        assert ids == [5, 9]
        assert total == 2
        assert http.request.call_args.kwargs["params"] == {"user_id": "u1", "page": 1, "limit": 50}

    def test_list_favorites_walks_pages(self):
        """Test every favorites page is fetched, as the backend pages its list."""
        favorites = list(range(1, 121))
        http = Mock(spec=requests.Session)

        def paged(method, url, **kwargs):
            limit = max(1, min(kwargs["params"]["limit"], 50))
            page = kwargs["params"]["page"]
            rows = favorites[(page - 1) * limit:page * limit]
            return _response({
                "success": True,
                "data": [{"id": i} for i in rows],
                "total": len(favorites),
                "page": page,
                "limit": limit,
                "totalPages": -(-len(favorites) // limit),
            })

        http.request.side_effect = paged
        ids, total = FavoritesConnector(base_url=BASE_URL, session=http).list_favorites("u1")

        assert ids == favorites
        assert total == 120
        assert http.request.call_count == 3

    def test_list_favorites_without_paging_block(self):
        """Test a reply without totalPages is treated as the only page."""
        http = _http({"success": True, "data": [{"id": 3}]})
        ids, total = FavoritesConnector(base_url=BASE_URL, session=http).list_favorites("u1")
        assert (ids, total) == ([3], 1)
        assert http.request.call_count == 1

    def test_list_favorites_malformed_row(self):
        """Test a favorite row without a numeric id is a network error."""
        http = _http({"success": True, "data": [{"id": "abc"}], "total": 1, "totalPages": 1})
        with pytest.raises(NetworkError):
            FavoritesConnector(base_url=BASE_URL, session=http).list_favorites("u1")

    def test_toggle_favorite(self):
        """Test the toggle reports the backend's resulting state."""
        http = _http({"success": True, "is_favorite": False})
        assert FavoritesConnector(base_url=BASE_URL, session=http).toggle_favorite("u1", 5) is False
        assert http.request.call_args.kwargs["json"] == {"user_id": "u1", "recipe_id": 5}

    def test_toggle_without_state(self):
        """Test a toggle reply without is_favorite is a network error."""
        http = _http({"success": True})
        with pytest.raises(NetworkError):
            FavoritesConnector(base_url=BASE_URL, session=http).toggle_favorite("u1", 5)


class TestCommentsConnector:
    """Tests for the comments endpoint."""

    def test_list_and_like(self):
        """Test listing comments and toggling a like."""
        http = _http(
            {"success": True, "data": [{"id": 1, "author": "Anna", "content": "Gut", "likedBy": []}]},
            {"success": True, "data": {"likes": 3, "userLiked": True}},
        )
        connector = CommentsConnector(base_url=BASE_URL, session=http)

        comments = connector.list_comments(7)
        likes, liked = connector.toggle_like("1", "u1")

        assert comments[0].author == "Anna"
        assert (likes, liked) == (3, True)
        like_call = http.request.call_args_list[1]
        assert like_call.kwargs["params"] == {"id": "1"}
        assert like_call.kwargs["json"] == {"action": "toggle_like", "user_id": "u1"}

    def test_delete_sends_identity(self):
        """Test delete passes user id and role for the backend's ownership check."""
        http = _http({"success": True})
        CommentsConnector(base_url=BASE_URL, session=http).delete_comment("1", "u1", "worker")
        assert http.request.call_args.kwargs["params"] == {"id": "1", "user_id": "u1", "user_role": "worker"}


class TestUsersAndAuth:
    """Tests for user management and login."""

    def test_login(self):
        """Test login returns the user and token."""
        http = _http({
            "success": True,
            "token": "abc",
            "user": {"id": 3, "name": "Maria", "email": "m@x", "role": "worker", "active": 1},
        })
        user, token = AuthConnector(base_url=BASE_URL, session=http).login("maria", "pw")

        assert user.name == "Maria"
        assert user.role == Role.WORKER
        assert token == "abc"
        assert http.request.call_args.kwargs["params"] == {"action": "login"}
        assert http.request.call_args.args[1] == BASE_URL + "/auth-simple.php"

    def test_login_rejected(self):
        """Test wrong credentials surface the backend message."""
        http = _http({"success": False, "error": "Ungültige Anmeldedaten"})
        with pytest.raises(BusinessRuleError, match="Ungültige"):
            AuthConnector(base_url=BASE_URL, session=http).login("maria", "wrong")

    def test_login_requires_credentials(self):
        """Test empty credentials fail before any request."""
        http = _http()
        with pytest.raises(ValidationError):
            AuthConnector(base_url=BASE_URL, session=http).login(" ", "pw")
        http.request.assert_not_called()

    def test_list_and_create_users(self):
        """Test listing users and the create payload."""
        http = _http(
            {"success": True, "data": [{"id": 1, "name": "A", "role": "admin"}]},
            {"success": True, "data": {"id": 2, "name": "B", "role": "worker"}},
        )
        connector = UsersConnector(base_url=BASE_URL, session=http)

        users = connector.list_users()
        created = connector.create_user(" B ", "b@x", "worker", permissions=["approve_recipes"])

        assert users[0].role == Role.ADMIN
        assert created.id == "2"
        assert http.request.call_args.kwargs["json"] == {
            "name": "B",
            "email": "b@x",
            "role": "worker",
            "permissions": ["approve_recipes"],
        }

    def test_create_user_validation(self):
        """Test name and email are required."""
        with pytest.raises(ValidationError):
            UsersConnector(base_url=BASE_URL, session=_http()).create_user("", "x@y", "worker")
