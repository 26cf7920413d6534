"""
Recipes connector.

Wraps /recipes-simple.php:
- GET    [?page=&limit=][&user_id=]   list recipes (paginated, optionally per owner)
- GET    ?id=<id>                     single recipe with additional images
- POST                                create (backend assigns the numeric id)
- PUT    ?id=<id>                     update any subset of fields
- DELETE ?id=<id>                     delete (backend cascades to images and comments)

The backend clamps limit to 1..50, so list_all_recipes() walks pages until the
pagination block reports hasMore=false.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from recipe_archive.config import MAX_PAGE_SIZE, RECIPES_ENDPOINT
from recipe_archive.errors import NetworkError
from recipe_archive.models import Pagination, Recipe

from .base import BaseConnector

logger = logging.getLogger(__name__)

# Upper bound on pages walked by list_all_recipes()
MAX_PAGES = 200


def _parse_recipes(rows: List[Dict[str, Any]]) -> List[Recipe]:
    recipes: List[Recipe] = []
    for row in rows:
        try:
            recipes.append(Recipe.from_api(row))
        except (KeyError, TypeError, ValueError) as e:
            raise NetworkError(f"Malformed recipe row from backend: id={row.get('id')!r}") from e
    return recipes


class RecipesConnector(BaseConnector):
    """Connector for recipe records."""
    endpoint = RECIPES_ENDPOINT

    def list_recipes(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[List[Recipe], Pagination]:
        """
        Fetch one page of recipes.

        Args:
            page: 1-indexed page number (backend default: 1)
            limit: Page size (backend default: 6, max 50)
            user_id: Only recipes owned by this user

        Returns:
            Tuple of (recipes, pagination). When the backend sends no pagination block,
            the page is treated as the last one.
        """
        body = self._request("GET", params={"page": page, "limit": limit, "user_id": user_id})
        recipes = _parse_recipes(body.get("data") or [])
        pagination = Pagination.from_api(body.get("pagination"))
        return recipes, pagination

    def list_all_recipes(self, user_id: Optional[str] = None) -> List[Recipe]:
        """
        Fetch every recipe by walking all pages.

        Recipes already seen (same id) on an earlier page are skipped, which protects
        against rows shifting between pages while new recipes are being created.
        """
        seen: set = set()
        result: List[Recipe] = []
        page = 1
        while page <= MAX_PAGES:
            recipes, pagination = self.list_recipes(page=page, limit=MAX_PAGE_SIZE, user_id=user_id)
            for recipe in recipes:
                if recipe.id not in seen:
                    seen.add(recipe.id)
                    result.append(recipe)
            if not pagination.has_more or not recipes:
                break
            page += 1
        else:
            logger.warning("Stopped paging recipes after %d pages", MAX_PAGES)
        logger.info("Loaded %d recipes in %d page(s)", len(result), page)
        return result

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        """Fetch a single recipe, or None if the backend returns no data."""
        body = self._request("GET", params={"id": recipe_id})
        data = body.get("data")
        if not data:
            return None
        if isinstance(data, list):
            parsed = _parse_recipes(data)
            return parsed[0] if parsed else None
        return _parse_recipes([data])[0]

    def create_recipe(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a recipe.

        Returns:
            The backend's data block, guaranteed to contain a numeric "id"

        Raises:
            NetworkError: If the response does not carry a backend-assigned id
        """
        body = self._request("POST", payload=payload)
        data = body.get("data")
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise NetworkError("Backend did not return an id for the created recipe")
        try:
            data["id"] = int(data["id"])
        except (TypeError, ValueError) as e:
            raise NetworkError(f"Backend returned a non-numeric recipe id: {data['id']!r}") from e
        return data

    def update_recipe(self, recipe_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update a subset of recipe fields.

        Returns:
            The backend's data block if any
        """
        body = self._request("PUT", params={"id": recipe_id}, payload=fields)
        data = body.get("data")
        return data if isinstance(data, dict) else None

    def delete_recipe(self, recipe_id: int) -> None:
        self._request("DELETE", params={"id": recipe_id})
