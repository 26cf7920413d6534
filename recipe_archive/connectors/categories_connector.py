"""
Categories connector.

Wraps /categories-simple.php:
- GET                 list all active categories
- POST                create {name, color, parent_id, user_id, display_order}
- PUT    ?id=<id>     rename {name}
- DELETE ?id=<id>     delete (the backend cascades to subcategories)
"""

import logging
from typing import Any, Dict, List, Optional

from recipe_archive.config import CATEGORIES_ENDPOINT
from recipe_archive.errors import NetworkError
from recipe_archive.models import Category

from .base import BaseConnector

logger = logging.getLogger(__name__)


class CategoriesConnector(BaseConnector):
    """Connector for recipe categories (folders)."""
    endpoint = CATEGORIES_ENDPOINT

    def list_categories(self) -> List[Category]:
        """
        Fetch all categories in backend order.

        Returns:
            List of Category models

        Raises:
            NetworkError: If the request fails or a row cannot be parsed
            BusinessRuleError: If the backend rejects the request
        """
        body = self._request("GET")
        rows = body.get("data") or []
        categories: List[Category] = []
        for row in rows:
            try:
                categories.append(Category.from_api(row))
            except (KeyError, TypeError, ValueError) as e:
                raise NetworkError(f"Malformed category row from backend: {row!r}") from e
        logger.info("Loaded %d categories", len(categories))
        return categories

    def create_category(
        self,
        name: str,
        color: str,
        parent_id: Optional[str],
        user_id: str,
        display_order: int,
    ) -> Optional[str]:
        """
        Create a category.

        Returns:
            The new category id if the backend reports one, otherwise None
        """
        payload: Dict[str, Any] = {
            "name": name,
            "color": color,
            "parent_id": parent_id,
            "user_id": user_id,
            "display_order": display_order,
        }
        body = self._request("POST", payload=payload)
        data = body.get("data") or {}
        new_id = data.get("id") if isinstance(data, dict) else None
        return str(new_id) if new_id is not None else None

    def rename_category(self, category_id: str, name: str) -> None:
        self._request("PUT", params={"id": category_id}, payload={"name": name})

    def delete_category(self, category_id: str) -> None:
        self._request("DELETE", params={"id": category_id})
