"""
Favorites connector.

Wraps /favorites.php:
- GET  ?user_id=<id>&page=&limit=   one page of the user's favorite recipes, with
                                    total and totalPages alongside data
- POST {user_id, recipe_id}         toggle; the reply carries the resulting is_favorite

The list is paginated (default limit 6, max 50), so list_favorites() walks every page.
"""

import logging
from typing import List, Tuple

from recipe_archive.config import FAVORITES_ENDPOINT, MAX_PAGE_SIZE
from recipe_archive.errors import NetworkError

from .base import BaseConnector

logger = logging.getLogger(__name__)

# Upper bound on pages walked by list_favorites()
MAX_PAGES = 200


def _to_int(value, field: str, row) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise NetworkError(f"Malformed favorites {field} from backend: {row!r}") from e


class FavoritesConnector(BaseConnector):
    """Connector for per-user favorites."""
    endpoint = FAVORITES_ENDPOINT

    def list_favorites(self, user_id: str) -> Tuple[List[int], int]:
        """
        Fetch the ids of all the user's favorite recipes.

        Returns:
            Tuple of (ids, total). total is the count the backend reports, falling back
            to the number of ids collected when the reply carries no total.

        Raises:
            NetworkError: If a favorite row has no numeric id
        """
        ids: List[int] = []
        seen: set = set()
        total = None
        page = 1
        while page <= MAX_PAGES:
            body = self._request(
                "GET", params={"user_id": user_id, "page": page, "limit": MAX_PAGE_SIZE}
            )
            rows = body.get("data") or []
            for row in rows:
                raw_id = row.get("id") if isinstance(row, dict) else row
                favorite_id = _to_int(raw_id, "row", row)
                if favorite_id not in seen:
                    seen.add(favorite_id)
                    ids.append(favorite_id)
            if body.get("total") is not None:
                total = _to_int(body["total"], "total", body["total"])
            total_pages = body.get("totalPages")
            if not rows or total_pages is None or page >= _to_int(total_pages, "totalPages", total_pages):
                break
            page += 1
        else:
            logger.warning("Stopped paging favorites after %d pages", MAX_PAGES)
        logger.debug("Loaded %d favorite(s) for user %s in %d page(s)", len(ids), user_id, page)
        return ids, len(ids) if total is None else total

    def toggle_favorite(self, user_id: str, recipe_id: int) -> bool:
        """
        Toggle a favorite.

        Returns:
            True if the recipe is a favorite after the toggle
        """
        body = self._request("POST", payload={"user_id": user_id, "recipe_id": recipe_id})
        if "is_favorite" not in body:
            raise NetworkError("Backend did not report the favorite state after toggling")
        return bool(body["is_favorite"])
