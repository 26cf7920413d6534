"""
Category tree.

Maintains the two-level category hierarchy (category -> subcategory) and answers
subtree-membership queries for the recipe filter.

# NOTE: The backend occasionally returns duplicate rows for the same logical category.
    Rows are deduplicated by id on construction. The main/sub listings additionally hide
    rows that repeat a name within the same parent (first occurrence wins), but subtree
    traversal walks every child row so a duplicate never hides recipes filed under it.

# NOTE: Parent references are not validated by the backend, so traversal keeps a visited
    set and skips any id it has already seen. A cycle is logged, never followed.
"""

import logging
from typing import Dict, Iterator, List, Optional, Set

from .models import Category

logger = logging.getLogger(__name__)


def _dedupe_by_name(categories: List[Category]) -> List[Category]:
    seen: Set[str] = set()
    result: List[Category] = []
    for category in categories:
        if category.name in seen:
            continue
        seen.add(category.name)
        result.append(category)
    return result


class CategoryTree:
    """
    Read-only view over a list of categories in backend fetch order.

    Mutations go through the coordinator, which reloads a fresh tree afterwards.
    """

    def __init__(self, categories: Optional[List[Category]] = None) -> None:
        self._by_id: Dict[str, Category] = {}
        self._children: Dict[str, List[Category]] = {}
        for category in categories or []:
            if category.id in self._by_id:
                logger.debug("Dropping duplicate category row id=%s", category.id)
                continue
            self._by_id[category.id] = category
            if category.parent_id is not None:
                self._children.setdefault(category.parent_id, []).append(category)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def __iter__(self) -> Iterator[Category]:
        return iter(self._by_id.values())

    @property
    def categories(self) -> List[Category]:
        return list(self._by_id.values())

    def get(self, category_id: Optional[str]) -> Optional[Category]:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def get_main_categories(self) -> List[Category]:
        """
        Get top-level categories in fetch order, one per distinct name.

        Returns:
            Categories without a parent
        """
        return _dedupe_by_name([c for c in self._by_id.values() if c.parent_id is None])

    def get_subcategories(self, parent_id: str) -> List[Category]:
        """
        Get the direct children of a category, one per distinct name.

        Args:
            parent_id: Parent category id

        Returns:
            Child categories in fetch order (empty for unknown ids)
        """
        return _dedupe_by_name(self._children.get(parent_id, []))

    def get_all_subfolder_ids(self, category_id: str) -> List[str]:
        """
        Collect a category's id plus the ids of all its descendants, depth first.

        Args:
            category_id: Root of the subtree

        Returns:
            List starting with category_id, or an empty list if the id is unknown
        """
        if category_id not in self._by_id:
            return []

        result: List[str] = []
        visited: Set[str] = set()
        stack = [category_id]
        while stack:
            current = stack.pop()
            if current in visited:
                logger.warning("Category cycle detected at id=%s below %s", current, category_id)
                continue
            visited.add(current)
            result.append(current)
            # Reverse so children are visited in fetch order
            for child in reversed(self._children.get(current, [])):
                stack.append(child.id)
        return result

    def depth_exceeded(self) -> List[Category]:
        """
        List categories nested deeper than category -> subcategory.

        Deeper nesting is tolerated by traversal but not supported by the UI.
        """
        return [
            c for c in self._by_id.values()
            if c.parent_id is not None and self.get(c.parent_id) is not None
            and self._by_id[c.parent_id].parent_id is not None
        ]

    def path(self, category_id: str) -> List[Category]:
        """
        Get the chain of categories from the top level down to category_id.

        Used for breadcrumbs. Stops at unknown parents and at cycles.
        """
        chain: List[Category] = []
        visited: Set[str] = set()
        current = self.get(category_id)
        while current is not None and current.id not in visited:
            visited.add(current.id)
            chain.append(current)
            current = self.get(current.parent_id)
        return list(reversed(chain))
