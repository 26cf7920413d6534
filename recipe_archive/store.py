"""
In-memory stores for categories and recipes.

- CategoryStore holds the current CategoryTree and mirrors the category list to the
  local store under "recipeFolders", so the sidebar survives a backend outage.
- RecipeCollection holds the loaded recipes in display order, keyed by backend id,
  together with the archive paging state.

Neither store talks to the backend on its own behalf except for (re)loading; every
mutation is decided by the coordinator and applied here only after it is confirmed
(or, for favorites, applied optimistically and reverted on failure).
"""

import logging
from typing import Any, Iterable, Iterator, List, Optional

from .connectors.categories_connector import CategoriesConnector
from .connectors.recipes_connector import RecipesConnector
from .errors import NetworkError, NotFoundError
from .models import Category, Recipe
from .tree import CategoryTree
from .utils.storage import LocalStore

logger = logging.getLogger(__name__)

CATEGORY_BACKUP_KEY = "recipeFolders"


class CategoryStore:
    """Current category tree plus its local backup."""

    def __init__(self, connector: CategoriesConnector, local_store: Optional[LocalStore] = None) -> None:
        self.connector = connector
        self.local_store = local_store
        self.tree = CategoryTree()
        self.from_backup = False

    def reload(self) -> CategoryTree:
        """
        Reload categories from the backend.

        On success the list is mirrored to the local store. If the backend cannot be
        reached, the last backup is used instead (and from_backup is set).

        Raises:
            NetworkError: If the backend fails and no backup exists
            BusinessRuleError: If the backend rejects the request
        """
        try:
            categories = self.connector.list_categories()
        except NetworkError as e:
            backup = self._read_backup()
            if backup is None:
                raise
            logger.warning("Category reload failed, using %d cached categories: %s", len(backup), e)
            self.tree = CategoryTree(backup)
            self.from_backup = True
            return self.tree

        self.tree = CategoryTree(categories)
        self.from_backup = False
        if self.local_store is not None:
            self.local_store.set(
                CATEGORY_BACKUP_KEY, [c.model_dump(mode="json") for c in categories]
            )
        return self.tree

    def discard(self, category_ids: Iterable[str]) -> None:
        """Drop categories from the current tree (e.g., ones a stale backup still lists)."""
        dropped = set(category_ids)
        remaining = [c for c in self.tree if c.id not in dropped]
        if len(remaining) != len(self.tree):
            self.tree = CategoryTree(remaining)

    def _read_backup(self) -> Optional[List[Category]]:
        if self.local_store is None:
            return None
        raw = self.local_store.get(CATEGORY_BACKUP_KEY)
        if not isinstance(raw, list):
            return None
        backup: List[Category] = []
        for row in raw:
            try:
                backup.append(Category.model_validate(row))
            except ValueError:
                logger.warning("Skipping unreadable cached category: %r", row)
        return backup


class RecipeCollection:
    """
    Loaded recipes in display order.

    Attributes:
        page: Last page fetched by load_next_page() (0 before the first page)
        has_more: Whether the backend reported further pages
    """

    def __init__(self, connector: Optional[RecipesConnector] = None, page_size: int = 6) -> None:
        self.connector = connector
        self.page_size = page_size
        self._recipes: List[Recipe] = []
        self.page = 0
        self.has_more = True

    def __len__(self) -> int:
        return len(self._recipes)

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self._recipes)

    def __contains__(self, recipe_id: object) -> bool:
        return any(r.id == recipe_id for r in self._recipes)

    @property
    def recipes(self) -> List[Recipe]:
        return list(self._recipes)

    def get(self, recipe_id: int) -> Optional[Recipe]:
        for recipe in self._recipes:
            if recipe.id == recipe_id:
                return recipe
        return None

    def find_by_recipe_id(self, recipe_id: str) -> Optional[Recipe]:
        """Find a recipe by its legacy string identifier."""
        for recipe in self._recipes:
            if recipe.recipe_id is not None and recipe.recipe_id == recipe_id:
                return recipe
        return None

    def replace_all(self, recipes: List[Recipe]) -> None:
        """Replace the collection, dropping later rows that repeat an id."""
        self._recipes = []
        self.extend_page(recipes)
        self.has_more = False

    def extend_page(self, recipes: List[Recipe]) -> int:
        """
        Append a page of recipes, skipping ids already present.

        Returns:
            Number of recipes actually added
        """
        known = {r.id for r in self._recipes}
        added = 0
        for recipe in recipes:
            if recipe.id in known:
                continue
            known.add(recipe.id)
            self._recipes.append(recipe)
            added += 1
        return added

    def insert_front(self, recipe: Recipe) -> None:
        """Insert a newly created recipe at the top, replacing a stale row with the same id."""
        self._recipes = [recipe] + [r for r in self._recipes if r.id != recipe.id]

    def patch(self, recipe_id: int, **fields: Any) -> Recipe:
        """
        Update named fields of a recipe in place.

        Raises:
            NotFoundError: If the recipe is not in the collection
        """
        recipe = self.get(recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} is not loaded")
        for name, value in fields.items():
            setattr(recipe, name, value)
        return recipe

    def remove(self, recipe_id: int) -> Optional[Recipe]:
        recipe = self.get(recipe_id)
        if recipe is not None:
            self._recipes = [r for r in self._recipes if r.id != recipe_id]
        return recipe

    def load_next_page(self, user_id: Optional[str] = None) -> List[Recipe]:
        """
        Fetch the next archive page and append it.

        Returns:
            The recipes that were added (empty once the last page was reached)
        """
        if self.connector is None:
            raise ValueError("RecipeCollection has no connector to load pages from")
        if not self.has_more:
            return []
        recipes, pagination = self.connector.list_recipes(
            page=self.page + 1, limit=self.page_size, user_id=user_id
        )
        self.page += 1
        self.has_more = pagination.has_more
        before = len(self._recipes)
        self.extend_page(recipes)
        logger.debug("Loaded page %d (%d new recipes)", self.page, len(self._recipes) - before)
        return self._recipes[before:]
