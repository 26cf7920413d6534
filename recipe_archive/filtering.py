"""
Recipe filter/projection engine.

Computes the visible recipe list from four independent axes, always applied in the same
order:

1. Non-empty search query: base set is every recipe whose title or body contains the
   query (case-insensitive). The selected category is ignored, so a search always covers
   the whole collection.
2. Otherwise, a selected category: base set is every recipe filed in that category's
   subtree.
3. Otherwise: all recipes.
4. Narrow by owner (selected_user_id).
5. Narrow by favorites_only.

The result keeps the input order. Sorting is the caller's job (see sort_newest_first()).
All functions here are pure: they never mutate their inputs.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import Recipe
from .tree import CategoryTree

UNCATEGORIZED_KEY = "uncategorized"


def _matches_search(recipe: Recipe, query: str) -> bool:
    return query in (recipe.title or "").lower() or query in (recipe.analysis or "").lower()


def filter_recipes(
    all_recipes: List[Recipe],
    tree: CategoryTree,
    selected_category_id: Optional[str] = None,
    search_query: str = "",
    selected_user_id: Optional[str] = None,
    favorites_only: bool = False,
) -> List[Recipe]:
    """
    Compute the visible recipe list.

    Args:
        all_recipes: The full recipe collection
        tree: Category tree used to expand the selected category into its subtree
        selected_category_id: Category to show (ignored while searching)
        search_query: Case-insensitive substring over title and body; whitespace-only
                      counts as empty
        selected_user_id: Only show recipes owned by this user
        favorites_only: Only show favorites

    Returns:
        New list of matching recipes in input order. An unknown category yields [].
    """
    query = (search_query or "").strip().lower()

    if query:
        base = [r for r in all_recipes if _matches_search(r, query)]
    elif selected_category_id:
        subtree = set(tree.get_all_subfolder_ids(selected_category_id))
        base = [r for r in all_recipes if r.category_id in subtree]
    else:
        base = list(all_recipes)

    if selected_user_id:
        base = [r for r in base if r.user_id == selected_user_id]

    if favorites_only:
        base = [r for r in base if r.is_favorite]

    return base


@dataclass(frozen=True)
class RecipeFilter:
    """The four filter axes bundled together, as held by the archive view."""
    selected_category_id: Optional[str] = None
    search_query: str = ""
    selected_user_id: Optional[str] = None
    favorites_only: bool = False

    @property
    def is_searching(self) -> bool:
        return bool(self.search_query.strip())

    def apply(self, recipes: List[Recipe], tree: CategoryTree) -> List[Recipe]:
        return filter_recipes(
            recipes,
            tree,
            selected_category_id=self.selected_category_id,
            search_query=self.search_query,
            selected_user_id=self.selected_user_id,
            favorites_only=self.favorites_only,
        )


def count_recipes_by_category(recipes: List[Recipe], tree: CategoryTree) -> Dict[str, int]:
    """
    Count recipes per category subtree, for sidebar badges.

    A main category's count includes recipes in its subcategories. Recipes without a
    category, or filed under an id the tree does not know, count as "uncategorized".

    Returns:
        Mapping of category id (and "uncategorized") to recipe count
    """
    direct: Dict[str, int] = {}
    uncategorized = 0
    for recipe in recipes:
        if recipe.category_id is None or recipe.category_id not in tree:
            uncategorized += 1
        else:
            direct[recipe.category_id] = direct.get(recipe.category_id, 0) + 1

    counts: Dict[str, int] = {}
    for category in tree:
        counts[category.id] = sum(direct.get(cid, 0) for cid in tree.get_all_subfolder_ids(category.id))
    counts[UNCATEGORIZED_KEY] = uncategorized
    return counts


def sort_newest_first(recipes: List[Recipe]) -> List[Recipe]:
    """Sort by date descending; recipes without a date go last, ties keep input order."""
    dated = [r for r in recipes if r.date]
    undated = [r for r in recipes if not r.date]
    return sorted(dated, key=lambda r: r.date, reverse=True) + undated


def paginate(recipes: List[Recipe], page: int, limit: int) -> Tuple[List[Recipe], bool]:
    """
    Slice a filtered list into a page.

    Args:
        recipes: Filtered recipes
        page: 1-indexed page number (values below 1 are treated as 1)
        limit: Page size (values below 1 are treated as 1)

    Returns:
        Tuple of (page items, whether more pages follow)
    """
    page = max(1, page)
    limit = max(1, limit)
    start = (page - 1) * limit
    end = start + limit
    return recipes[start:end], end < len(recipes)
