"""
Tests for the in-memory recipe collection.
"""

from unittest.mock import Mock

import pytest

from recipe_archive.connectors.recipes_connector import RecipesConnector
from recipe_archive.errors import NotFoundError
from recipe_archive.models import Pagination, Recipe, RecipeStatus
from recipe_archive.store import RecipeCollection


def _ids(collection):
    return [r.id for r in collection]


class TestRecipeCollection:
    """Tests for RecipeCollection mutations."""

    def test_replace_all_drops_duplicate_ids(self):
        """Test later rows repeating an id are dropped."""
        collection = RecipeCollection()
        collection.replace_all([Recipe(id=1, title="a"), Recipe(id=2), Recipe(id=1, title="dup")])
        assert _ids(collection) == [1, 2]
        assert collection.get(1).title == "a"
        assert collection.has_more is False

    def test_insert_front(self):
        """Test new recipes go first and replace a stale copy."""
        collection = RecipeCollection()
        collection.replace_all([Recipe(id=1), Recipe(id=2)])
        collection.insert_front(Recipe(id=2, title="new"))
        assert _ids(collection) == [2, 1]
        assert collection.get(2).title == "new"

    def test_patch(self):
        """Test patching validates and updates only named fields."""
        collection = RecipeCollection()
        collection.replace_all([Recipe(id=1, title="a", category_id="x")])
        collection.patch(1, status="pending")
        recipe = collection.get(1)
        assert recipe.status == RecipeStatus.PENDING
        assert recipe.category_id == "x"

    def test_patch_unknown(self):
        """Test patching a missing recipe raises NotFoundError."""
        with pytest.raises(NotFoundError):
            RecipeCollection().patch(1, title="x")

    def test_remove_and_lookup(self):
        """Test removal and lookups by numeric and legacy id."""
        collection = RecipeCollection()
        collection.replace_all([Recipe(id=1, recipe_id="recipe_1"), Recipe(id=2)])
        assert collection.find_by_recipe_id("recipe_1").id == 1
        assert collection.find_by_recipe_id("recipe_x") is None
        assert collection.remove(1).id == 1
        assert collection.remove(1) is None
        assert 1 not in collection
        assert len(collection) == 1


class TestPaging:
    """Tests for load_next_page()."""

    def test_pages_until_exhausted(self):
        """Test pages are appended until the backend reports no more."""
        connector = Mock(spec=RecipesConnector)
        connector.list_recipes.side_effect = [
            ([Recipe(id=1), Recipe(id=2)], Pagination(page=1, limit=2, has_more=True)),
            ([Recipe(id=2), Recipe(id=3)], Pagination(page=2, limit=2, has_more=False)),
        ]
        collection = RecipeCollection(connector, page_size=2)

        assert _ids(collection.load_next_page()) == [1, 2]
        assert _ids(collection.load_next_page(user_id="u1")) == [3]
        assert collection.load_next_page() == []

        assert _ids(collection) == [1, 2, 3]
        assert collection.page == 2
        connector.list_recipes.assert_called_with(page=2, limit=2, user_id="u1")
        assert connector.list_recipes.call_count == 2

    def test_requires_connector(self):
        """Test paging without a connector is a programming error."""
        with pytest.raises(ValueError):
            RecipeCollection().load_next_page()
