"""
Recipe mutation coordinator.

Every change to recipes, categories and favorites goes through RecipeCoordinator, which
decides when local state is touched relative to the backend call.

Mutation policy:
- Favorite toggles are applied optimistically and reverted if the backend call fails.
- Everything else is confirm-then-apply: the backend call must succeed before local
  state changes, and a failure leaves local state exactly as it was.

Per-entity in-flight tracking rejects a second mutation of the same recipe (or category)
while the first is still pending, instead of letting the last response win.

# NOTE: Some backend paths still address recipes by their legacy string recipe_id. Move
    and delete resolve the canonical numeric id first (loaded collection, then the remote
    full list) and abort with NotFoundError before touching anything if that fails.
"""

import logging
import random
import threading
from contextlib import contextmanager
from typing import Any, Dict, Hashable, Iterator, List, Optional, Set, Union

from .config import ApiConfig
from .connectors.categories_connector import CategoriesConnector
from .connectors.favorites_connector import FavoritesConnector
from .connectors.recipes_connector import RecipesConnector
from .errors import (
    InvalidTransitionError,
    MutationInFlightError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RecipeClientError,
    ValidationError,
)
from .models import Recipe, RecipeDraft, RecipeStatus
from .parsing import extract_title, format_manual_recipe
from .session import Session
from .store import CategoryStore, RecipeCollection
from .tree import CategoryTree
from .utils.storage import LocalStore

logger = logging.getLogger(__name__)

# Colors assigned to new folders when none is chosen
FOLDER_COLORS = [
    "#4F7B52", "#8B4513", "#D2691E", "#228B22", "#4682B4", "#9ACD32", "#32CD32",
    "#FFD700", "#FF6347", "#FF1493", "#8A2BE2", "#00CED1", "#FF4500", "#2E8B57",
]

# Fields update_recipe() may send; everything else is rejected before the request
UPDATABLE_FIELDS = {
    "title",
    "analysis",
    "image",
    "servings",
    "original_servings",
    "category_id",
    "additional_images",
}

# Allowed status transitions: current -> {target: who may perform it}
_TRANSITIONS = {
    RecipeStatus.PENDING: {RecipeStatus.APPROVED: "admin", RecipeStatus.REJECTED: "admin"},
    RecipeStatus.APPROVED: {RecipeStatus.PENDING: "owner"},
    RecipeStatus.REJECTED: {},
}

RecipeRef = Union[int, str]


class RecipeCoordinator:
    """
    Coordinates recipe, category and favorite mutations for one session.

    Attributes:
        session: The current user
        categories: Category store holding the current tree
        recipes: Loaded recipe collection
        favorites_count: Number of favorites as last reported by the favorites endpoint
    """

    def __init__(
        self,
        session: Session,
        category_store: CategoryStore,
        recipes_connector: RecipesConnector,
        favorites_connector: FavoritesConnector,
        collection: Optional[RecipeCollection] = None,
    ) -> None:
        self.session = session
        self.categories = category_store
        self.recipes_connector = recipes_connector
        self.favorites_connector = favorites_connector
        self.recipes = collection or RecipeCollection(recipes_connector, ApiConfig.get_page_size())
        self.favorites_count = 0
        self._in_flight: Set[Hashable] = set()
        self._lock = threading.Lock()

    @classmethod
    def from_session(
        cls,
        session: Session,
        local_store: Optional[LocalStore] = None,
        base_url: Optional[str] = None,
    ) -> "RecipeCoordinator":
        """
        Build a coordinator with default connectors sharing the session token.

        Args:
            session: The current user
            local_store: Local store for the category backup
            base_url: Backend base URL (defaults to configuration)
        """
        kwargs: Dict[str, Any] = {"base_url": base_url, "token": session.token}
        return cls(
            session=session,
            category_store=CategoryStore(CategoriesConnector(**kwargs), local_store),
            recipes_connector=RecipesConnector(**kwargs),
            favorites_connector=FavoritesConnector(**kwargs),
        )

    @property
    def tree(self) -> CategoryTree:
        return self.categories.tree

    @contextmanager
    def _in_flight_guard(self, key: Hashable) -> Iterator[None]:
        with self._lock:
            if key in self._in_flight:
                raise MutationInFlightError(f"A change to {key[0]} {key[1]} is already in progress")
            self._in_flight.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(key)

    def is_in_flight(self, kind: str, entity_id: Any) -> bool:
        with self._lock:
            return (kind, entity_id) in self._in_flight

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Load categories, every recipe and the user's favorites.

        Category and recipe failures propagate. Favorites are a secondary enrichment:
        a failure there is logged and the recipes keep their backend flags.
        """
        self.categories.reload()
        self.recipes.replace_all(self.recipes_connector.list_all_recipes())
        logger.info("Loaded %d categories and %d recipes", len(self.tree), len(self.recipes))
        if self.session.user_id:
            try:
                self.refresh_favorites()
            except RecipeClientError as e:
                logger.warning("Could not load favorites: %s", e)

    def refresh_favorites(self) -> int:
        """
        Reconcile favorites with the favorites endpoint.

        The endpoint is the only source for both the per-recipe flags and favorites_count.

        Returns:
            The favorites count reported by the backend
        """
        if not self.session.user_id:
            self.favorites_count = 0
            return 0
        ids, total = self.favorites_connector.list_favorites(self.session.user_id)
        favorite_ids = set(ids)
        for recipe in self.recipes:
            recipe.is_favorite = recipe.id in favorite_ids
        self.favorites_count = total
        return self.favorites_count

    # ------------------------------------------------------------------
    # Recipes
    # ------------------------------------------------------------------

    def _require_login(self, action: str) -> None:
        if self.session.user is None or self.session.is_guest:
            raise PermissionDeniedError(f"Guests may not {action}")

    def _build_payload(self, draft: RecipeDraft) -> Dict[str, Any]:
        if draft.is_manual:
            title = (draft.title or "").strip()
            ingredients = [i.strip() for i in draft.ingredients if i and i.strip()]
            preparation = (draft.preparation or "").strip()
            if not title:
                raise ValidationError("Recipe title is required")
            if not ingredients:
                raise ValidationError("At least one ingredient is required")
            if not preparation:
                raise ValidationError("Preparation steps are required")
            analysis = format_manual_recipe(
                title,
                ingredients,
                preparation,
                description=(draft.description or "").strip() or None,
                estimated_time=draft.estimated_time,
                servings=draft.servings,
                author=self.session.user.name,
            )
        else:
            analysis = draft.analysis.strip()
            if not analysis:
                raise ValidationError("Recipe text is required")
            title = (draft.title or "").strip()

        if draft.category_id is not None and draft.category_id not in self.tree:
            raise ValidationError(f"Unknown category '{draft.category_id}'")

        payload: Dict[str, Any] = {
            "title": title or None,
            "analysis": analysis,
            "image": draft.image,
            "category_id": draft.category_id,
            "user_id": self.session.user_id,
            "status": (RecipeStatus.APPROVED if self.session.is_admin else RecipeStatus.PENDING).value,
        }
        if draft.servings is not None:
            payload["servings"] = draft.servings
            payload["original_servings"] = draft.servings
        return payload

    def create_recipe(self, draft: RecipeDraft) -> Recipe:
        """
        Create a recipe and add it to the top of the collection.

        Admin recipes are approved immediately; everyone else's wait for approval.

        Raises:
            PermissionDeniedError: For guests
            ValidationError: If the draft is incomplete or names an unknown category
            NetworkError: If the backend fails or returns no id
            BusinessRuleError: If the backend rejects the recipe
        """
        self._require_login("create recipes")
        payload = self._build_payload(draft)

        data = self.recipes_connector.create_recipe(payload)

        status = payload["status"]
        if data.get("status"):
            try:
                status = RecipeStatus(data["status"])
            except ValueError:
                logger.warning(
                    "Backend reported unknown status %r for new recipe %d, keeping %s",
                    data["status"], data["id"], status,
                )
        created_at = data.get("created_at")
        recipe = Recipe(
            id=data["id"],
            recipe_id=str(data["recipeId"]) if data.get("recipeId") else None,
            title=payload["title"] or "",
            analysis=payload["analysis"],
            image=payload["image"],
            date=str(created_at) if created_at else None,
            category_id=payload["category_id"],
            user_id=self.session.user_id,
            status=status,
            servings=payload.get("servings"),
            original_servings=payload.get("original_servings"),
        )
        if not recipe.title:
            recipe.title = extract_title(recipe.analysis)
        self.recipes.insert_front(recipe)
        logger.info("Created recipe %d (%s)", recipe.id, recipe.status.value)
        return recipe

    def resolve_recipe_id(self, identifier: RecipeRef) -> int:
        """
        Resolve a numeric id or legacy recipe_id to the backend numeric id.

        Checks the loaded collection first, then the remote full list.

        Raises:
            NotFoundError: If no recipe matches
        """
        if isinstance(identifier, int) and identifier in self.recipes:
            return identifier
        if isinstance(identifier, str):
            local = self.recipes.find_by_recipe_id(identifier)
            if local is not None:
                return local.id
            if identifier.isdigit() and int(identifier) in self.recipes:
                return int(identifier)

        logger.info("Recipe %r not loaded locally, resolving against backend", identifier)
        for recipe in self.recipes_connector.list_all_recipes():
            if recipe.id == identifier or str(recipe.id) == str(identifier):
                return recipe.id
            if recipe.recipe_id is not None and recipe.recipe_id == str(identifier):
                return recipe.id
        raise NotFoundError(f"No recipe found for identifier {identifier!r}")

    def _load_for_mutation(self, recipe_id: int) -> Recipe:
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            recipe = self.recipes_connector.get_recipe(recipe_id)
            if recipe is None:
                raise NotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    def update_recipe(self, identifier: RecipeRef, **fields: Any) -> Recipe:
        """
        Update content fields of a recipe.

        Only the given fields are sent and, after the backend confirms, patched locally.

        Raises:
            ValidationError: For unknown fields or an empty update
            PermissionDeniedError: If the session may not edit the recipe
            NotFoundError: If the recipe cannot be resolved
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("No fields to update")
        if "title" in fields and not (fields["title"] or "").strip():
            raise ValidationError("Recipe title cannot be empty")

        recipe_id = self.resolve_recipe_id(identifier)
        recipe = self._load_for_mutation(recipe_id)
        if not self.session.can_edit_recipe(recipe):
            raise PermissionDeniedError("You may only edit your own recipes")
        if "category_id" in fields and fields["category_id"] is not None and fields["category_id"] not in self.tree:
            raise ValidationError(f"Unknown category '{fields['category_id']}'")

        with self._in_flight_guard(("recipe", recipe_id)):
            self.recipes_connector.update_recipe(recipe_id, fields)
            if recipe_id in self.recipes:
                recipe = self.recipes.patch(recipe_id, **fields)
        return recipe

    def move_recipe(self, identifier: RecipeRef, category_id: Optional[str]) -> Recipe:
        """
        File a recipe under a category (None for uncategorized).

        Raises:
            NotFoundError: If the recipe's numeric id cannot be resolved; nothing is changed
            ValidationError: If the target category is unknown
        """
        if category_id is not None and category_id not in self.tree:
            raise ValidationError(f"Unknown category '{category_id}'")
        recipe_id = self.resolve_recipe_id(identifier)
        recipe = self._load_for_mutation(recipe_id)
        if not self.session.can_edit_recipe(recipe):
            raise PermissionDeniedError("You may only move your own recipes")

        with self._in_flight_guard(("recipe", recipe_id)):
            self.recipes_connector.update_recipe(recipe_id, {"category_id": category_id})
            if recipe_id in self.recipes:
                recipe = self.recipes.patch(recipe_id, category_id=category_id)
        logger.info("Moved recipe %d to category %s", recipe_id, category_id)
        return recipe

    def delete_recipe(self, identifier: RecipeRef) -> None:
        """
        Delete a recipe. It leaves the collection only after the backend confirms.

        Raises:
            NotFoundError: If the recipe cannot be resolved
            PermissionDeniedError: If the session may not delete the recipe
        """
        recipe_id = self.resolve_recipe_id(identifier)
        recipe = self._load_for_mutation(recipe_id)
        if not self.session.can_delete_recipe(recipe):
            raise PermissionDeniedError("You may only delete your own recipes")

        with self._in_flight_guard(("recipe", recipe_id)):
            self.recipes_connector.delete_recipe(recipe_id)
            self.recipes.remove(recipe_id)
        logger.info("Deleted recipe %d", recipe_id)

    def save_additional_images(self, identifier: RecipeRef, images: List[str]) -> Recipe:
        """Replace a recipe's additional images."""
        return self.update_recipe(identifier, additional_images=[i for i in images if i])

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def toggle_favorite(self, recipe_id: int) -> bool:
        """
        Toggle a favorite optimistically.

        The flag flips immediately, the backend's reported state wins once it answers,
        and the flip is reverted if the call fails. Afterwards favorites are reconciled
        with the favorites endpoint on a best-effort basis.

        Returns:
            The favorite state after the toggle

        Raises:
            PermissionDeniedError: Without a logged-in user
            NotFoundError: If the recipe is not loaded
            MutationInFlightError: If a toggle for this recipe is still pending
        """
        if not self.session.user_id:
            raise PermissionDeniedError("Log in to save favorites")
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            raise NotFoundError(f"Recipe {recipe_id} is not loaded")

        with self._in_flight_guard(("favorite", recipe_id)):
            previous = recipe.is_favorite
            recipe.is_favorite = not previous
            try:
                is_favorite = self.favorites_connector.toggle_favorite(self.session.user_id, recipe_id)
            except RecipeClientError:
                recipe.is_favorite = previous
                logger.error("Favorite toggle for recipe %d failed, reverted", recipe_id)
                raise
            recipe.is_favorite = is_favorite

        try:
            self.refresh_favorites()
        except RecipeClientError as e:
            logger.warning("Could not reconcile favorites after toggle: %s", e)
        return recipe.is_favorite

    # ------------------------------------------------------------------
    # Status workflow
    # ------------------------------------------------------------------

    def _transition(self, identifier: RecipeRef, target: RecipeStatus) -> Recipe:
        recipe_id = self.resolve_recipe_id(identifier)
        recipe = self._load_for_mutation(recipe_id)

        allowed = _TRANSITIONS[recipe.status]
        if target not in allowed:
            raise InvalidTransitionError(recipe.status.value, target.value)
        if allowed[target] == "admin" and not self.session.can_perform("approve_recipes"):
            raise PermissionDeniedError("Only admins may approve or reject recipes")
        if allowed[target] == "owner" and not (self.session.owns(recipe) or self.session.is_admin):
            raise PermissionDeniedError("Only the recipe's owner may resubmit it")

        with self._in_flight_guard(("recipe", recipe_id)):
            self.recipes_connector.update_recipe(recipe_id, {"status": target.value})
            if recipe_id in self.recipes:
                recipe = self.recipes.patch(recipe_id, status=target)
        logger.info("Recipe %d is now %s", recipe_id, target.value)
        return recipe

    def approve(self, identifier: RecipeRef) -> Recipe:
        return self._transition(identifier, RecipeStatus.APPROVED)

    def reject(self, identifier: RecipeRef) -> Recipe:
        return self._transition(identifier, RecipeStatus.REJECTED)

    def resubmit(self, identifier: RecipeRef) -> Recipe:
        """Send an approved recipe back for review. Rejected recipes stay rejected."""
        return self._transition(identifier, RecipeStatus.PENDING)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Category name cannot be empty")
        return cleaned

    def create_category(
        self,
        name: str,
        parent_id: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[str]:
        """
        Create a category, then reload the tree from the backend.

        Returns:
            The new category id as reported by the backend (None if it sent none)

        Raises:
            ValidationError: If the name is empty or the parent is unknown
        """
        cleaned = self._clean_name(name)
        if parent_id is not None and parent_id not in self.tree:
            raise ValidationError(f"Unknown parent category '{parent_id}'")

        new_id = self.categories.connector.create_category(
            name=cleaned,
            color=color or random.choice(FOLDER_COLORS),
            parent_id=parent_id,
            user_id=self.session.user_id or ApiConfig.get_default_user_id(),
            display_order=len(self.tree) + 1,
        )
        self.categories.reload()
        logger.info("Created category '%s' (id=%s)", cleaned, new_id)
        return new_id

    def rename_category(self, category_id: str, new_name: str) -> None:
        cleaned = self._clean_name(new_name)
        if category_id not in self.tree:
            raise NotFoundError(f"Category '{category_id}' not found")
        with self._in_flight_guard(("category", category_id)):
            self.categories.connector.rename_category(category_id, cleaned)
            self.categories.reload()

    def delete_category(self, category_id: str) -> List[int]:
        """
        Delete a category and its subcategories.

        Every recipe filed anywhere in the subtree is first moved to uncategorized, on
        the backend and then locally, one at a time. If any move fails the category is
        not deleted. Subcategories are removed by the backend along with their parent.

        Returns:
            Ids of the recipes that were moved to uncategorized

        Raises:
            NotFoundError: If the category is unknown
        """
        subtree = set(self.tree.get_all_subfolder_ids(category_id))
        if not subtree:
            raise NotFoundError(f"Category '{category_id}' not found")

        with self._in_flight_guard(("category", category_id)):
            affected = [r.id for r in self.recipes if r.category_id in subtree]
            for recipe_id in affected:
                try:
                    self.recipes_connector.update_recipe(recipe_id, {"category_id": None})
                except RecipeClientError:
                    logger.error("Could not reassign recipe %d, category %s kept", recipe_id, category_id)
                    raise
                self.recipes.patch(recipe_id, category_id=None)

            self.categories.connector.delete_category(category_id)
            try:
                self.categories.reload()
            except NetworkError as e:
                logger.warning("Category %s deleted but reload failed: %s", category_id, e)
            self.categories.discard(subtree)
        logger.info("Deleted category %s, %d recipe(s) now uncategorized", category_id, len(affected))
        return affected
