"""
Data models for the Recipe Archive client.

This module defines the canonical schemas used throughout the client. Connectors receive
raw backend rows (PHP/MySQL, snake_case with some camelCase legacy keys) and map them
into these models via the from_api() classmethods; nothing downstream touches raw rows.

# NOTE: The backend is inconsistent about key names. Each from_api() lists the keys it
    accepts in priority order, e.g. a recipe's category comes from "category_id" first,
    then the legacy "folderId".
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .parsing import extract_title


class RecipeStatus(str, Enum):
    """Workflow state of a recipe."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    """User role."""
    ADMIN = "admin"
    WORKER = "worker"
    GUEST = "guest"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _first_present(raw: Dict[str, Any], *keys: str) -> Any:
    """Return the first value among keys that is neither None nor an empty string."""
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


class Category(BaseModel):
    """
    A recipe folder. Top-level when parent_id is None, otherwise a subcategory.
    """
    id: str = Field(..., description="Opaque unique category identifier")
    name: str = Field(..., description="Display name")
    color: str = Field(default="#4F7B52", description="Display color (hex code)")
    parent_id: Optional[str] = Field(None, description="Parent category id (None for top-level)")
    created_at: Optional[str] = Field(None, description="Creation timestamp")
    display_order: Optional[int] = Field(None, description="Sort hint stored by the backend")

    model_config = ConfigDict(frozen=True)

    @property
    def is_subcategory(self) -> bool:
        return self.parent_id is not None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Category":
        """
        Build a Category from a backend row.

        An empty-string or missing parent is treated as top-level.
        """
        parent = _first_present(raw, "parent_id", "parentId")
        display_order = raw.get("display_order")
        return cls(
            id=str(raw["id"]),
            name=str(raw.get("name") or ""),
            color=str(raw.get("color") or "#4F7B52"),
            parent_id=str(parent) if parent is not None else None,
            created_at=_first_present(raw, "created_at", "createdAt"),
            display_order=int(display_order) if display_order not in (None, "") else None,
        )


class Recipe(BaseModel):
    """
    A recipe record as held by the client.

    The numeric id is assigned by the backend; recipe_id is a legacy string key that
    some endpoints still use.
    """
    id: int = Field(..., description="Backend numeric identifier")
    recipe_id: Optional[str] = Field(None, description="Legacy/alternate string identifier")
    title: str = Field(default="", description="Display title")
    analysis: str = Field(default="", description="Free-text recipe body")
    image: Optional[str] = Field(None, description="Main image (URL or base64 data URI)")
    additional_images: List[str] = Field(default_factory=list, description="Extra images")
    date: Optional[str] = Field(None, description="Creation timestamp")
    category_id: Optional[str] = Field(None, description="Category the recipe is filed under")
    is_favorite: bool = Field(default=False, description="Favorited by the current user")
    user_id: Optional[str] = Field(None, description="Owner user id")
    status: RecipeStatus = Field(default=RecipeStatus.APPROVED, description="Workflow status")
    servings: Optional[int] = Field(None, description="Current servings")
    original_servings: Optional[int] = Field(None, description="Servings the recipe was written for")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        # Legacy rows have no status; they were created before the approval workflow
        return value or RecipeStatus.APPROVED

    @staticmethod
    def _image_ref(item: Any) -> Optional[str]:
        if isinstance(item, str):
            return item or None
        if isinstance(item, dict):
            return _first_present(item, "image_url", "image_base64")
        return None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Recipe":
        """
        Build a Recipe from a backend row.

        Raises:
            ValueError: If the row has no usable numeric id
        """
        raw_id = raw.get("id")
        try:
            numeric_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValueError(f"Recipe row has no numeric id: {raw_id!r}")

        additional = [
            ref for ref in (cls._image_ref(item) for item in raw.get("additional_images") or [])
            if ref
        ]
        image = _first_present(raw, "image_base64", "image_url", "image")
        if not image and additional:
            image = additional[0]

        analysis = str(raw.get("analysis") or "")
        title = _first_present(raw, "title", "name") or extract_title(analysis)
        category = _first_present(raw, "category_id", "folderId")
        owner = _first_present(raw, "user_id", "userId")
        favorite = _first_present(raw, "is_favorite", "isFavorite")
        recipe_id = _first_present(raw, "recipe_id", "recipeId")

        return cls(
            id=numeric_id,
            recipe_id=str(recipe_id) if recipe_id is not None else None,
            title=str(title),
            analysis=analysis,
            image=image,
            additional_images=additional,
            date=_first_present(raw, "created_at", "date"),
            category_id=str(category) if category is not None else None,
            is_favorite=bool(favorite) and favorite not in ("0", "false"),
            user_id=str(owner) if owner is not None else None,
            status=raw.get("status"),
            servings=_first_present(raw, "servings"),
            original_servings=_first_present(raw, "original_servings", "originalServings"),
        )


class RecipeDraft(BaseModel):
    """
    Input for creating a recipe.

    Either analysis is given directly (digitized recipe), or title, ingredients and
    preparation are given and the body is built in the manual format.
    """
    title: Optional[str] = None
    analysis: Optional[str] = None
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    preparation: Optional[str] = None
    estimated_time: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None
    category_id: Optional[str] = None

    @property
    def is_manual(self) -> bool:
        return not self.analysis


class User(BaseModel):
    """
    An application user.

    Sub-admins are admins whose scope is restricted to the listed permissions.
    """
    id: str
    name: str
    email: Optional[str] = None
    role: Role = Role.GUEST
    status: UserStatus = UserStatus.ACTIVE
    permissions: List[str] = Field(default_factory=list)

    @property
    def is_sub_admin(self) -> bool:
        return self.role == Role.ADMIN and bool(self.permissions) and "all" not in self.permissions

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "User":
        """
        Build a User from a backend row.

        The backend reports activity as "active" 0/1 or as a "status" string; the
        legacy role "user" maps to worker.
        """
        role = str(raw.get("role") or Role.GUEST.value)
        if role == "user":
            role = Role.WORKER.value
        if role not in {r.value for r in Role}:
            role = Role.GUEST.value

        if raw.get("status") in (UserStatus.ACTIVE.value, UserStatus.INACTIVE.value):
            status = raw["status"]
        else:
            active = raw.get("active", 1)
            status = UserStatus.ACTIVE.value if str(active) not in ("0", "False", "false") else UserStatus.INACTIVE.value

        permissions = raw.get("permissions") or []
        if isinstance(permissions, str):
            permissions = [p.strip() for p in permissions.split(",") if p.strip()]

        return cls(
            id=str(raw["id"]),
            name=str(_first_present(raw, "name", "username") or ""),
            email=raw.get("email"),
            role=role,
            status=status,
            permissions=list(permissions),
        )


class Comment(BaseModel):
    """A comment attached to a recipe."""
    id: str
    author: str = "Anonym"
    role: Role = Role.GUEST
    content: str = ""
    timestamp: Optional[str] = None
    likes: int = Field(default=0, ge=0)
    liked_by: List[str] = Field(default_factory=list)
    is_edited: bool = False

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Comment":
        role = raw.get("role") or Role.GUEST.value
        if role not in {r.value for r in Role}:
            role = Role.GUEST.value
        return cls(
            id=str(raw["id"]),
            author=str(raw.get("author") or "Anonym"),
            role=role,
            content=str(raw.get("content") or ""),
            timestamp=_first_present(raw, "timestamp", "created_at"),
            likes=int(raw.get("likes") or 0),
            liked_by=[str(u) for u in (_first_present(raw, "likedBy", "liked_by") or [])],
            is_edited=bool(_first_present(raw, "isEdited", "is_edited")),
        )


class Pagination(BaseModel):
    """Paging block returned by the recipe list endpoint."""
    page: int = 1
    limit: int = 6
    total: int = 0
    pages: int = 0
    has_more: bool = False

    @classmethod
    def from_api(cls, raw: Optional[Dict[str, Any]]) -> "Pagination":
        if not raw:
            return cls()
        return cls(
            page=int(raw.get("page") or 1),
            limit=int(raw.get("limit") or 6),
            total=int(raw.get("total") or 0),
            pages=int(raw.get("pages") or 0),
            has_more=bool(_first_present(raw, "hasMore", "has_more")),
        )
