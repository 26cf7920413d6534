"""Connectors for the recipe backend resources."""

from .base import BaseConnector
from .categories_connector import CategoriesConnector
from .comments_connector import CommentsConnector
from .favorites_connector import FavoritesConnector
from .recipes_connector import RecipesConnector
from .users_connector import AuthConnector, UsersConnector

__all__ = [
    "BaseConnector",
    "CategoriesConnector",
    "CommentsConnector",
    "FavoritesConnector",
    "RecipesConnector",
    "AuthConnector",
    "UsersConnector",
]
