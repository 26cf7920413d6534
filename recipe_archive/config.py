"""
Configuration management for the Recipe Archive client.

This module centralizes environment variable loading from the .env file at the project root.
It is imported by the connectors and by the Streamlit app so that .env is loaded before any
other code reads environment variables.

When the .env file does not exist, load_dotenv() is a no-op and the process environment is used.

Environment Variables:
- RECIPE_API_BASE_URL: Optional, base URL of the PHP backend
  (defaults to "https://web.lweb.ch/recipedigitalizer/apis")
- RECIPE_API_TIMEOUT: Optional, request timeout in seconds (defaults to 15)
- RECIPE_PAGE_SIZE: Optional, recipes per page for archive paging (defaults to 6)
- RECIPE_CACHE_DIR: Optional, directory for the local key/value cache (defaults to .recipe_cache)
- RECIPE_DEFAULT_USER_ID: Optional, owner id for categories created without a session
  (defaults to "admin-001")
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_BASE_URL = "https://web.lweb.ch/recipedigitalizer/apis"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_PAGE_SIZE = 6
# The backend clamps ?limit= to this range
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 50
DEFAULT_USER_ID = "admin-001"

# Endpoint paths relative to the base URL
CATEGORIES_ENDPOINT = "/categories-simple.php"
RECIPES_ENDPOINT = "/recipes-simple.php"
FAVORITES_ENDPOINT = "/favorites.php"
COMMENTS_ENDPOINT = "/comments.php"
USERS_ENDPOINT = "/users.php"
AUTH_ENDPOINT = "/auth-simple.php"


def load_env_file() -> None:
    """
    Load environment variables from the .env file at the project root.

    Safe to call multiple times. Existing environment variables take precedence.
    """
    env_path = PROJECT_ROOT / ".env"
    load_dotenv(env_path, override=False)


# Load .env file on module import
load_env_file()


class ApiConfig:
    """Configuration for the remote recipe backend."""

    @staticmethod
    def get_base_url() -> str:
        """
        Get the backend base URL.

        Returns:
            Base URL with trailing slash removed.
        """
        return os.getenv("RECIPE_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/")

    @staticmethod
    def get_timeout() -> float:
        """
        Get the request timeout in seconds.

        Invalid or non-positive values fall back to the default.
        """
        raw = os.getenv("RECIPE_API_TIMEOUT")
        if not raw:
            return DEFAULT_TIMEOUT_SECONDS
        try:
            value = float(raw)
        except ValueError:
            return DEFAULT_TIMEOUT_SECONDS
        return value if value > 0 else DEFAULT_TIMEOUT_SECONDS

    @staticmethod
    def get_page_size() -> int:
        """
        Get the archive page size, clamped to what the backend accepts.
        """
        raw = os.getenv("RECIPE_PAGE_SIZE")
        try:
            value = int(raw) if raw else DEFAULT_PAGE_SIZE
        except ValueError:
            value = DEFAULT_PAGE_SIZE
        return max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, value))

    @staticmethod
    def get_default_user_id() -> str:
        return os.getenv("RECIPE_DEFAULT_USER_ID", DEFAULT_USER_ID)


class CacheConfig:
    """Configuration for the client-side key/value cache."""

    @staticmethod
    def get_cache_dir() -> Path:
        """
        Get the cache directory.

        Relative paths are resolved against the project root.
        """
        raw = os.getenv("RECIPE_CACHE_DIR", ".recipe_cache")
        path = Path(raw)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path


def get_config_summary() -> dict:
    """
    Get a dictionary describing the effective configuration.

    Returns:
        Dictionary with base_url, timeout, page_size and cache_dir.
    """
    return {
        "base_url": ApiConfig.get_base_url(),
        "timeout": ApiConfig.get_timeout(),
        "page_size": ApiConfig.get_page_size(),
        "cache_dir": str(CacheConfig.get_cache_dir()),
    }
