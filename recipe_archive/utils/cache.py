"""
In-process TTL cache for user directory lookups.

Recipe cards show the owner's display name, but recipes only carry a user id. Resolving
names means a round trip to /users.php; this cache keeps the id -> name mapping for a
short time so a page render does not hit the backend once per card.

The cache is process-local and in-memory, with automatic expiration based on TTL.
"""

import time
from typing import Any, Dict, Hashable, Optional, Tuple

# Key -> (timestamp, cached_value)
_USER_CACHE: Dict[Hashable, Tuple[float, Any]] = {}

USER_CACHE_TTL_SECONDS = 300


def get_cached(key: Hashable, ttl_seconds: float = USER_CACHE_TTL_SECONDS) -> Optional[Any]:
    """
    Retrieve a cached value if it exists and hasn't expired.

    Args:
        key: Cache key
        ttl_seconds: Maximum age of the entry

    Returns:
        Cached value, or None if not found or expired
    """
    entry = _USER_CACHE.get(key)
    if not entry:
        return None

    timestamp, value = entry
    if time.time() - timestamp > ttl_seconds:
        _USER_CACHE.pop(key, None)
        return None

    return value


def set_cached(key: Hashable, value: Any) -> None:
    _USER_CACHE[key] = (time.time(), value)


def clear_cache() -> None:
    """Clear all cached entries (useful for testing)."""
    _USER_CACHE.clear()


def get_cache_size() -> int:
    return len(_USER_CACHE)
