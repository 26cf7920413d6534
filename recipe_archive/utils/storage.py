"""
Local key/value store.

A handful of values survive between runs: the category list backup ("recipeFolders"),
the logged-in user ("current-user") and the UI preferences ("ui-preferences").
LocalStore keeps them as one JSON file per key in a cache directory.

# NOTE: The store is a best-effort cache. Write failures are logged and dropped; a
    missing or corrupt file reads as the default. There is no schema versioning.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

from recipe_archive.config import CacheConfig

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStore:
    """JSON-file backed key/value store."""

    def __init__(self, directory: Optional[Union[str, Path]] = None) -> None:
        self.directory = Path(directory) if directory else CacheConfig.get_cache_dir()

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a value.

        Args:
            key: Storage key
            default: Value returned when the key is missing or unreadable

        Returns:
            The decoded JSON value, or default
        """
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read cached value '%s': %s", key, e)
            return default

    def set(self, key: str, value: Any) -> bool:
        """
        Write a value.

        Returns:
            True if the value was written
        """
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
            tmp_path.replace(path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not write cached value '%s': %s", key, e)
            return False

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete cached value '%s': %s", key, e)

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
