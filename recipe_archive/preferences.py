"""
UI preferences.

The archive remembers the last-used view mode and dark mode between runs. Preferences are
stored under "ui-preferences" in the local store and validated when read back, so a stale
or hand-edited file never breaks the page.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .utils.storage import LocalStore

VIEW_MODE_GRID = "grid"
VIEW_MODE_LIST = "list"

ALLOWED_VIEW_MODES = [VIEW_MODE_GRID, VIEW_MODE_LIST]

PREFERENCES_STORAGE_KEY = "ui-preferences"


@dataclass
class UiPreferences:
    """
    Display preferences for the archive.

    Attributes:
        view_mode: "grid" or "list"
        dark_mode: Whether the dark theme is active
    """
    view_mode: str = VIEW_MODE_GRID
    dark_mode: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UiPreferences":
        """
        Create UiPreferences from a dictionary.

        Unknown view modes fall back to grid; dark_mode must be a real boolean.
        """
        if not data or not isinstance(data, dict):
            return cls()

        view_mode = data.get("view_mode", VIEW_MODE_GRID)
        if view_mode not in ALLOWED_VIEW_MODES:
            view_mode = VIEW_MODE_GRID

        dark_mode = data.get("dark_mode", False)
        if not isinstance(dark_mode, bool):
            dark_mode = False

        return cls(view_mode=view_mode, dark_mode=dark_mode)


def load_preferences(store: LocalStore) -> UiPreferences:
    return UiPreferences.from_dict(store.get(PREFERENCES_STORAGE_KEY))


def save_preferences(store: LocalStore, prefs: UiPreferences) -> None:
    store.set(PREFERENCES_STORAGE_KEY, prefs.to_dict())
