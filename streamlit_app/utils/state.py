"""
Archive State Management Module.

This module wraps Streamlit's session_state so the archive page never touches raw keys.
It holds, per browser session:
- the LocalStore (session blob, category backup, UI preferences)
- the Session (current user), restored from the store on first access
- the RecipeCoordinator, created and loaded lazily
- the current RecipeFilter

# NOTE: session_state lives only as long as the Streamlit session. Anything that must
    survive a page refresh (login, preferences) goes through the LocalStore as well.
"""

from typing import Optional

import streamlit as st

from recipe_archive.coordinator import RecipeCoordinator
from recipe_archive.filtering import RecipeFilter
from recipe_archive.preferences import UiPreferences, load_preferences, save_preferences
from recipe_archive.session import Session, logout, restore_session
from recipe_archive.utils.storage import LocalStore

STORE_KEY = "local_store"
SESSION_KEY = "session"
COORDINATOR_KEY = "coordinator"
FILTER_KEY = "recipe_filter"
PREFS_KEY = "ui_preferences"


def get_store() -> LocalStore:
    if STORE_KEY not in st.session_state:
        st.session_state[STORE_KEY] = LocalStore()
    return st.session_state[STORE_KEY]


def get_session() -> Session:
    """Get the current session, restoring it from the local store on first access."""
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = restore_session(get_store())
    return st.session_state[SESSION_KEY]


def set_session(session: Session) -> None:
    """Replace the session. The coordinator is rebuilt for the new user on next access."""
    st.session_state[SESSION_KEY] = session
    st.session_state.pop(COORDINATOR_KEY, None)


def clear_session() -> None:
    set_session(logout(get_store()))


def get_coordinator() -> RecipeCoordinator:
    """
    Get the coordinator for the current session, loading the archive on first access.

    Raises:
        RecipeClientError: If the initial load fails (the coordinator is not cached then)
    """
    coordinator: Optional[RecipeCoordinator] = st.session_state.get(COORDINATOR_KEY)
    if coordinator is None:
        coordinator = RecipeCoordinator.from_session(get_session(), local_store=get_store())
        coordinator.load()
        st.session_state[COORDINATOR_KEY] = coordinator
    return coordinator


def get_filter() -> RecipeFilter:
    if FILTER_KEY not in st.session_state:
        st.session_state[FILTER_KEY] = RecipeFilter()
    return st.session_state[FILTER_KEY]


def set_filter(recipe_filter: RecipeFilter) -> None:
    st.session_state[FILTER_KEY] = recipe_filter


def get_preferences() -> UiPreferences:
    if PREFS_KEY not in st.session_state:
        st.session_state[PREFS_KEY] = load_preferences(get_store())
    return st.session_state[PREFS_KEY]


def set_preferences(prefs: UiPreferences) -> None:
    st.session_state[PREFS_KEY] = prefs
    save_preferences(get_store(), prefs)
