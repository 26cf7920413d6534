"""
Standardized feedback utilities for consistent error, empty, and loading states.

Client errors are mapped to one user-facing message each: business rule failures are
shown verbatim (they come from the backend), everything else gets a short explanation.
"""

from contextlib import contextmanager
from typing import Optional

import streamlit as st

from recipe_archive.errors import (
    BusinessRuleError,
    MutationInFlightError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RecipeClientError,
    ValidationError,
)


def show_error(message: str, hint: Optional[str] = None) -> None:
    """
    Display a standardized error message with optional hint.

    Args:
        message: Main error message to display
        hint: Optional hint text to help users resolve the issue
    """
    st.error(f"⚠️ {message}")
    if hint:
        st.caption(f"💡 {hint}")


def report_error(error: RecipeClientError) -> None:
    """Show a client error as a toast (transient) or an error box (actionable)."""
    if isinstance(error, MutationInFlightError):
        st.toast("Bitte warten, die letzte Änderung wird noch gespeichert.")
    elif isinstance(error, (ValidationError, BusinessRuleError)):
        show_error(str(error))
    elif isinstance(error, PermissionDeniedError):
        show_error(str(error), hint="Melde dich mit einem berechtigten Konto an.")
    elif isinstance(error, NotFoundError):
        show_error(str(error), hint="Lade das Archiv neu, die Daten sind nicht mehr aktuell.")
    elif isinstance(error, NetworkError):
        show_error("Der Server ist nicht erreichbar.", hint=str(error))
    else:
        show_error(str(error))


def show_empty_state(title: str, subtitle: Optional[str] = None) -> None:
    st.info(f"📭 **{title}**")
    if subtitle:
        st.caption(subtitle)


@contextmanager
def working_spinner(label: str = "Lädt…"):
    """
    Context manager wrapper for standardized loading spinners.

    Usage:
        with working_spinner("Speichern…"):
            coordinator.create_category(name)
    """
    with st.spinner(label):
        yield
