"""
UI helpers for the recipe archive Streamlit app.
"""

from ui.feedback import report_error, show_empty_state, show_error, working_spinner

__all__ = [
    "report_error",
    "show_empty_state",
    "show_error",
    "working_spinner",
]
