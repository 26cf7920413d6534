"""Utility modules for the Recipe Archive client."""
