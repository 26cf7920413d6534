"""
Error taxonomy for the Recipe Archive client.

- ValidationError: bad input caught before any network call
- NetworkError: transport failure, non-2xx status or malformed JSON
- NotFoundError: a local identifier could not be resolved to a backend record
- BusinessRuleError: the backend answered with success=false
- PermissionDeniedError: the session may not perform the action
- MutationInFlightError: a mutation for the same entity is still pending
"""

from typing import Optional


class RecipeClientError(Exception):
    """Base class for all client errors."""
    pass


class ValidationError(RecipeClientError):
    """Raised when input fails validation before a request is sent."""
    pass


class InvalidTransitionError(ValidationError):
    """Raised when a recipe status transition is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot change recipe status from '{current}' to '{target}'")
        self.current = current
        self.target = target


class NetworkError(RecipeClientError):
    """
    Raised when the backend cannot be reached or returns an unusable response.

    Attributes:
        status_code: HTTP status code if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RecipeClientError):
    """Raised when a recipe or category id cannot be resolved on the backend."""
    pass


class BusinessRuleError(RecipeClientError):
    """Raised when the backend rejects a request (envelope success=false)."""
    pass


class PermissionDeniedError(RecipeClientError):
    """Raised when the current session's role does not allow an action."""
    pass


class MutationInFlightError(RecipeClientError):
    """Raised when a mutation is requested for an entity that already has one pending."""
    pass
