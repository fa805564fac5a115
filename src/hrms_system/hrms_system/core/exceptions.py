class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StateConflictError(ValidationError):
    """Raised when a lifecycle transition is requested from the wrong state."""


class CapacityExceededError(ValidationError):
    """Raised when a position has no room left for another employee."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class AuthenticationError(DomainError):
    """Raised when the bearer token is missing or invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
