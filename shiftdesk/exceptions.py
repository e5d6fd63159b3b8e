class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials or the restaurant code are invalid."""


class AuthorizationError(DomainError):
    """Raised when a session lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced document does not exist."""


class StoreError(Exception):
    """Raised by the document store when a read or write cannot be applied."""
