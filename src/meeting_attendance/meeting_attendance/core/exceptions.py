class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a meeting, record or user does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


ForbiddenError = AuthorizationError


class AlreadyCheckedInError(DomainError):
    """Raised when the meeting/user pair already holds a present or late record."""


class InvalidStateError(DomainError):
    """Raised when a record is not in the state an operation requires."""


class StorageUnavailableError(DomainError):
    """Raised when the underlying store fails or times out."""
