from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class SequenceContentionError(Exception):
    """Raised when the ticket counter could not be advanced within the retry budget."""

    def __init__(self, message: str = "Sequence contention, try again") -> None:
        super().__init__(message)


class StorageError(Exception):
    """Raised when the underlying store fails (transport, auth, server errors)."""


class VersionConflictError(StorageError):
    """Raised when a conditional write loses against a concurrent writer."""


class TagIndexUnavailableError(StorageError):
    """Raised when the backend cannot answer tag queries."""
