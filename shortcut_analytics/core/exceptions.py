"""
Custom Exceptions

This module defines custom exceptions for the shortcut analytics service.

Benefits:
- Distinct error kinds for "shortcut missing" versus "storage down"
- Endpoints map each kind to one HTTP status code
- Original driver errors are kept for logging
"""


class ShortcutAnalyticsException(Exception):
    """Base exception for the shortcut analytics service."""
    pass


class InvalidShortcutError(ShortcutAnalyticsException):
    """Raised when a shortcut name or link fails validation."""

    def __init__(self, value: str, reason: str = "Invalid shortcut"):
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value}")


class ShortcutNotFoundError(ShortcutAnalyticsException):
    """Raised when a shortcut name is not found in the database."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Shortcut '{name}' not found")


class ShortcutAlreadyExistsError(ShortcutAnalyticsException):
    """Raised when creating a shortcut whose name is taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Shortcut '{name}' already exists")


class DatabaseError(ShortcutAnalyticsException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class StorageUnavailableError(DatabaseError):
    """Raised when the event store cannot be reached or is locked."""

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        super().__init__(
            f"event store unavailable during {operation}",
            original_error=original_error
        )
