"""Custom exception hierarchy for sqldrawer.

All public errors inherit from SQLDrawerError so callers can catch the base
class for any sqldrawer-specific failure.
"""
from __future__ import annotations


class SQLDrawerError(Exception):
    """Base exception for all sqldrawer errors."""


class UsageError(SQLDrawerError):
    """Raised when a builder call is malformed or unsupported.

    Detected synchronously at call (or compile) time, before any driver
    interaction.  Examples: an unknown comparison operator, an ``is`` value
    outside ``null / not null / true / false``, an unknown join type or
    aggregate kind.

    Args:
        message: Human-readable description.
        value: The offending value, when there is one.
    """

    def __init__(self, message: str, value: object | None = None) -> None:
        super().__init__(message)
        self.value = value


class ConfigurationError(SQLDrawerError):
    """Raised when a dialect has no clause list for an operation.

    This is a defect in the dialect definition, not a caller mistake.

    Args:
        message: Human-readable description.
        operation: The operation that could not be resolved.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class DriverError(SQLDrawerError):
    """Base class for failures reported by the database driver.

    Args:
        message: The driver's message, surfaced verbatim.
        sql: The template that was being processed.
    """

    def __init__(self, message: str, sql: str | None = None) -> None:
        super().__init__(message)
        self.driver_message = message
        self.sql = sql


class PreparationError(DriverError):
    """Raised when a template cannot be prepared for the driver."""


class BindingError(DriverError):
    """Raised when the bindings cannot be attached to a prepared template."""


class ExecutionError(DriverError):
    """Raised when the driver fails to execute a statement."""
