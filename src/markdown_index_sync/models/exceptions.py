"""
Custom exception classes for the markdown index synchronizer.

Provides specific exception types for the failure modes of each component so
the indexer can decide which errors abort startup and which are logged and
skipped.
"""

from typing import Any


class BaseError(Exception):
    """
    Base exception class for all synchronizer errors.

    All custom exceptions in the system inherit from this base class to enable
    consistent error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context information
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation including error code if present."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"context={self.context})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class InitializationError(BaseError):
    """Raised when startup cannot proceed (missing content root, unusable store)."""

    def __init__(
        self,
        message: str,
        component: str | None = None,
        initialization_stage: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if component:
            context["component"] = component
        if initialization_stage:
            context["initialization_stage"] = initialization_stage

        super().__init__(
            message,
            error_code="INITIALIZATION_ERROR",
            context=context,
            cause=underlying_error,
        )


class DocumentNotReadableError(BaseError):
    """Raised when a content file cannot be opened or stat'd during observation."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if file_path:
            context["file_path"] = file_path

        super().__init__(message, error_code="NOT_READABLE", context=context, cause=underlying_error)


class StoreError(BaseError):
    """Base class for metadata store failures."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        path: str | None = None,
        error_code: str = "STORE_ERROR",
        underlying_error: Exception | None = None,
    ):
        context = {}
        if operation:
            context["operation"] = operation
        if path:
            context["path"] = path

        super().__init__(message, error_code=error_code, context=context, cause=underlying_error)


class StoreReadError(StoreError):
    """Raised when a store query fails (distinct from a lookup that finds nothing)."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        path: str | None = None,
        underlying_error: Exception | None = None,
    ):
        super().__init__(
            message,
            operation=operation,
            path=path,
            error_code="STORE_READ_ERROR",
            underlying_error=underlying_error,
        )


class StoreWriteError(StoreError):
    """Raised when an insert, update, or delete against the store fails."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        path: str | None = None,
        underlying_error: Exception | None = None,
    ):
        super().__init__(
            message,
            operation=operation,
            path=path,
            error_code="STORE_WRITE_ERROR",
            underlying_error=underlying_error,
        )


class MonitoringError(BaseError):
    """Raised when file monitoring operations fail."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code="MONITORING_ERROR",
            context=context,
            cause=underlying_error,
        )


class SearchError(BaseError):
    """Raised when a query against the search-index service fails."""

    def __init__(
        self,
        message: str,
        query: str | None = None,
        status_code: int | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if query:
            context["query"] = query
        if status_code is not None:
            context["status_code"] = status_code

        super().__init__(message, error_code="SEARCH_ERROR", context=context, cause=underlying_error)

