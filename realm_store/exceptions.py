"""
Custom exceptions for REALM_STORE.

Every failure the store can report is a subclass of ``RealmStoreError``,
which itself is a ``RuntimeError`` so callers that only catch
``RuntimeError`` keep working.
"""

from typing import Any, Dict, Optional


class RealmStoreError(RuntimeError):
    """
    Base exception for realm store errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (realm,
                 table, identifier, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class InitializationError(RealmStoreError):
    """
    Raised when the backend client cannot be constructed or reached.

    Hosting processes are expected to treat this as fatal at startup.

    Attributes:
        message: Error message
        connection_string: Connection string (if available)
        backend: Backend name (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        connection_string: Optional[str] = None,
        backend: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if connection_string:
            context["connection_string"] = connection_string
        if backend:
            context["backend"] = backend
        super().__init__(message, context=context)
        self.connection_string = connection_string
        self.backend = backend


class ConfigurationError(RealmStoreError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class SerializationError(RealmStoreError):
    """
    Raised when a message cannot be converted to or from a document.

    This points at a schema or programming problem rather than at the
    database.

    Attributes:
        message: Error message
        message_type: Fully-qualified message type name (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        message_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if message_type:
            context["message_type"] = message_type
        super().__init__(message, context=context)
        self.message_type = message_type


class InvalidIdentifierError(SerializationError):
    """Raised when an identifier cannot be parsed for the active backend."""

    def __init__(
        self,
        message: str,
        identifier: Optional[Any] = None,
        message_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if identifier is not None:
            context["identifier"] = identifier
        super().__init__(message, message_type=message_type, context=context)
        self.identifier = identifier


class BackendError(RealmStoreError):
    """
    Raised when the database rejects a write or a query fails.

    These are recoverable from the caller's point of view (retry, surface
    to the user).

    Attributes:
        message: Error message
        operation: Store operation that failed (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if operation:
            context["operation"] = operation
        super().__init__(message, context=context)
        self.operation = operation


class OperationTimeoutError(BackendError):
    """Raised when an operation exceeds the timeout of its request context."""


class RevisionConflictError(BackendError):
    """Raised when a CouchDB write is rejected because the revision is stale."""


class DuplicateIdentifierError(RealmStoreError):
    """
    Raised when a lookup by identifier matches more than one document.

    This means the uniqueness invariant of the collection is broken and
    no result is picked.

    Attributes:
        message: Error message
        identifier: The identifier that was looked up
        count: Number of matching documents
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        count: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if identifier:
            context["identifier"] = identifier
        if count is not None:
            context["count"] = count
        super().__init__(message, context=context)
        self.identifier = identifier
        self.count = count
