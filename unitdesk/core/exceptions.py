"""
Custom exception classes for consistent error handling across all modules.
"""

from typing import Any


class UnitDeskException(Exception):
    """Base exception for all UnitDesk related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(UnitDeskException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        identifier: Any,
        details: dict[str, Any] | None = None,
    ):
        message = f"{resource_type} with identifier '{identifier}' not found"
        super().__init__(message, details)
        self.resource_type = resource_type
        self.identifier = identifier


class ResourceAlreadyExistsError(UnitDeskException):
    """Raised when trying to create a resource that already exists."""

    def __init__(
        self,
        resource_type: str,
        identifier: Any,
        details: dict[str, Any] | None = None,
    ):
        message = f"{resource_type} with identifier '{identifier}' already exists"
        super().__init__(message, details)
        self.resource_type = resource_type
        self.identifier = identifier


class ValidationError(UnitDeskException):
    """Raised when data validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        if field:
            full_message = f"Validation error for field '{field}': {message}"
        else:
            full_message = message
        super().__init__(full_message, details)
        self.field = field
        self.value = value


class ProjectionError(ValidationError):
    """Raised when a projection string cannot be parsed."""

    def __init__(self, message: str, projection: str):
        super().__init__(message, field="projection", value=projection)


class RowValidationError(ValidationError):
    """Raised when a fetched row does not fit the requested row model."""

    def __init__(self, collection: str, errors: list[dict[str, Any]]):
        super().__init__(
            f"Row from '{collection}' failed validation",
            details={"collection": collection, "errors": errors},
        )
        self.collection = collection


class BackendError(UnitDeskException):
    """Raised when the data backend cannot satisfy a request."""

    def __init__(
        self,
        message: str,
        operation: str,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.operation = operation
        self.table = table


class BackendQueryError(BackendError):
    """The backend answered but rejected the request.

    Covers malformed filters, unknown columns or tables and permission
    denials. ``details`` carries ``code``, ``hint`` and ``status_code`` when the
    backend reports them.
    """


class BackendTransportError(BackendError):
    """The backend could not be reached (network, timeout, connection)."""
