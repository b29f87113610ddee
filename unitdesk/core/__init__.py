"""Core infrastructure for UnitDesk."""

from .exceptions import (
    BackendError,
    BackendQueryError,
    BackendTransportError,
    ProjectionError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    RowValidationError,
    UnitDeskException,
    ValidationError,
)
from .pagination import (
    PaginatedResults,
    calculate_offset,
    calculate_page_count,
    calculate_range,
    validate_pagination_params,
)
from .projection import Projection, parse_projection

__all__ = [
    "UnitDeskException",
    "ResourceNotFoundError",
    "ResourceAlreadyExistsError",
    "ValidationError",
    "ProjectionError",
    "RowValidationError",
    "BackendError",
    "BackendQueryError",
    "BackendTransportError",
    "PaginatedResults",
    "validate_pagination_params",
    "calculate_offset",
    "calculate_range",
    "calculate_page_count",
    "Projection",
    "parse_projection",
]
