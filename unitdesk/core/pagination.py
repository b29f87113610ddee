"""
Shared pagination utilities for consistent pagination across all modules.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

MAX_PAGE_SIZE = 1000


class PaginatedResults(BaseModel, Generic[T]):
    """
    Generic paginated results container.

    Snapshot of one page of a collection together with the metadata a list
    screen needs to render its pager.
    """

    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def create(
        cls, items: list[T], total: int, page: int, page_size: int
    ) -> "PaginatedResults[T]":
        """
        Create paginated results with calculated metadata.

        Args:
            items: List of items for current page
            total: Total number of items across all pages
            page: Current page number (1-based)
            page_size: Number of items per page

        Returns:
            PaginatedResults instance with calculated metadata
        """
        total_pages = calculate_page_count(total, page_size)
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


def validate_page(page: int) -> int:
    """Raise ValueError unless ``page`` is an integer >= 1."""
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValueError("Page must be an integer >= 1")
    return page


def validate_pagination_params(
    page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE
) -> tuple[int, int]:
    """
    Validate and normalize pagination parameters.

    Args:
        page: Page number (1-based)
        page_size: Number of items per page
        max_page_size: Upper bound for page_size

    Returns:
        Tuple of (validated_page, validated_page_size)

    Raises:
        ValueError: If parameters are invalid
    """
    validate_page(page)

    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ValueError("Page size must be an integer >= 1")

    if page_size > max_page_size:
        raise ValueError(f"Page size cannot exceed {max_page_size}")

    return page, page_size


def calculate_offset(page: int, page_size: int) -> int:
    """Database offset (0-based) of the first row on ``page``."""
    return (page - 1) * page_size


def calculate_range(page: int, page_size: int) -> tuple[int, int]:
    """
    Inclusive row range covered by a page.

    Args:
        page: Page number (1-based)
        page_size: Number of items per page

    Returns:
        Tuple of (range_start, range_end), both 0-based and inclusive
    """
    start = calculate_offset(page, page_size)
    return start, start + page_size - 1


def calculate_page_count(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` rows; 0 for an empty collection."""
    if total <= 0 or page_size <= 0:
        return 0
    return (total + page_size - 1) // page_size
