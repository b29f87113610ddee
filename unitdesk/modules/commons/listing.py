"""
What a list screen shows for a given query snapshot.

The derivation is pure: it reads a :class:`CollectionQuery` (or its parts) and
decides between spinner, error, empty state and rows, plus pager and
clear-search visibility.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ...core.pagination import calculate_page_count
from ...query import CollectionQuery, QueryResult, QueryStatus

NO_RESULTS_TITLE = "No Results Found"
NO_RESULTS_DESCRIPTION = "Try a different search term or clear the search."
DEFAULT_ERROR_MESSAGE = "An error occurred"


class ListingKind(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    ROWS = "rows"


@dataclass(frozen=True)
class EmptyStateText:
    """Copy shown when a collection has no rows at all."""

    title: str = "No Items Found"
    description: str = "There are no items to display at this time."


@dataclass
class ListingView:
    """ViewModel for one list screen."""

    kind: ListingKind
    rows: list[Any] = field(default_factory=list)
    title: str | None = None
    message: str | None = None
    total_count: int = 0
    page: int = 1
    page_size: int = 5
    page_count: int = 0
    show_pagination: bool = False
    show_clear_search: bool = False
    is_refreshing: bool = False


def build_listing_view(
    result: QueryResult,
    page: int,
    page_size: int,
    active_search_term: str,
    empty_state: EmptyStateText | None = None,
) -> ListingView:
    """
    Decide what the list shows.

    The spinner only appears while nothing is known yet; once a total has been
    fetched, later page or search changes keep the previous rows on screen.
    """
    empty_state = empty_state or EmptyStateText()
    common = {
        "total_count": result.total_count,
        "page": page,
        "page_size": page_size,
        "page_count": calculate_page_count(result.total_count, page_size),
        "show_pagination": result.total_count > page_size,
        "show_clear_search": bool(active_search_term),
        "is_refreshing": result.is_validating,
    }

    if result.status == QueryStatus.LOADING and not result.total_count:
        return ListingView(kind=ListingKind.LOADING, **common)

    if result.status == QueryStatus.ERROR:
        message = result.error.message if result.error else None
        return ListingView(
            kind=ListingKind.ERROR,
            rows=list(result.rows),
            title=DEFAULT_ERROR_MESSAGE,
            message=message,
            **common,
        )

    if not result.rows:
        if active_search_term:
            title, message = NO_RESULTS_TITLE, NO_RESULTS_DESCRIPTION
        else:
            title, message = empty_state.title, empty_state.description
        return ListingView(kind=ListingKind.EMPTY, title=title, message=message, **common)

    return ListingView(kind=ListingKind.ROWS, rows=list(result.rows), **common)


def listing_view_for(
    query: CollectionQuery, empty_state: EmptyStateText | None = None
) -> ListingView:
    """:func:`build_listing_view` for a live query."""
    return build_listing_view(
        query.result,
        page=query.page,
        page_size=query.page_size,
        active_search_term=query.active_search_term,
        empty_state=empty_state,
    )
