"""
Backend contract shared by every collection store.

The query layer only ever talks to :class:`CollectionBackend`; it does not know
whether rows come from the hosted REST endpoint or from a database reached
through SQLAlchemy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from ..core.projection import Projection

Row = dict[str, Any]


@dataclass(frozen=True)
class PageRequest:
    """One ``(table, projection, filter?, orderBy, rangeStart, rangeEnd)`` query."""

    table: str
    projection: Projection
    search_field: str | None = None
    search_term: str = ""
    order_column: str = "created_at"
    descending: bool = True
    # Inclusive, 0-based; None on both ends means every matching row
    range_start: int | None = None
    range_end: int | None = None

    def __post_init__(self):
        if (self.range_start is None) != (self.range_end is None):
            raise ValueError("range_start and range_end must be given together")
        if self.range_start is not None and (
            self.range_start < 0 or self.range_end < self.range_start
        ):
            raise ValueError(
                f"Invalid row range {self.range_start}-{self.range_end}"
            )

    @property
    def applies_search(self) -> bool:
        return bool(self.search_term and self.search_field)

    @property
    def limit(self) -> int | None:
        if self.range_start is None or self.range_end is None:
            return None
        return self.range_end - self.range_start + 1


class PageResponse(BaseModel):
    """Rows of one page plus the exact total under the same filter."""

    rows: list[Row] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)


class CollectionBackend(ABC):
    """Async access to named collections of a relational backend."""

    name: str = "backend"

    @abstractmethod
    async def fetch_page(self, request: PageRequest) -> PageResponse:
        """
        Fetch one page of rows and the exact total count.

        Raises:
            BackendQueryError: The backend rejected the query
            BackendTransportError: The backend could not be reached
        """

    @abstractmethod
    async def insert(self, table: str, values: Row | list[Row]) -> list[Row]:
        """Insert one or many rows and return them as stored."""

    @abstractmethod
    async def update(self, table: str, match: Row, values: Row) -> list[Row]:
        """Update rows whose columns equal ``match``; return the updated rows."""

    @abstractmethod
    async def delete(self, table: str, match: Row) -> list[Row]:
        """Delete rows whose columns equal ``match``; return the deleted rows."""

    @abstractmethod
    async def find_matching(
        self,
        table: str,
        column: str,
        value: str,
        exclude_id: Any | None = None,
    ) -> list[Row]:
        """Rows whose ``column`` equals ``value`` ignoring case."""

    async def aclose(self) -> None:
        """Release connections held by the backend."""

    async def __aenter__(self) -> "CollectionBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
