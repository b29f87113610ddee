"""Schemas for collection queries."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..core.exceptions import UnitDeskException
from ..core.projection import Projection, parse_projection


class CollectionRef(BaseModel):
    """Which collection a list shows and how it is projected and searched.

    Immutable for the lifetime of the query that uses it.
    """

    name: str = Field(..., min_length=1, description="Backend table identifier")
    projection: str = Field(default="*", description="Field list in select grammar")
    search_field: str | None = Field(
        default=None, description="Column matched by the search box"
    )
    order_column: str = Field(default="created_at", min_length=1)

    class Config:
        frozen = True

    @field_validator("projection")
    @classmethod
    def _check_projection(cls, value: str) -> str:
        parse_projection(value)
        return value

    @property
    def parsed_projection(self) -> Projection:
        return parse_projection(self.projection)


class QueryKey(BaseModel):
    """Full parameter tuple identifying one page of one filtered collection."""

    collection: str
    projection: str
    search_field: str | None
    order_column: str
    page: int
    page_size: int
    search_term: str

    class Config:
        frozen = True

    @classmethod
    def build(
        cls, ref: CollectionRef, page: int, page_size: int, search_term: str
    ) -> "QueryKey":
        return cls(
            collection=ref.name,
            projection=ref.parsed_projection.to_select(),
            search_field=ref.search_field,
            order_column=ref.order_column,
            page=page,
            page_size=page_size,
            # a term without a search field never filters
            search_term=search_term if ref.search_field else "",
        )


class QueryStatus(str, Enum):
    """Outcome of the most recent fetch for the current parameters."""

    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class QueryResult(BaseModel):
    """Snapshot of what a list currently shows."""

    rows: list[Any] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    status: QueryStatus = QueryStatus.LOADING
    error: UnitDeskException | None = None
    is_validating: bool = False
    # Parameters the rows were fetched with; None until the first success
    key: QueryKey | None = None

    class Config:
        frozen = True
        arbitrary_types_allowed = True

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_empty(self) -> bool:
        return self.status == QueryStatus.SUCCESS and not self.rows
