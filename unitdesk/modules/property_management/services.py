"""Property management business logic services.

Mutations issued from a list screen's modals. A successful write drops the
screen's cached pages and brings the list back in line with the backend.
"""

import logging
from typing import Any

from ...backends.base import CollectionBackend, Row
from ...core.exceptions import (
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    UnitDeskException,
    ValidationError,
)
from ...core.utils import sanitize_string
from ...query import CollectionQuery
from .collections import LOOKUP_NAME_COLUMNS

logger = logging.getLogger(__name__)


class ListMutations:
    """Create, update and delete rows of the collection a query lists.

    Attributes:
        query: The list the mutations refresh
        backend: Where writes go; defaults to the query's backend
    """

    def __init__(self, query: CollectionQuery, backend: CollectionBackend | None = None):
        self.query = query
        self.backend = backend or query.backend

    @property
    def table(self) -> str:
        return self.query.collection.name

    def _invalidate(self) -> None:
        dropped = self.query.cache.invalidate(self.table)
        logger.debug(
            "Invalidated cached pages",
            extra={"collection": self.table, "entries": dropped},
        )

    async def create(self, values: Row | list[Row]) -> list[Row]:
        """Insert one or more rows and show them.

        A list on a later page or under a search goes back to page 1 with the
        search cleared, where the newest rows appear.

        Raises:
            BackendError: If the backend rejects the insert
        """
        try:
            rows = await self.backend.insert(self.table, values)
        except UnitDeskException as e:
            logger.error(
                "Create failed",
                extra={"collection": self.table, "error": e.message},
            )
            raise

        logger.info(
            "Rows created", extra={"collection": self.table, "count": len(rows)}
        )
        self._invalidate()
        if self.query.page != 1 or self.query.active_search_term:
            await self.query.clear_search()
        else:
            await self.query.revalidate()
        return rows

    async def update(self, row_id: Any, values: Row) -> Row:
        """Update one row by id.

        Raises:
            ResourceNotFoundError: If no row has that id
            BackendError: If the backend rejects the update
        """
        try:
            rows = await self.backend.update(self.table, {"id": row_id}, values)
        except UnitDeskException as e:
            logger.error(
                "Update failed",
                extra={"collection": self.table, "id": row_id, "error": e.message},
            )
            raise
        if not rows:
            raise ResourceNotFoundError(self.table, row_id)

        logger.info("Row updated", extra={"collection": self.table, "id": row_id})
        self._invalidate()
        await self.query.revalidate()
        return rows[0]

    async def delete(self, row_id: Any) -> Row | None:
        """Delete one row by id.

        Deleting the only row of a page past the first steps back one page.

        Raises:
            BackendError: If the backend rejects the delete
        """
        was_last_on_page = len(self.query.rows) == 1
        try:
            rows = await self.backend.delete(self.table, {"id": row_id})
        except UnitDeskException as e:
            logger.error(
                "Delete failed",
                extra={"collection": self.table, "id": row_id, "error": e.message},
            )
            raise

        logger.info("Row deleted", extra={"collection": self.table, "id": row_id})
        self._invalidate()
        if was_last_on_page and self.query.page > 1:
            await self.query.set_page(self.query.page - 1)
        else:
            await self.query.revalidate()
        return rows[0] if rows else None


class LookupMutations(ListMutations):
    """Mutations for a lookup table whose rows carry a unique display name."""

    def __init__(self, query: CollectionQuery, backend: CollectionBackend | None = None):
        super().__init__(query, backend)
        try:
            self.name_column = LOOKUP_NAME_COLUMNS[self.table]
        except KeyError:
            raise ValueError(f"{self.table} is not a lookup table") from None

    async def _checked_name(self, name: str | None, exclude_id: Any = None) -> str:
        clean = sanitize_string(name or "")
        if not clean:
            raise ValidationError(
                "Name cannot be empty", field=self.name_column, value=name
            )
        duplicates = await self.backend.find_matching(
            self.table, self.name_column, clean, exclude_id=exclude_id
        )
        if duplicates:
            raise ResourceAlreadyExistsError(self.table, clean)
        return clean

    async def create_named(self, name: str, **values: Any) -> Row:
        """Add a lookup entry.

        Raises:
            ValidationError: If the trimmed name is empty
            ResourceAlreadyExistsError: If the name exists in any letter case
        """
        clean = await self._checked_name(name)
        rows = await self.create({**values, self.name_column: clean})
        return rows[0]

    async def rename(self, row_id: Any, name: str) -> Row:
        """Rename a lookup entry; its current name does not count as a duplicate.

        Raises:
            ValidationError: If the trimmed name is empty
            ResourceAlreadyExistsError: If another entry has the name
            ResourceNotFoundError: If no entry has that id
        """
        clean = await self._checked_name(name, exclude_id=row_id)
        return await self.update(row_id, {self.name_column: clean})
