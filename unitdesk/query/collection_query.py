"""
Paginated, searchable, revalidating view over one remote collection.

Every list screen drives one :class:`CollectionQuery`. The screen changes the
page or the search term; the query refetches, keeps showing the previous rows
while the new page loads, and ignores responses for parameters the screen has
already moved away from.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..backends.base import CollectionBackend, PageRequest, PageResponse
from ..core.exceptions import BackendError, RowValidationError, UnitDeskException
from ..core.logging import correlation_scope
from ..core.pagination import (
    MAX_PAGE_SIZE,
    PaginatedResults,
    calculate_page_count,
    calculate_range,
    validate_page,
    validate_pagination_params,
)
from ..core.utils import normalize_search_term
from .cache import QueryCache
from .schemas import CollectionRef, QueryKey, QueryResult, QueryStatus

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")

Listener = Callable[[QueryResult], None]


class CollectionQuery(Generic[RowT]):
    """
    List state for one collection: page, search term, rows and total.

    Mutators update state immediately and schedule the refetch on the running
    event loop; they return the scheduled task so callers can await it. The
    task never raises backend errors: they are captured in :attr:`result`.

    Attributes:
        collection: Collection reference (fixed)
        page_size: Rows per page (fixed)
    """

    def __init__(
        self,
        backend: CollectionBackend,
        collection: CollectionRef,
        page_size: int = 5,
        *,
        cache: QueryCache | None = None,
        row_model: type[BaseModel] | None = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        validate_pagination_params(1, page_size, max_page_size)
        self.backend = backend
        self.collection = collection
        self.page_size = page_size
        self.cache = cache if cache is not None else QueryCache()
        self.row_model = row_model

        self._page = 1
        self._pending_search_term = ""
        self._active_search_term = ""
        self._result = QueryResult()

        self._generation = 0
        self._current: tuple[QueryKey, int] | None = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []
        self._started = False
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        backend: CollectionBackend,
        collection: CollectionRef,
        settings,
        page_size: int | None = None,
        **kwargs,
    ) -> "CollectionQuery":
        """Query using the configured page size, ordering and cache bound.

        The configured order column only applies to collections that do not
        name their own.
        """
        kwargs.setdefault("max_page_size", settings.max_page_size)
        if "cache" not in kwargs:
            kwargs["cache"] = QueryCache(settings.query_cache_max_entries)
        if "order_column" not in collection.model_fields_set:
            collection = collection.model_copy(
                update={"order_column": settings.order_column}
            )
        return cls(
            backend,
            collection,
            page_size or settings.default_page_size,
            **kwargs,
        )

    # ----- State accessors -----

    @property
    def page(self) -> int:
        return self._page

    @property
    def search_term(self) -> str:
        """Uncommitted search box text."""
        return self._pending_search_term

    @property
    def active_search_term(self) -> str:
        """Search term applied to fetches."""
        return self._active_search_term

    @property
    def key(self) -> QueryKey:
        return QueryKey.build(
            self.collection, self._page, self.page_size, self._active_search_term
        )

    @property
    def result(self) -> QueryResult:
        return self._result

    @property
    def rows(self) -> list[RowT]:
        return self._result.rows

    @property
    def total_count(self) -> int:
        return self._result.total_count

    @property
    def status(self) -> QueryStatus:
        return self._result.status

    @property
    def error(self) -> UnitDeskException | None:
        return self._result.error

    @property
    def is_loading(self) -> bool:
        return self._result.is_loading

    @property
    def is_validating(self) -> bool:
        return self._result.is_validating

    @property
    def page_count(self) -> int:
        return calculate_page_count(self._result.total_count, self.page_size)

    @property
    def has_next(self) -> bool:
        return self._page < self.page_count

    @property
    def has_previous(self) -> bool:
        return self._page > 1

    @property
    def closed(self) -> bool:
        return self._closed

    def to_paginated_results(self) -> PaginatedResults:
        return PaginatedResults.create(
            items=list(self._result.rows),
            total=self._result.total_count,
            page=self._page,
            page_size=self.page_size,
        )

    # ----- Operations -----

    def start(self) -> asyncio.Task:
        """Initial fetch. Calling it again behaves like :meth:`revalidate`."""
        if self._started:
            return self.revalidate()
        self._started = True
        return self._schedule(force=False)

    def set_page(self, page: int) -> asyncio.Task:
        """
        Show ``page`` (1-based).

        Pages past the end are not an error; they simply come back empty.

        Raises:
            ValueError: If page is not an integer >= 1
        """
        self._ensure_open()
        validate_page(page)
        self._page = page
        return self._schedule(force=False)

    def set_pending_search_term(self, text: str) -> None:
        """Update the search box text without fetching."""
        self._pending_search_term = text or ""

    def submit_search(self) -> asyncio.Task:
        """Apply the search box text, go back to page 1 and refetch."""
        self._ensure_open()
        term = normalize_search_term(self._pending_search_term)
        unchanged = term == self._active_search_term and self._page == 1
        self._active_search_term = term
        self._page = 1
        return self._schedule(force=unchanged)

    def clear_search(self) -> asyncio.Task:
        """Empty both search terms, go back to page 1 and refetch."""
        self._ensure_open()
        unchanged = self._active_search_term == "" and self._page == 1
        self._pending_search_term = ""
        self._active_search_term = ""
        self._page = 1
        return self._schedule(force=unchanged)

    def revalidate(self) -> asyncio.Task:
        """Refetch the current page under the current search term."""
        self._started = True
        return self._schedule(force=True)

    async def wait(self) -> None:
        """Wait until every scheduled fetch has finished."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.wait(pending)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new result; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Stop fetching; pending responses are dropped without touching state."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self._listeners.clear()
        logger.debug("Query closed", extra={"collection": self.collection.name})

    async def __aenter__(self) -> "CollectionQuery[RowT]":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # ----- Internals -----

    def _set_result(self, **changes: Any) -> None:
        self._result = self._result.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._result)

    def _is_current(self, key: QueryKey, generation: int) -> bool:
        return (
            not self._closed
            and key == self.key
            and self._current == (key, generation)
        )

    def _convert(self, rows: list[dict[str, Any]]) -> list[Any]:
        if self.row_model is None:
            return list(rows)
        try:
            return [self.row_model.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise RowValidationError(
                self.collection.name, e.errors(include_url=False)
            ) from e

    def _request_for(self, key: QueryKey) -> PageRequest:
        range_start, range_end = calculate_range(key.page, key.page_size)
        return PageRequest(
            table=key.collection,
            projection=self.collection.parsed_projection,
            search_field=key.search_field,
            search_term=key.search_term,
            order_column=key.order_column,
            descending=True,
            range_start=range_start,
            range_end=range_end,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("CollectionQuery is closed")

    def _schedule(self, force: bool) -> asyncio.Task:
        self._ensure_open()
        loop = asyncio.get_running_loop()

        key = self.key
        self._generation += 1
        generation = self._generation
        self._current = (key, generation)

        cached = None if force else self.cache.get(key)
        if cached is not None:
            try:
                self._set_result(
                    rows=self._convert(cached.rows),
                    total_count=cached.count,
                    status=QueryStatus.SUCCESS,
                    error=None,
                    is_validating=True,
                    key=key,
                )
            except RowValidationError:
                cached = None
        if cached is None:
            if self._result.key == key:
                self._set_result(is_validating=True)
            else:
                # Previous rows stay visible until this key has data of its own
                self._set_result(
                    status=QueryStatus.LOADING, error=None, is_validating=True
                )

        task = loop.create_task(self._run(key, generation, force))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _load(self, key: QueryKey) -> PageResponse:
        return await self.backend.fetch_page(self._request_for(key))

    async def _run(self, key: QueryKey, generation: int, force: bool) -> None:
        with correlation_scope():
            extra = {
                "collection": key.collection,
                "page": key.page,
                "page_size": key.page_size,
                "search_term": key.search_term,
                "generation": generation,
            }
            logger.debug("Fetch started", extra=extra)
            started = time.perf_counter()
            try:
                response = await self.cache.fetch(
                    key, lambda: self._load(key), force=force
                )
                rows = self._convert(response.rows)
            except UnitDeskException as e:
                if not self._is_current(key, generation):
                    logger.debug("Discarded stale failure", extra=extra)
                    return
                logger.warning(
                    "Fetch failed",
                    extra={
                        **extra,
                        "error": e.message,
                        "error_type": type(e).__name__,
                    },
                )
                self._set_result(status=QueryStatus.ERROR, error=e, is_validating=False)
                return
            except Exception as e:
                if not self._is_current(key, generation):
                    logger.debug("Discarded stale failure", extra=extra)
                    return
                logger.exception("Fetch failed unexpectedly", extra=extra)
                error = BackendError(
                    f"Unexpected backend failure: {e}",
                    operation="fetch_page",
                    table=key.collection,
                    details={"error_type": type(e).__name__},
                )
                self._set_result(status=QueryStatus.ERROR, error=error, is_validating=False)
                return

            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            if not self._is_current(key, generation):
                logger.debug(
                    "Discarded stale response",
                    extra={**extra, "duration_ms": duration_ms},
                )
                return

            self._set_result(
                rows=rows,
                total_count=response.count,
                status=QueryStatus.SUCCESS,
                error=None,
                is_validating=False,
                key=key,
            )
            logger.debug(
                "Fetch completed",
                extra={
                    **extra,
                    "rows": len(rows),
                    "total": response.count,
                    "duration_ms": duration_ms,
                },
            )
