"""
Collection backend for the hosted REST endpoint (PostgREST dialect).

Pages are read with ``GET /rest/v1/<table>`` using ``offset``/``limit`` and
``Prefer: count=exact``; the total comes back in ``Content-Range``.
"""

import logging
import re
from typing import Any

import httpx

from ..core.exceptions import BackendQueryError, BackendTransportError
from .base import CollectionBackend, PageRequest, PageResponse, Row

logger = logging.getLogger(__name__)

_CONTENT_RANGE = re.compile(r"^(?:(\d+)-(\d+)|\*)/(\d+|\*)$")

# Offset past the end of the result set
RANGE_NOT_SATISFIABLE = 416
RANGE_ERROR_CODE = "PGRST103"


def parse_content_range(header: str | None) -> int | None:
    """
    Total row count from a ``Content-Range`` header.

    Args:
        header: Header value such as ``0-4/12`` or ``*/0``

    Returns:
        The total, or None when the header is absent or reports ``*``
    """
    if not header:
        return None
    match = _CONTENT_RANGE.match(header.strip())
    if not match or match.group(3) == "*":
        return None
    return int(match.group(3))


def _escape_pattern(term: str) -> str:
    """Escape LIKE wildcards; PostgREST passes backslashes through to ILIKE."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _error_code(response: httpx.Response) -> str | None:
    if response.is_success or not response.content:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def ilike_filter(term: str) -> str:
    """``ilike`` operand matching ``term`` anywhere in the column.

    Simple operator values are read verbatim; only ``in``/``or`` lists quote.
    """
    return f"ilike.*{_escape_pattern(term)}*"


def eq_filter(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class PostgrestBackend(CollectionBackend):
    """Async client for the hosted backend's REST interface."""

    name = "postgrest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        schema: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            base_url: Project URL; ``/rest/v1`` is appended
            api_key: Project (anon or service) key
            schema: Exposed schema to address, default schema when None
            access_token: Signed-in user's JWT; the api key is used when None
            timeout: Seconds; None keeps httpx's default timeout
            client: Preconfigured client (tests inject a mock transport here)
        """
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        if schema:
            headers["Accept-Profile"] = schema
            headers["Content-Profile"] = schema

        self._owns_client = client is None
        if client is None:
            kwargs: dict[str, Any] = {"base_url": self.rest_url, "headers": headers}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = httpx.AsyncClient(**kwargs)
        else:
            client.base_url = self.rest_url
            client.headers.update(headers)
        self._client = client

    @classmethod
    def from_settings(cls, settings) -> "PostgrestBackend":
        return cls(
            base_url=settings.backend_url,
            api_key=settings.backend_api_key,
            schema=settings.backend_schema,
            timeout=settings.backend_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        operation: str,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method, f"/{table}", params=params, headers=headers, json=json
            )
        except httpx.TimeoutException as e:
            raise BackendTransportError(
                f"Timed out talking to the backend: {e}",
                operation=operation,
                table=table,
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            raise BackendTransportError(
                f"Could not reach the backend: {e}",
                operation=operation,
                table=table,
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            raise BackendTransportError(
                f"Request to the backend failed: {e}",
                operation=operation,
                table=table,
                details={"error_type": type(e).__name__},
            ) from e

    def _raise_for_error(
        self, response: httpx.Response, operation: str, table: str
    ) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or response.reason_phrase or "Request failed"
        raise BackendQueryError(
            message,
            operation=operation,
            table=table,
            details={
                "status_code": response.status_code,
                "code": body.get("code"),
                "hint": body.get("hint"),
                "details": body.get("details"),
            },
        )

    def _rows(self, response: httpx.Response, operation: str, table: str) -> list[Row]:
        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise BackendQueryError(
                "Backend returned a non-JSON body",
                operation=operation,
                table=table,
                details={"status_code": response.status_code},
            ) from e
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise BackendQueryError(
                "Backend returned rows that are not JSON objects",
                operation=operation,
                table=table,
                details={"status_code": response.status_code},
            )
        return data

    async def fetch_page(self, request: PageRequest) -> PageResponse:
        params: list[tuple[str, str]] = [
            ("select", request.projection.to_select()),
        ]
        if request.applies_search:
            params.append((request.search_field, ilike_filter(request.search_term)))
        direction = "desc" if request.descending else "asc"
        params.append(("order", f"{request.order_column}.{direction}"))
        if request.limit is not None:
            params.append(("offset", str(request.range_start)))
            params.append(("limit", str(request.limit)))

        response = await self._request(
            "fetch_page",
            "GET",
            request.table,
            params=params,
            headers={"Prefer": "count=exact"},
        )

        if (
            response.status_code == RANGE_NOT_SATISFIABLE
            or _error_code(response) == RANGE_ERROR_CODE
        ):
            # Page past the end: empty slice, the total still stands
            total = parse_content_range(response.headers.get("content-range"))
            logger.debug(
                "Requested range past the end",
                extra={"table": request.table, "total": total},
            )
            return PageResponse(rows=[], count=total or 0)

        self._raise_for_error(response, "fetch_page", request.table)
        rows = self._rows(response, "fetch_page", request.table)
        total = parse_content_range(response.headers.get("content-range"))
        if total is None:
            total = len(rows)
        return PageResponse(rows=rows, count=total)

    async def insert(self, table: str, values: Row | list[Row]) -> list[Row]:
        response = await self._request(
            "insert",
            "POST",
            table,
            headers={"Prefer": "return=representation"},
            json=values,
        )
        self._raise_for_error(response, "insert", table)
        return self._rows(response, "insert", table)

    async def update(self, table: str, match: Row, values: Row) -> list[Row]:
        if not match:
            raise ValueError("update requires at least one match column")
        response = await self._request(
            "update",
            "PATCH",
            table,
            params=[(column, eq_filter(value)) for column, value in match.items()],
            headers={"Prefer": "return=representation"},
            json=values,
        )
        self._raise_for_error(response, "update", table)
        return self._rows(response, "update", table)

    async def delete(self, table: str, match: Row) -> list[Row]:
        if not match:
            raise ValueError("delete requires at least one match column")
        response = await self._request(
            "delete",
            "DELETE",
            table,
            params=[(column, eq_filter(value)) for column, value in match.items()],
            headers={"Prefer": "return=representation"},
        )
        self._raise_for_error(response, "delete", table)
        return self._rows(response, "delete", table)

    async def find_matching(
        self,
        table: str,
        column: str,
        value: str,
        exclude_id: Any | None = None,
    ) -> list[Row]:
        params = [
            ("select", f"id,{column}"),
            (column, "ilike." + _escape_pattern(value)),
        ]
        if exclude_id is not None:
            params.append(("id", f"neq.{exclude_id}"))
        response = await self._request("find_matching", "GET", table, params=params)
        self._raise_for_error(response, "find_matching", table)
        return self._rows(response, "find_matching", table)
