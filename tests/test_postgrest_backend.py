"""Tests for the REST collection backend through httpx.MockTransport."""

import json

import httpx
import pytest

from conftest import json_response
from unitdesk.backends.base import PageRequest
from unitdesk.backends.postgrest import (
    eq_filter,
    ilike_filter,
    parse_content_range,
)
from unitdesk.core.exceptions import BackendQueryError, BackendTransportError
from unitdesk.core.projection import parse_projection
from unitdesk.modules.property_management.collections import UNITS
from unitdesk.query import CollectionQuery, QueryStatus


def page_request(table: str = "properties", projection: str = "*", **kwargs) -> PageRequest:
    return PageRequest(table=table, projection=parse_projection(projection), **kwargs)


class TestFilterEncoding:
    """Content-Range parsing and filter operands."""

    def test_content_range_with_rows(self):
        """``0-4/12`` reports twelve rows."""
        assert parse_content_range("0-4/12") == 12

    def test_content_range_without_rows(self):
        """``*/0`` reports an empty collection."""
        assert parse_content_range("*/0") == 0

    def test_content_range_unknown_total(self):
        """A ``*`` total or missing header is unknown."""
        assert parse_content_range("0-4/*") is None
        assert parse_content_range(None) is None
        assert parse_content_range("garbage") is None

    def test_ilike_wraps_term_in_wildcards(self):
        """Search terms match anywhere in the column."""
        assert ilike_filter("tower") == "ilike.*tower*"

    def test_ilike_escapes_like_wildcards(self):
        """Percent and underscore are matched literally."""
        assert ilike_filter("100%") == "ilike.*100\\%*"
        assert ilike_filter("lot_7") == "ilike.*lot\\_7*"

    def test_ilike_leaves_punctuation_unquoted(self):
        """Dots, commas and parentheses are sent as typed."""
        assert ilike_filter("St. Mary") == "ilike.*St. Mary*"
        assert ilike_filter("Smith, J (2)") == "ilike.*Smith, J (2)*"
        assert eq_filter("v1.2") == "eq.v1.2"

    def test_eq_filter_values(self):
        """Equality operands for ids, booleans and nulls."""
        assert eq_filter(7) == "eq.7"
        assert eq_filter(True) == "eq.true"
        assert eq_filter(None) == "is.null"


@pytest.mark.postgrest
@pytest.mark.asyncio
class TestFetchPage:
    """Paged reads against the REST endpoint."""

    async def test_request_shape(self, rest_backend_factory):
        """A page read carries select, filter, order, offset, limit and Prefer."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response(
                [{"id": 3, "property_name": "Tower 3"}],
                headers={"content-range": "5-5/6"},
            )

        backend = rest_backend_factory(handler)
        response = await backend.fetch_page(
            page_request(
                projection="id, property_name, properties (property_name)",
                search_field="property_name",
                search_term="tower",
                range_start=5,
                range_end=9,
            )
        )

        assert response.count == 6
        assert response.rows == [{"id": 3, "property_name": "Tower 3"}]

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/properties"
        params = request.url.params
        assert params["select"] == "id,property_name,properties(property_name)"
        assert params["property_name"] == "ilike.*tower*"
        assert params["order"] == "created_at.desc"
        assert params["offset"] == "5"
        assert params["limit"] == "5"
        assert request.headers["prefer"] == "count=exact"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer anon-key"

    async def test_no_search_sends_no_filter(self, rest_backend_factory):
        """Without a term only select, order and range are sent."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([], headers={"content-range": "*/0"})

        backend = rest_backend_factory(handler)
        response = await backend.fetch_page(
            page_request(search_field="property_name", range_start=0, range_end=4)
        )

        assert response.rows == []
        assert response.count == 0
        assert set(seen[0].url.params.keys()) == {"select", "order", "offset", "limit"}

    async def test_schema_profile_headers(self, rest_backend_factory):
        """A configured schema is addressed through profile headers."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([], headers={"content-range": "*/0"})

        backend = rest_backend_factory(handler, schema="admin")
        await backend.fetch_page(page_request())
        assert seen[0].headers["accept-profile"] == "admin"

    async def test_range_not_satisfiable_is_empty_page(self, rest_backend_factory):
        """416 past the end yields no rows and keeps the reported total."""

        def handler(request: httpx.Request) -> httpx.Response:
            return json_response(
                {"code": "PGRST103", "message": "Requested range not satisfiable"},
                status_code=416,
                headers={"content-range": "*/12"},
            )

        backend = rest_backend_factory(handler)
        response = await backend.fetch_page(page_request(range_start=50, range_end=54))
        assert response.rows == []
        assert response.count == 12

    async def test_backend_error_carries_details(self, rest_backend_factory):
        """A rejected request raises BackendQueryError with code and hint."""

        def handler(request: httpx.Request) -> httpx.Response:
            return json_response(
                {
                    "code": "42703",
                    "message": "column properties.nope does not exist",
                    "hint": None,
                    "details": None,
                },
                status_code=400,
            )

        backend = rest_backend_factory(handler)
        with pytest.raises(BackendQueryError) as exc_info:
            await backend.fetch_page(page_request(projection="id, nope"))

        error = exc_info.value
        assert error.message == "column properties.nope does not exist"
        assert error.details["code"] == "42703"
        assert error.details["status_code"] == 400
        assert error.operation == "fetch_page"
        assert error.table == "properties"

    async def test_unreachable_backend_is_transport_error(self, rest_backend_factory):
        """Connection failures raise BackendTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = rest_backend_factory(handler)
        with pytest.raises(BackendTransportError):
            await backend.fetch_page(page_request())

    async def test_timeout_is_transport_error(self, rest_backend_factory):
        """Timeouts raise BackendTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        backend = rest_backend_factory(handler)
        with pytest.raises(BackendTransportError):
            await backend.fetch_page(page_request())

    @pytest.mark.parametrize(
        "error",
        [httpx.DecodingError("bad gzip stream"), httpx.TooManyRedirects("loop")],
    )
    async def test_other_request_errors_are_transport_errors(
        self, rest_backend_factory, error
    ):
        """Decoding and redirect failures raise BackendTransportError too."""

        def handler(request: httpx.Request) -> httpx.Response:
            error.request = request
            raise error

        backend = rest_backend_factory(handler)
        with pytest.raises(BackendTransportError) as exc_info:
            await backend.fetch_page(page_request())
        assert exc_info.value.details["error_type"] == type(error).__name__

    @pytest.mark.parametrize("body", [[1, 2], ["a"], 42, "text"])
    async def test_rows_must_be_objects(self, rest_backend_factory, body):
        """Bodies that are not objects or lists of objects raise BackendQueryError."""
        backend = rest_backend_factory(
            lambda request: json_response(body, headers={"content-range": "0-1/2"})
        )
        with pytest.raises(BackendQueryError, match="not JSON objects"):
            await backend.fetch_page(page_request())

    async def test_search_with_punctuation_sent_verbatim(self, rest_backend_factory):
        """A term like ``St. Mary`` reaches the filter without quotes."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([], headers={"content-range": "*/0"})

        backend = rest_backend_factory(handler)
        await backend.fetch_page(
            page_request(search_field="property_name", search_term="St. Mary")
        )
        assert seen[0].url.params["property_name"] == "ilike.*St. Mary*"


@pytest.mark.postgrest
@pytest.mark.asyncio
class TestWrites:
    """Inserts, updates, deletes and duplicate checks."""

    async def test_insert_asks_for_representation(self, rest_backend_factory):
        """Inserts POST the values and return the created rows."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([{"id": 9, "unit_type": "Loft"}], status_code=201)

        backend = rest_backend_factory(handler)
        rows = await backend.insert("unit_types", {"unit_type": "Loft"})

        assert rows == [{"id": 9, "unit_type": "Loft"}]
        assert seen[0].method == "POST"
        assert seen[0].headers["prefer"] == "return=representation"
        assert json.loads(seen[0].content) == {"unit_type": "Loft"}

    async def test_update_filters_by_match(self, rest_backend_factory):
        """Updates PATCH the rows matching every given column."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([{"id": 4, "unit_type": "Duplex"}])

        backend = rest_backend_factory(handler)
        rows = await backend.update("unit_types", {"id": 4}, {"unit_type": "Duplex"})

        assert rows[0]["unit_type"] == "Duplex"
        assert seen[0].method == "PATCH"
        assert seen[0].url.params["id"] == "eq.4"

    async def test_delete_filters_by_match(self, rest_backend_factory):
        """Deletes send DELETE with an equality filter."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([{"id": 4}])

        backend = rest_backend_factory(handler)
        rows = await backend.delete("properties", {"id": 4})

        assert rows == [{"id": 4}]
        assert seen[0].method == "DELETE"
        assert seen[0].url.params["id"] == "eq.4"

    async def test_find_matching_is_exact_ilike(self, rest_backend_factory):
        """Duplicate checks use ilike without wildcards and exclude an id."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([])

        backend = rest_backend_factory(handler)
        rows = await backend.find_matching(
            "leasing_types", "leasing_type", "Long Term", exclude_id=3
        )

        assert rows == []
        params = seen[0].url.params
        assert params["leasing_type"] == "ilike.Long Term"
        assert params["id"] == "neq.3"
        assert params["select"] == "id,leasing_type"

    async def test_find_matching_name_with_punctuation(self, rest_backend_factory):
        """Names with dots or commas are compared as typed."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return json_response([{"id": 2, "unit_type": "Bldg. A, North"}])

        backend = rest_backend_factory(handler)
        rows = await backend.find_matching("unit_types", "unit_type", "Bldg. A, North")

        assert rows == [{"id": 2, "unit_type": "Bldg. A, North"}]
        assert seen[0].url.params["unit_type"] == "ilike.Bldg. A, North"

    async def test_unfiltered_delete_rejected(self, rest_backend_factory):
        """Deleting without a match is refused before any request."""
        backend = rest_backend_factory(lambda request: json_response([]))
        with pytest.raises(ValueError):
            await backend.delete("properties", {})


@pytest.mark.postgrest
@pytest.mark.asyncio
class TestQueryOverRest:
    """A list screen driven through the REST backend."""

    async def test_units_screen_over_rest(self, rest_backend_factory):
        """The units screen pages ten at a time and reports errors."""
        state = {"fail": False}

        def handler(request: httpx.Request) -> httpx.Response:
            if state["fail"]:
                raise httpx.ConnectError("offline", request=request)
            offset = int(request.url.params["offset"])
            rows = [{"id": i, "name": f"Unit {i}"} for i in range(offset, min(offset + 10, 23))]
            end = offset + len(rows) - 1
            return json_response(rows, headers={"content-range": f"{offset}-{end}/23"})

        backend = rest_backend_factory(handler)
        query = CollectionQuery(backend, UNITS.collection, UNITS.page_size)

        await query.start()
        assert query.total_count == 23
        assert query.page_count == 3
        assert len(query.rows) == 10

        await query.set_page(3)
        assert len(query.rows) == 3

        state["fail"] = True
        await query.revalidate()
        assert query.status == QueryStatus.ERROR
        assert isinstance(query.error, BackendTransportError)
        assert len(query.rows) == 3
        query.close()

    async def test_decoding_failure_ends_loading(self, rest_backend_factory):
        """A body that cannot be decoded leaves the list in the error state."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.DecodingError("bad gzip stream", request=request)

        backend = rest_backend_factory(handler)
        query = CollectionQuery(backend, UNITS.collection, UNITS.page_size)

        await query.start()
        assert query.status == QueryStatus.ERROR
        assert isinstance(query.error, BackendTransportError)
        assert not query.is_validating
        query.close()
