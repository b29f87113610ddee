"""Pytest configuration and fixtures for UnitDesk tests.

Provides an in-memory SQLite database with the property schema, an in-memory
backend whose fetches can be held or failed on demand, and a mock-transport
client for the REST backend.
"""

import asyncio
import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from unitdesk.backends.base import CollectionBackend, PageRequest, PageResponse, Row
from unitdesk.backends.postgrest import PostgrestBackend
from unitdesk.backends.sql import SqlAlchemyBackend
from unitdesk.database import create_session_factory, init_db

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
PROFILE_ID = "9f1c2b7e-0000-4000-8000-000000000001"


def created(minutes: int) -> datetime:
    """Timestamp ``minutes`` after a fixed origin; larger is newer."""
    return BASE_TIME + timedelta(minutes=minutes)


# ── In-memory backend ────────────────────────────────────────────


class MemoryBackend(CollectionBackend):
    """Collection backend over plain lists of dicts.

    ``holds`` maps ``(search_term, range_start)`` to an event the matching
    fetch waits on; ``fail_with`` makes every fetch raise until cleared.
    """

    name = "memory"

    def __init__(self, tables: dict[str, list[Row]] | None = None):
        self.tables: dict[str, list[Row]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.requests: list[PageRequest] = []
        self.holds: dict[tuple[str, int | None], asyncio.Event] = {}
        self.fail_with: Exception | None = None
        self._clock = 10_000

    def hold(self, search_term: str = "", range_start: int | None = 0) -> asyncio.Event:
        event = asyncio.Event()
        self.holds[(search_term, range_start)] = event
        return event

    def _matching(self, request: PageRequest) -> list[Row]:
        rows = self.tables.get(request.table, [])
        if request.applies_search:
            needle = request.search_term.lower()
            rows = [
                row
                for row in rows
                if needle in str(row.get(request.search_field) or "").lower()
            ]
        return sorted(
            rows,
            key=lambda row: (row.get(request.order_column), row.get("id")),
            reverse=request.descending,
        )

    async def fetch_page(self, request: PageRequest) -> PageResponse:
        self.requests.append(request)
        gate = self.holds.get((request.search_term, request.range_start))
        if gate is not None:
            await gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        rows = self._matching(request)
        page = rows
        if request.limit is not None:
            page = rows[request.range_start : request.range_end + 1]
        return PageResponse(rows=[dict(row) for row in page], count=len(rows))

    async def insert(self, table: str, values: Row | list[Row]) -> list[Row]:
        records = values if isinstance(values, list) else [values]
        stored = self.tables.setdefault(table, [])
        inserted = []
        for record in records:
            self._clock += 1
            row = {
                "id": max((r["id"] for r in stored), default=0) + 1,
                "created_at": self._clock,
                **record,
            }
            stored.append(row)
            inserted.append(dict(row))
        return inserted

    async def update(self, table: str, match: Row, values: Row) -> list[Row]:
        updated = []
        for row in self.tables.get(table, []):
            if all(row.get(k) == v for k, v in match.items()):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def delete(self, table: str, match: Row) -> list[Row]:
        rows = self.tables.get(table, [])
        doomed = [row for row in rows if all(row.get(k) == v for k, v in match.items())]
        self.tables[table] = [row for row in rows if row not in doomed]
        return doomed

    async def find_matching(
        self, table: str, column: str, value: str, exclude_id: Any | None = None
    ) -> list[Row]:
        return [
            dict(row)
            for row in self.tables.get(table, [])
            if str(row.get(column) or "").lower() == value.lower()
            and (exclude_id is None or row.get("id") != exclude_id)
        ]


def make_rows(count: int, name_prefix: str = "Item", column: str = "name") -> list[Row]:
    """``count`` rows with ids 1..count; id ``count`` is the newest."""
    return [
        {"id": i, column: f"{name_prefix} {i}", "created_at": i}
        for i in range(1, count + 1)
    ]


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Backend holding twelve ``items`` rows."""
    return MemoryBackend({"items": make_rows(12)})


# ── SQLite database ──────────────────────────────────────────────


@pytest_asyncio.fixture
async def sql_engine():
    """In-memory SQLite engine with the property schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_backend(sql_engine) -> SqlAlchemyBackend:
    return SqlAlchemyBackend(create_session_factory(sql_engine))


@pytest_asyncio.fixture
async def seeded_backend(sql_backend) -> SqlAlchemyBackend:
    """SQL backend with a profile, twelve properties, units, lookups and a facility.

    Property ``n`` is named ``Tower n`` for even n and ``Plaza n`` for odd n;
    property 12 is the newest.
    """
    await sql_backend.insert(
        "profiles",
        {"id": PROFILE_ID, "first_name": "Ana", "last_name": "Reyes"},
    )
    await sql_backend.insert(
        "properties",
        [
            {
                "id": n,
                "property_name": f"{'Tower' if n % 2 == 0 else 'Plaza'} {n}",
                "number_of_units": 4,
                "total_sqm": 400.0,
                "created_by": PROFILE_ID,
                "created_at": created(n),
            }
            for n in range(1, 13)
        ],
    )
    await sql_backend.insert(
        "unit_types",
        [
            {
                "id": 1,
                "unit_type": "Studio",
                "user_id": PROFILE_ID,
                "created_at": created(1),
            },
            {"id": 2, "unit_type": "Loft", "created_at": created(2)},
        ],
    )
    await sql_backend.insert(
        "facilities", {"id": 1, "name": "Pool", "created_at": created(1)}
    )
    await sql_backend.insert(
        "units",
        [
            {
                "id": 1,
                "name": "Tower 12 Unit 1",
                "sqm": 100.0,
                "property_id": 12,
                "unit_type_id": 1,
                "facility_id": 1,
                "created_at": created(1),
            },
            {
                "id": 2,
                "name": "Tower 12 Unit 2",
                "sqm": 150.5,
                "property_id": 12,
                "facility_id": 1,
                "created_at": created(2),
            },
        ],
    )
    return sql_backend


# ── REST backend ─────────────────────────────────────────────────


def json_response(
    data: Any, status_code: int = 200, headers: dict[str, str] | None = None
) -> httpx.Response:
    """Build a mock httpx.Response with JSON body."""
    all_headers = {"content-type": "application/json"}
    if headers:
        all_headers.update(headers)
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(data).encode(),
        headers=all_headers,
    )


@pytest_asyncio.fixture
async def rest_backend_factory():
    """Build a PostgrestBackend whose client answers through ``handler``."""
    clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        backend = PostgrestBackend(
            "https://demo.example.co", "anon-key", client=client, **kwargs
        )
        clients.append(client)
        return backend

    yield factory
    for client in clients:
        await client.aclose()
