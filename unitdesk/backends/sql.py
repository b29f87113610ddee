"""
Collection backend over a relational database through SQLAlchemy asyncio.

Tables resolve to the declarative models registered on :data:`Base`; embedded
relations in a projection resolve through ORM relationships and are loaded
with ``selectinload``.
"""

import logging
from typing import Any

from sqlalchemy import Table, delete, func, insert, inspect, select, update
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapper, RelationshipProperty, selectinload

from ..core.exceptions import BackendError, BackendQueryError, BackendTransportError
from ..core.projection import Projection
from ..core.utils import escape_like
from ..database import Base, create_engine, create_session_factory
from ..modules.property_management import models  # noqa: F401  registers the tables
from .base import CollectionBackend, PageRequest, PageResponse, Row

logger = logging.getLogger(__name__)


def _classify(error: Exception, operation: str, table: str) -> BackendError:
    """Map a driver/ORM failure onto the backend error taxonomy."""
    transport = isinstance(
        error, (InterfaceError, DisconnectionError, PoolTimeoutError, OSError)
    ) or (isinstance(error, DBAPIError) and error.connection_invalidated)
    error_cls = BackendTransportError if transport else BackendQueryError
    message = str(getattr(error, "orig", None) or error)
    return error_cls(
        message,
        operation=operation,
        table=table,
        details={"error_type": type(error).__name__},
    )


class SqlAlchemyBackend(CollectionBackend):
    """Collection access against any database SQLAlchemy can reach asynchronously."""

    name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], base=Base):
        self._session_factory = session_factory
        self._base = base
        self._engine = None

    @classmethod
    def from_settings(cls, settings) -> "SqlAlchemyBackend":
        engine = create_engine(settings)
        backend = cls(create_session_factory(engine))
        backend._engine = engine
        return backend

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    # ----- Schema resolution -----

    def _mapper_for(self, table: str, operation: str) -> Mapper:
        for mapper in self._base.registry.mappers:
            if mapper.local_table is not None and mapper.local_table.name == table:
                return mapper
        raise BackendQueryError(
            f'relation "{table}" does not exist',
            operation=operation,
            table=table,
            details={"code": "42P01"},
        )

    def _column_key(self, mapper: Mapper, name: str, operation: str) -> str:
        column = mapper.local_table.c.get(name)
        if column is None:
            raise BackendQueryError(
                f"column {mapper.local_table.name}.{name} does not exist",
                operation=operation,
                table=mapper.local_table.name,
                details={"code": "42703"},
            )
        return mapper.get_property_by_column(column).key

    def _relationship(
        self, mapper: Mapper, name: str, operation: str
    ) -> RelationshipProperty:
        by_key = None
        for rel in mapper.relationships:
            if rel.mapper.local_table.name == name:
                return rel
            if rel.key == name:
                by_key = rel
        if by_key is not None:
            return by_key
        raise BackendQueryError(
            f"Could not find a relationship between "
            f"'{mapper.local_table.name}' and '{name}'",
            operation=operation,
            table=mapper.local_table.name,
            details={"code": "PGRST200"},
        )

    def _validate(self, mapper: Mapper, projection: Projection, operation: str) -> None:
        for column in projection.columns:
            self._column_key(mapper, column.name, operation)
        for embed in projection.embeds:
            rel = self._relationship(mapper, embed.relation, operation)
            self._validate(rel.mapper, embed.projection, operation)

    def _loader_options(self, mapper: Mapper, projection: Projection, parent=None):
        options = []
        for embed in projection.embeds:
            rel = self._relationship(mapper, embed.relation, "fetch_page")
            attribute = rel.class_attribute
            loader = (
                parent.selectinload(attribute) if parent else selectinload(attribute)
            )
            options.append(loader)
            options.extend(self._loader_options(rel.mapper, embed.projection, loader))
        return options

    def _serialize(self, obj: Any, projection: Projection) -> Row:
        mapper = inspect(type(obj))
        row: Row = {}
        if projection.selects_all:
            for column in mapper.local_table.c:
                key = mapper.get_property_by_column(column).key
                row[column.name] = getattr(obj, key)
        for column in projection.columns:
            key = self._column_key(mapper, column.name, "fetch_page")
            row[column.output_name] = getattr(obj, key)
        for embed in projection.embeds:
            rel = self._relationship(mapper, embed.relation, "fetch_page")
            value = getattr(obj, rel.key)
            if rel.uselist:
                row[embed.output_name] = [
                    self._serialize(item, embed.projection) for item in value
                ]
            elif value is None:
                row[embed.output_name] = None
            else:
                row[embed.output_name] = self._serialize(value, embed.projection)
        return row

    def _table(self, table: str, operation: str) -> Table:
        return self._mapper_for(table, operation).local_table

    def _match_clause(self, table: Table, match: Row, operation: str):
        if not match:
            raise ValueError(f"{operation} requires at least one match column")
        clauses = []
        for name, value in match.items():
            column = table.c.get(name)
            if column is None:
                raise BackendQueryError(
                    f"column {table.name}.{name} does not exist",
                    operation=operation,
                    table=table.name,
                    details={"code": "42703"},
                )
            clauses.append(column.is_(None) if value is None else column == value)
        return clauses

    # ----- Reads -----

    async def fetch_page(self, request: PageRequest) -> PageResponse:
        mapper = self._mapper_for(request.table, "fetch_page")
        model = mapper.class_
        self._validate(mapper, request.projection, "fetch_page")

        conditions = []
        if request.applies_search:
            search_key = self._column_key(mapper, request.search_field, "fetch_page")
            pattern = f"%{escape_like(request.search_term)}%"
            conditions.append(getattr(model, search_key).ilike(pattern, escape="\\"))

        order_key = self._column_key(mapper, request.order_column, "fetch_page")
        order_attr = getattr(model, order_key)
        # Primary key breaks ties so equal timestamps never shuffle between pages
        tie_breakers = [
            column.desc() if request.descending else column.asc()
            for column in mapper.primary_key
        ]

        stmt = (
            select(model)
            .where(*conditions)
            .options(*self._loader_options(mapper, request.projection))
            .order_by(
                order_attr.desc() if request.descending else order_attr.asc(),
                *tie_breakers,
            )
        )
        if request.limit is not None:
            stmt = stmt.offset(request.range_start).limit(request.limit)

        count_stmt = select(func.count()).select_from(model).where(*conditions)

        try:
            async with self._session_factory() as session:
                total = (await session.execute(count_stmt)).scalar_one()
                objects = (await session.execute(stmt)).scalars().all()
                rows = [self._serialize(obj, request.projection) for obj in objects]
        except (SQLAlchemyError, OSError) as e:
            raise _classify(e, "fetch_page", request.table) from e

        return PageResponse(rows=rows, count=total)

    async def find_matching(
        self,
        table: str,
        column: str,
        value: str,
        exclude_id: Any | None = None,
    ) -> list[Row]:
        db_table = self._table(table, "find_matching")
        target = db_table.c.get(column)
        if target is None:
            raise BackendQueryError(
                f"column {table}.{column} does not exist",
                operation="find_matching",
                table=table,
                details={"code": "42703"},
            )
        stmt = select(db_table).where(func.lower(target) == value.lower())
        if exclude_id is not None:
            stmt = stmt.where(db_table.c.id != exclude_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row._mapping) for row in result]
        except (SQLAlchemyError, OSError) as e:
            raise _classify(e, "find_matching", table) from e

    # ----- Writes -----

    async def _write(self, operation: str, table: str, statements) -> list[Row]:
        rows: list[Row] = []
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for stmt in statements:
                        result = await session.execute(stmt)
                        rows.extend(dict(row._mapping) for row in result)
        except (SQLAlchemyError, OSError) as e:
            raise _classify(e, operation, table) from e
        return rows

    async def insert(self, table: str, values: Row | list[Row]) -> list[Row]:
        db_table = self._table(table, "insert")
        records = values if isinstance(values, list) else [values]
        statements = [
            insert(db_table).values(**record).returning(*db_table.c)
            for record in records
        ]
        return await self._write("insert", table, statements)

    async def update(self, table: str, match: Row, values: Row) -> list[Row]:
        db_table = self._table(table, "update")
        stmt = (
            update(db_table)
            .where(*self._match_clause(db_table, match, "update"))
            .values(**values)
            .returning(*db_table.c)
        )
        return await self._write("update", table, [stmt])

    async def delete(self, table: str, match: Row) -> list[Row]:
        db_table = self._table(table, "delete")
        stmt = (
            delete(db_table)
            .where(*self._match_clause(db_table, match, "delete"))
            .returning(*db_table.c)
        )
        return await self._write("delete", table, [stmt])
