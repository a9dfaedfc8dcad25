"""PostgreSQL implementation of TableStore."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Table, delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from institute.db.tables import TABLES
from institute.repos.table_store import (
    PRIMARY_KEYS,
    DuplicateRowError,
    Row,
    StoreError,
)


class PgTableStore:
    """Satisfies the TableStore Protocol using PostgreSQL via SQLAlchemy.

    Each call runs in its own short transaction; the store holds the
    session factory rather than a request-scoped session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _table(table: str) -> Table:
        try:
            return TABLES[table].__table__  # type: ignore[return-value]
        except KeyError:
            raise StoreError(f"unknown table {table!r}") from None

    async def select(
        self,
        table: str,
        match: Row | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        t = self._table(table)
        stmt = select(t)
        for col, value in (match or {}).items():
            stmt = stmt.where(t.c[col] == value)
        if order_by is not None:
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [_plain(r) for r in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError(f"select from {table} failed: {exc}") from exc

    async def insert(self, table: str, row: Row) -> Row:
        t = self._table(table)
        stmt = t.insert().values(**row).returning(*t.c)
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return _plain(result.mappings().one())
        except IntegrityError as exc:
            raise DuplicateRowError(f"{table}: duplicate key") from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"insert into {table} failed: {exc}") from exc

    async def update(self, table: str, values: Row, match: Row) -> list[Row]:
        t = self._table(table)
        stmt = update(t).values(**values).returning(*t.c)
        for col, value in match.items():
            stmt = stmt.where(t.c[col] == value)
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return [_plain(r) for r in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError(f"update of {table} failed: {exc}") from exc

    async def upsert(self, table: str, row: Row) -> Row:
        t = self._table(table)
        keys = PRIMARY_KEYS[table]
        stmt = pg_insert(t).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(keys),
            set_={col: stmt.excluded[col] for col in row if col not in keys},
        ).returning(*t.c)
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return _plain(result.mappings().one())
        except SQLAlchemyError as exc:
            raise StoreError(f"upsert into {table} failed: {exc}") from exc

    async def delete(self, table: str, match: Row) -> int:
        t = self._table(table)
        stmt = delete(t)
        for col, value in match.items():
            stmt = stmt.where(t.c[col] == value)
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise StoreError(f"delete from {table} failed: {exc}") from exc


def _plain(mapping) -> Row:
    row = dict(mapping)
    for col, value in row.items():
        if isinstance(value, Decimal):
            row[col] = float(value)
    return row
