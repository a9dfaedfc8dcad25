"""Row-oriented table store.

Every persistent record (profiles, courses, enrollments, site settings,
videos) goes through this interface as a plain dict whose keys are the
column names.  Domain repos convert rows to dataclasses and back.

Three implementations satisfy the Protocol:

  InMemoryTableStore     tests and local dev
  PgTableStore           self-hosted PostgreSQL (pg_table_store.py)
  SupabaseTableStore     hosted backend (supabase_table_store.py)

All failures surface as StoreError so callers never depend on a
particular driver's exception types.
"""

from __future__ import annotations

import copy
from typing import Any, Protocol, runtime_checkable

Row = dict[str, Any]

PRIMARY_KEYS: dict[str, tuple[str, ...]] = {
    "profiles": ("id",),
    "courses": ("id",),
    "enrollments": ("user_id", "course_id"),
    "site_settings": ("key",),
    "videos": ("id",),
}


class StoreError(Exception):
    """The table store rejected or failed an operation."""


class DuplicateRowError(StoreError):
    """An insert collided with an existing primary key."""


@runtime_checkable
class TableStore(Protocol):
    async def select(
        self,
        table: str,
        match: Row | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]: ...

    async def insert(self, table: str, row: Row) -> Row: ...

    async def update(self, table: str, values: Row, match: Row) -> list[Row]:
        """Apply *values* to every row matching *match*; return updated rows."""
        ...

    async def upsert(self, table: str, row: Row) -> Row: ...

    async def delete(self, table: str, match: Row) -> int:
        """Delete matching rows and return how many were removed."""
        ...


def _key_of(table: str, row: Row) -> tuple:
    try:
        return tuple(row[col] for col in PRIMARY_KEYS[table])
    except KeyError as exc:
        raise StoreError(f"{table}: missing key column {exc.args[0]!r}") from None


def _matches(row: Row, match: Row | None) -> bool:
    if not match:
        return True
    return all(row.get(col) == value for col, value in match.items())


class InMemoryTableStore:
    """Dict-of-dicts store keyed by primary key, insertion ordered.

    Rows are deep-copied on the way in and out so callers can never
    mutate stored state through a returned reference.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[tuple, Row]] = {t: {} for t in PRIMARY_KEYS}

    def _table(self, table: str) -> dict[tuple, Row]:
        if table not in self._tables:
            raise StoreError(f"unknown table {table!r}")
        return self._tables[table]

    async def select(
        self,
        table: str,
        match: Row | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        rows = [
            copy.deepcopy(r) for r in self._table(table).values() if _matches(r, match)
        ]
        if order_by is not None:
            # ties keep insertion order, newest first when descending
            if descending:
                rows.reverse()
            rows.sort(key=lambda r: r.get(order_by) or 0, reverse=descending)
        return rows

    async def insert(self, table: str, row: Row) -> Row:
        rows = self._table(table)
        key = _key_of(table, row)
        if key in rows:
            raise DuplicateRowError(f"{table}: duplicate key {key!r}")
        rows[key] = copy.deepcopy(row)
        return copy.deepcopy(row)

    async def update(self, table: str, values: Row, match: Row) -> list[Row]:
        rows = self._table(table)
        updated: list[Row] = []
        for key, row in rows.items():
            if _matches(row, match):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        return updated

    async def upsert(self, table: str, row: Row) -> Row:
        rows = self._table(table)
        key = _key_of(table, row)
        merged = {**rows.get(key, {}), **copy.deepcopy(row)}
        rows[key] = merged
        return copy.deepcopy(merged)

    async def delete(self, table: str, match: Row) -> int:
        rows = self._table(table)
        doomed = [key for key, row in rows.items() if _matches(row, match)]
        for key in doomed:
            del rows[key]
        return len(doomed)
