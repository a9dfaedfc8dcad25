"""Supabase (PostgREST) implementation of TableStore.

The supabase client is synchronous; every call is pushed onto a worker
thread with ``asyncio.to_thread`` so the event loop never blocks on
HTTP.
"""

from __future__ import annotations

import asyncio
import logging

import httpx
from supabase import Client, PostgrestAPIError

from institute.repos.table_store import DuplicateRowError, Row, StoreError

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"


class SupabaseTableStore:
    def __init__(self, client: Client) -> None:
        self._client = client

    async def _run(self, table: str, op: str, build) -> list[Row]:
        def _execute():
            return build(self._client.table(table)).execute()

        try:
            response = await asyncio.to_thread(_execute)
        except PostgrestAPIError as exc:
            logger.warning("%s on %s failed: %s", op, table, exc.message)
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateRowError(f"{table}: duplicate key") from exc
            raise StoreError(exc.message or f"{op} on {table} failed") from exc
        except httpx.HTTPError as exc:
            logger.warning("%s on %s failed: %s", op, table, exc)
            raise StoreError(f"{op} on {table} failed: {exc}") from exc
        return list(response.data or [])

    async def select(
        self,
        table: str,
        match: Row | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        def build(q):
            q = q.select("*")
            for col, value in (match or {}).items():
                q = q.eq(col, value)
            if order_by is not None:
                q = q.order(order_by, desc=descending)
            return q

        return await self._run(table, "select", build)

    async def insert(self, table: str, row: Row) -> Row:
        rows = await self._run(table, "insert", lambda q: q.insert(row))
        return rows[0] if rows else dict(row)

    async def update(self, table: str, values: Row, match: Row) -> list[Row]:
        def build(q):
            q = q.update(values)
            for col, value in match.items():
                q = q.eq(col, value)
            return q

        return await self._run(table, "update", build)

    async def upsert(self, table: str, row: Row) -> Row:
        rows = await self._run(table, "upsert", lambda q: q.upsert(row))
        return rows[0] if rows else dict(row)

    async def delete(self, table: str, match: Row) -> int:
        def build(q):
            q = q.delete()
            for col, value in match.items():
                q = q.eq(col, value)
            return q

        return len(await self._run(table, "delete", build))
