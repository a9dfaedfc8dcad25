from __future__ import annotations

from typing import Any

from institute.repos.table_store import TableStore

_TABLE = "site_settings"


class SettingsRepo:
    """Key/value singletons in ``site_settings`` (JSON values)."""

    def __init__(self, store: TableStore) -> None:
        self._store = store

    async def get(self, key: str) -> dict[str, Any] | None:
        rows = await self._store.select(_TABLE, {"key": key})
        if not rows:
            return None
        value = rows[0].get("value")
        return value if isinstance(value, dict) else None

    async def put(self, key: str, value: dict[str, Any]) -> None:
        await self._store.upsert(_TABLE, {"key": key, "value": value})
