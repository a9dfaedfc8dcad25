from __future__ import annotations

from institute.models.user import Profile
from institute.repos.table_store import Row, TableStore

_TABLE = "profiles"


class ProfileRepo:
    def __init__(self, store: TableStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> Profile | None:
        rows = await self._store.select(_TABLE, {"id": user_id})
        return _row_to_profile(rows[0]) if rows else None

    async def list_all(self) -> list[Profile]:
        return [_row_to_profile(r) for r in await self._store.select(_TABLE)]

    async def save(self, profile: Profile) -> Profile:
        row = await self._store.upsert(
            _TABLE,
            {
                "id": profile.id,
                "name": profile.name,
                "email": profile.email,
                "role": profile.role,
            },
        )
        return _row_to_profile(row)


def _row_to_profile(row: Row) -> Profile:
    return Profile(
        id=str(row["id"]),
        name=row.get("name") or "",
        email=row.get("email") or "",
        role="admin" if row.get("role") == "admin" else "student",
    )
