from __future__ import annotations

from institute.models.enrollment import Enrollment
from institute.repos.table_store import Row, TableStore

_TABLE = "enrollments"


class EnrollmentRepo:
    def __init__(self, store: TableStore) -> None:
        self._store = store

    async def get(self, user_id: str, course_id: str) -> Enrollment | None:
        rows = await self._store.select(
            _TABLE, {"user_id": user_id, "course_id": course_id}
        )
        return _row_to_enrollment(rows[0]) if rows else None

    async def list_for_user(self, user_id: str) -> list[Enrollment]:
        rows = await self._store.select(_TABLE, {"user_id": user_id})
        return [_row_to_enrollment(r) for r in rows]

    async def list_all(self) -> list[Enrollment]:
        return [_row_to_enrollment(r) for r in await self._store.select(_TABLE)]

    async def add(self, enrollment: Enrollment) -> None:
        """Insert; raises DuplicateRowError if the pair already exists."""
        await self._store.insert(_TABLE, _enrollment_to_row(enrollment))

    async def save(self, enrollment: Enrollment) -> None:
        await self._store.update(
            _TABLE,
            {"status": enrollment.status, "progress": enrollment.progress},
            {"user_id": enrollment.user_id, "course_id": enrollment.course_id},
        )

    async def delete_for_course(self, course_id: str) -> int:
        return await self._store.delete(_TABLE, {"course_id": course_id})


def _enrollment_to_row(e: Enrollment) -> Row:
    return {
        "user_id": e.user_id,
        "course_id": e.course_id,
        "status": e.status,
        "progress": e.progress,
    }


def _row_to_enrollment(row: Row) -> Enrollment:
    return Enrollment(
        user_id=str(row["user_id"]),
        course_id=str(row["course_id"]),
        status=row.get("status") or "registered",
        progress=int(row.get("progress") or 0),
    )
