from __future__ import annotations

from institute.models.course import Course
from institute.repos.object_storage import is_external_url
from institute.repos.table_store import Row, TableStore

_TABLE = "courses"


class CourseRepo:
    """Courses as stored: references only, never resolved URLs."""

    def __init__(self, store: TableStore) -> None:
        self._store = store

    async def list_all(self) -> list[Course]:
        return [_row_to_course(r) for r in await self._store.select(_TABLE)]

    async def get(self, course_id: str) -> Course | None:
        rows = await self._store.select(_TABLE, {"id": course_id})
        return _row_to_course(rows[0]) if rows else None

    async def add(self, course: Course) -> Course:
        return _row_to_course(await self._store.insert(_TABLE, _course_to_row(course)))

    async def save(self, course: Course) -> Course:
        return _row_to_course(await self._store.upsert(_TABLE, _course_to_row(course)))

    async def delete(self, course_id: str) -> bool:
        return await self._store.delete(_TABLE, {"id": course_id}) > 0


def _course_to_row(c: Course) -> Row:
    return {
        "id": c.id,
        "title": c.title,
        "description": c.description,
        "outline": c.outline,
        "instructor": c.instructor,
        "instructor_bio": c.instructor_bio,
        "duration": c.duration,
        "level": c.level,
        "price": c.price,
        "tags": list(c.tags),
        "image": c.image_reference,
        "signature_image": c.signature_path,
    }


def _row_to_course(row: Row) -> Course:
    image = row.get("image") or None
    signature = row.get("signature_image") or None
    external_image = image is not None and is_external_url(image)
    return Course(
        id=str(row["id"]),
        title=row.get("title") or "",
        description=row.get("description") or "",
        outline=row.get("outline"),
        instructor=row.get("instructor") or "",
        instructor_bio=row.get("instructor_bio"),
        duration=row.get("duration") or "",
        level=row.get("level") or "Beginner",
        price=float(row.get("price") or 0),
        tags=tuple(row.get("tags") or ()),
        image=image if external_image else None,
        image_path=None if external_image else image,
        signature_path=signature,
    )
