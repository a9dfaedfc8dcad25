from __future__ import annotations

from institute.models.video import VideoItem
from institute.repos.table_store import Row, TableStore

_TABLE = "videos"


class VideoRepo:
    def __init__(self, store: TableStore) -> None:
        self._store = store

    async def list(
        self, *, level: str | None = None, category: str | None = None
    ) -> list[VideoItem]:
        """Newest first, optionally filtered by level and/or category."""
        match: Row = {}
        if level:
            match["level"] = level
        if category:
            match["category"] = category
        rows = await self._store.select(
            _TABLE, match or None, order_by="created_at", descending=True
        )
        return [_row_to_video(r) for r in rows]

    async def add(self, video: VideoItem) -> VideoItem:
        row = await self._store.insert(
            _TABLE,
            {
                "id": video.id,
                "title": video.title,
                "duration": video.duration,
                "type": video.type,
                "level": video.level,
                "category": video.category,
                "url": video.path,
                "created_at": video.created_at,
            },
        )
        return _row_to_video(row)


def _row_to_video(row: Row) -> VideoItem:
    return VideoItem(
        id=str(row["id"]),
        title=row.get("title") or "",
        path=row.get("url") or "",
        duration=row.get("duration") or "Unknown",
        type=row.get("type") or "Lecture",
        level=row.get("level") or "Beginner",
        category=row.get("category") or "General",
        created_at=int(row.get("created_at") or 0),
    )
