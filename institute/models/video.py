from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

VideoJobStatus = Literal["running", "succeeded", "failed", "cancelled", "timed_out"]


@dataclass(frozen=True, slots=True)
class VideoItem:
    """Entry of the admin-curated video library."""

    id: str
    title: str
    path: str  # storage key or external URL
    duration: str = "Unknown"
    type: str = "Lecture"  # Lecture|Tutorial|Workshop|...
    level: str = "Beginner"  # Beginner|Intermediate|Advanced|All Levels
    category: str = "General"
    created_at: int = 0
    url: str | None = None  # resolved on read

    @staticmethod
    def new(*, title: str, path: str, created_at: int, **fields) -> VideoItem:
        return VideoItem(
            id=str(uuid4()), title=title, path=path, created_at=created_at, **fields
        )


@dataclass(frozen=True, slots=True)
class VideoJob:
    """A generative video request being polled in the background."""

    id: str
    owner_id: str
    prompt: str
    status: VideoJobStatus = "running"
    attempts: int = 0
    video_uri: str | None = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status != "running"
