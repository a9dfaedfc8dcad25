from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

CourseLevel = Literal["Beginner", "Intermediate", "Advanced"]


@dataclass(frozen=True, slots=True)
class Course:
    """A training program.

    ``image_path`` and ``signature_path`` are the durable storage keys.
    ``image`` and ``signature_image`` are display URLs: either a permanent
    external URL or a signed URL that expires, regenerated on every read.
    """

    id: str
    title: str
    description: str = ""  # rich text (HTML)
    outline: str | None = None  # rich text (HTML)
    instructor: str = ""
    instructor_bio: str | None = None  # rich text (HTML)
    duration: str = ""
    level: CourseLevel = "Beginner"
    price: float = 0
    tags: tuple[str, ...] = ()
    image: str | None = None
    image_path: str | None = None
    signature_image: str | None = None
    signature_path: str | None = None

    @staticmethod
    def new(*, title: str, **fields) -> Course:
        return Course(id=str(uuid4()), title=title, **fields)

    @property
    def image_reference(self) -> str | None:
        """What the courses row stores in its ``image`` column."""
        return self.image_path or self.image
