from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from institute.models.enrollment import COMPLETED, PENDING, Enrollment
from institute.models.principal import Role


@dataclass(frozen=True, slots=True)
class Profile:
    """Row of the ``profiles`` table."""

    id: str
    name: str
    email: str
    role: Role = "student"


@dataclass(frozen=True, slots=True)
class User:
    """A profile joined with its enrollments.

    The three course-id tuples are projections of enrollment status, so
    pending and completed are always subsets of registered and never
    overlap.
    """

    id: str
    name: str
    email: str
    role: Role
    registered_course_ids: tuple[str, ...] = ()
    pending_course_ids: tuple[str, ...] = ()
    completed_course_ids: tuple[str, ...] = ()
    course_progress: dict[str, int] = field(default_factory=dict)

    @staticmethod
    def from_enrollments(profile: Profile, enrollments: Iterable[Enrollment]) -> User:
        own = [e for e in enrollments if e.user_id == profile.id]
        return User(
            id=profile.id,
            name=profile.name,
            email=profile.email,
            role=profile.role,
            registered_course_ids=tuple(e.course_id for e in own),
            pending_course_ids=tuple(e.course_id for e in own if e.status == PENDING),
            completed_course_ids=tuple(
                e.course_id for e in own if e.status == COMPLETED
            ),
            course_progress={e.course_id: e.progress for e in own},
        )

    def is_registered(self, course_id: str) -> bool:
        return course_id in self.registered_course_ids

    def has_completed(self, course_id: str) -> bool:
        return course_id in self.completed_course_ids


def resolve_role(email: str, stored_role: str | None, admin_email: str) -> Role:
    """The administrator address always maps to admin; otherwise trust the
    stored profile role, defaulting to student."""
    if email.strip().lower() == admin_email.strip().lower():
        return "admin"
    if stored_role == "admin":
        return "admin"
    return "student"


def display_name(metadata_name: str | None, email: str) -> str:
    if metadata_name and metadata_name.strip():
        return metadata_name.strip()
    local_part = email.split("@")[0] if email else ""
    return local_part or "Student"
