"""Admin review queue: completion requests awaiting a decision.

Derived, never stored.  Each call flattens the pending course ids of the
given users and joins them against the given courses; requests whose
course has been deleted are dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from institute.models.course import Course
from institute.models.user import User


@dataclass(frozen=True, slots=True)
class PendingRequest:
    user: User
    course_id: str
    course: Course


def pending_requests(users: Iterable[User], courses: Iterable[Course]) -> list[PendingRequest]:
    by_id = {c.id: c for c in courses}
    return [
        PendingRequest(user=user, course_id=course_id, course=by_id[course_id])
        for user in users
        for course_id in user.pending_course_ids
        if course_id in by_id
    ]
