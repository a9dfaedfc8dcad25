"""Enrollment lifecycle.

    registered ──request_completion──▶ pending ──approve──▶ completed
        ▲                                 │
        └────────────reject───────────────┘

``completed`` is terminal.  Re-requesting completion while already
pending is accepted and leaves the enrollment as it is.  There is no
unenroll transition.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

EnrollmentStatus = Literal["registered", "pending", "completed"]
Action = Literal["request_completion", "approve", "reject"]

REGISTERED: EnrollmentStatus = "registered"
PENDING: EnrollmentStatus = "pending"
COMPLETED: EnrollmentStatus = "completed"

_TRANSITIONS: dict[tuple[str, str], EnrollmentStatus] = {
    (REGISTERED, "request_completion"): PENDING,
    (PENDING, "request_completion"): PENDING,
    (PENDING, "approve"): COMPLETED,
    (PENDING, "reject"): REGISTERED,
}


class InvalidTransitionError(Exception):
    def __init__(self, status: str, action: str) -> None:
        super().__init__(f"cannot {action} an enrollment that is {status}")
        self.status = status
        self.action = action


class AlreadyCompletedError(InvalidTransitionError):
    def __init__(self) -> None:
        super().__init__(COMPLETED, "request_completion")


@dataclass(frozen=True, slots=True)
class Enrollment:
    user_id: str
    course_id: str
    status: EnrollmentStatus = REGISTERED
    progress: int = 0

    @staticmethod
    def new(*, user_id: str, course_id: str) -> Enrollment:
        return Enrollment(user_id=user_id, course_id=course_id)

    def with_progress(self, percent: int) -> Enrollment:
        return replace(self, progress=percent)


def transition(enrollment: Enrollment, action: Action) -> Enrollment:
    """Apply *action* and return the resulting enrollment.

    Approval forces progress to 100; the other edges leave it untouched.
    """
    if enrollment.status == COMPLETED and action == "request_completion":
        raise AlreadyCompletedError()

    target = _TRANSITIONS.get((enrollment.status, action))
    if target is None:
        raise InvalidTransitionError(enrollment.status, action)

    if target == COMPLETED:
        return replace(enrollment, status=target, progress=100)
    return replace(enrollment, status=target)
