from __future__ import annotations

import pytest

from institute.models.enrollment import (
    COMPLETED,
    PENDING,
    REGISTERED,
    AlreadyCompletedError,
    Enrollment,
    InvalidTransitionError,
    transition,
)


def _enrollment(status: str = REGISTERED, progress: int = 0) -> Enrollment:
    return Enrollment(user_id="u1", course_id="c1", status=status, progress=progress)  # type: ignore[arg-type]


def test_new_enrollment_is_registered_with_no_progress() -> None:
    e = Enrollment.new(user_id="u1", course_id="c1")
    assert e.status == REGISTERED
    assert e.progress == 0


@pytest.mark.parametrize(
    "status,action,expected",
    [
        (REGISTERED, "request_completion", PENDING),
        (PENDING, "request_completion", PENDING),
        (PENDING, "approve", COMPLETED),
        (PENDING, "reject", REGISTERED),
    ],
)
def test_allowed_transitions(status: str, action: str, expected: str) -> None:
    assert transition(_enrollment(status), action).status == expected  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "status,action",
    [
        (REGISTERED, "approve"),
        (REGISTERED, "reject"),
        (COMPLETED, "approve"),
        (COMPLETED, "reject"),
    ],
)
def test_invalid_transitions_raise(status: str, action: str) -> None:
    with pytest.raises(InvalidTransitionError):
        transition(_enrollment(status), action)  # type: ignore[arg-type]


def test_completed_cannot_request_again() -> None:
    with pytest.raises(AlreadyCompletedError):
        transition(_enrollment(COMPLETED, 100), "request_completion")


def test_approve_forces_full_progress() -> None:
    done = transition(_enrollment(PENDING, 40), "approve")
    assert done.progress == 100


def test_reject_keeps_progress() -> None:
    back = transition(_enrollment(PENDING, 40), "reject")
    assert back.status == REGISTERED
    assert back.progress == 40


def test_transition_does_not_mutate_input() -> None:
    original = _enrollment(REGISTERED, 10)
    transition(original, "request_completion")
    assert original.status == REGISTERED
