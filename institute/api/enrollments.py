"""Student-side enrollment endpoints: progress and completion requests.

Registration itself lives under /v1/courses/{id}/enroll.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from institute.api.courses import EnrollmentOut
from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.enrollment import InvalidTransitionError
from institute.models.principal import ENROLL, TRACK_PROGRESS, Principal
from institute.services.enrollment_service import enrollment_service
from institute.services.errors import EnrollmentNotFoundError

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class ProgressIn(BaseModel):
    progress: int = Field(ge=0, le=100)


def _not_registered(course_id: str) -> HTTPException:
    return HTTPException(
        status_code=404, detail=f"not registered for course {course_id}"
    )


@router.put("/{course_id}/progress", response_model=EnrollmentOut)
async def set_progress(
    course_id: str,
    payload: ProgressIn,
    principal: Annotated[Principal, Depends(require_capability(TRACK_PROGRESS))],
) -> EnrollmentOut:
    try:
        enrollment = await enrollment_service.set_progress(
            principal, course_id, payload.progress
        )
    except EnrollmentNotFoundError:
        raise _not_registered(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return EnrollmentOut.of(enrollment)


@router.post("/{course_id}/completion-request", response_model=EnrollmentOut)
async def request_completion(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(ENROLL))],
) -> EnrollmentOut:
    try:
        enrollment = await enrollment_service.request_completion(principal, course_id)
    except EnrollmentNotFoundError:
        raise _not_registered(course_id) from None
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return EnrollmentOut.of(enrollment)
