from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from institute.api.auth import UserOut
from institute.api.courses import CourseOut, EnrollmentOut
from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.enrollment import InvalidTransitionError
from institute.models.principal import REVIEW_COMPLETIONS, VIEW_ALL_USERS, Principal
from institute.services.catalog_service import catalog_service
from institute.services.enrollment_service import enrollment_service
from institute.services.errors import EnrollmentNotFoundError
from institute.services.review_queue import pending_requests

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class PendingRequestOut(BaseModel):
    user: UserOut
    course_id: str
    course: CourseOut


@router.get("/users", response_model=list[UserOut])
async def admin_list_users(
    principal: Annotated[Principal, Depends(require_capability(VIEW_ALL_USERS))],
) -> list[UserOut]:
    logger.info("Admin user list requested by user=%s", principal.user_id)
    try:
        users = await enrollment_service.list_users()
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return [UserOut.of(u) for u in users]


@router.get("/completion-requests", response_model=list[PendingRequestOut])
async def list_completion_requests(
    principal: Annotated[Principal, Depends(require_capability(REVIEW_COMPLETIONS))],
) -> list[PendingRequestOut]:
    try:
        users, courses = await asyncio.gather(
            enrollment_service.list_users(),
            catalog_service.list_courses(principal.user_id),
        )
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return [
        PendingRequestOut(
            user=UserOut.of(r.user), course_id=r.course_id, course=CourseOut.of(r.course)
        )
        for r in pending_requests(users, courses)
    ]


async def _review(
    action: str, principal: Principal, user_id: str, course_id: str
) -> EnrollmentOut:
    review = (
        enrollment_service.approve_completion
        if action == "approve"
        else enrollment_service.reject_completion
    )
    try:
        enrollment = await review(principal, user_id, course_id)
    except EnrollmentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return EnrollmentOut.of(enrollment)


@router.post(
    "/completion-requests/{user_id}/{course_id}/approve", response_model=EnrollmentOut
)
async def approve_completion(
    user_id: str,
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(REVIEW_COMPLETIONS))],
) -> EnrollmentOut:
    return await _review("approve", principal, user_id, course_id)


@router.post(
    "/completion-requests/{user_id}/{course_id}/reject", response_model=EnrollmentOut
)
async def reject_completion(
    user_id: str,
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(REVIEW_COMPLETIONS))],
) -> EnrollmentOut:
    return await _review("reject", principal, user_id, course_id)
