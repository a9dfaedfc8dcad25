"""Course catalog endpoints, course media, and registration.

Reads are public.  Writes need MANAGE_COURSES; registering needs ENROLL.
Image and signature URLs in responses are signed on every read and
expire, so clients should not persist them.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, Field

from institute.api.dependencies import (
    COLLABORATOR_ERRORS,
    bad_gateway,
    optional_user,
    require_capability,
)
from institute.models.course import Course, CourseLevel
from institute.models.enrollment import Enrollment
from institute.models.principal import ENROLL, MANAGE_COURSES, Principal
from institute.repos.object_storage import is_signed_url_for
from institute.services.catalog_service import DuplicateCourseError, catalog_service
from institute.services.enrollment_service import enrollment_service
from institute.services.errors import AlreadyRegisteredError, CourseNotFoundError
from institute.services.upload_pipeline import CropBox, UploadRejectedError, upload_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/courses", tags=["courses"])


# --- Schemas --------------------------------------------------------------


class CourseIn(BaseModel):
    id: str | None = None
    title: str = Field(min_length=1)
    description: str = ""
    outline: str | None = None
    instructor: str = ""
    instructor_bio: str | None = None
    duration: str = ""
    level: CourseLevel = "Beginner"
    price: float = Field(default=0, ge=0)
    tags: list[str] = []
    image: str | None = None  # external URL; uploads go through /image


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    outline: str | None = None
    instructor: str | None = None
    instructor_bio: str | None = None
    duration: str | None = None
    level: CourseLevel | None = None
    price: float | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    image: str | None = None


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    outline: str | None
    instructor: str
    instructor_bio: str | None
    duration: str
    level: str
    price: float
    tags: list[str]
    image: str | None
    image_path: str | None
    signature_image: str | None
    signature_path: str | None

    @classmethod
    def of(cls, c: Course) -> CourseOut:
        return cls(
            id=c.id,
            title=c.title,
            description=c.description,
            outline=c.outline,
            instructor=c.instructor,
            instructor_bio=c.instructor_bio,
            duration=c.duration,
            level=c.level,
            price=c.price,
            tags=list(c.tags),
            image=c.image,
            image_path=c.image_path,
            signature_image=c.signature_image,
            signature_path=c.signature_path,
        )


class EnrollmentOut(BaseModel):
    user_id: str
    course_id: str
    status: str
    progress: int

    @classmethod
    def of(cls, e: Enrollment) -> EnrollmentOut:
        return cls(
            user_id=e.user_id, course_id=e.course_id, status=e.status, progress=e.progress
        )


def _not_found(course_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"course {course_id} not found")


# --- Catalog --------------------------------------------------------------


@router.get("", response_model=list[CourseOut])
async def list_courses(
    principal: Annotated[Principal | None, Depends(optional_user)],
) -> list[CourseOut]:
    try:
        courses = await catalog_service.list_courses(
            principal.user_id if principal else None
        )
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return [CourseOut.of(c) for c in courses]


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(course_id: str) -> CourseOut:
    try:
        return CourseOut.of(await catalog_service.get_course(course_id))
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseIn,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> CourseOut:
    fields = payload.model_dump(exclude={"id"})
    fields["tags"] = tuple(t.strip() for t in payload.tags if t.strip())
    course = (
        Course(id=payload.id, **fields) if payload.id else Course.new(**fields)
    )
    try:
        created = await catalog_service.create_course(principal, course)
    except DuplicateCourseError:
        raise HTTPException(
            status_code=409, detail=f"course {course.id} already exists"
        ) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return CourseOut.of(created)


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> CourseOut:
    changes = payload.model_dump(exclude_unset=True)
    if "tags" in changes:
        changes["tags"] = tuple(t.strip() for t in changes["tags"] or () if t.strip())
    try:
        current = await catalog_service.get_course(course_id)
        if "image" in changes:
            if current.image_path and is_signed_url_for(
                changes["image"], current.image_path
            ):
                # echoed signed URL of the uploaded cover
                del changes["image"]
            else:
                changes["image_path"] = None
        saved = await catalog_service.save_course(principal, replace(current, **changes))
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return CourseOut.of(saved)


@router.delete("/{course_id}", status_code=204)
async def delete_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> Response:
    try:
        await catalog_service.delete_course(principal, course_id)
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return Response(status_code=204)


# --- Course media ---------------------------------------------------------


@router.post("/{course_id}/image", response_model=CourseOut)
async def upload_course_image(
    course_id: str,
    file: Annotated[UploadFile, File()],
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> CourseOut:
    data = await file.read()
    try:
        course = await upload_pipeline.upload_course_image(
            principal, course_id, data, file.content_type or "", file.filename
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return CourseOut.of(course)


@router.delete("/{course_id}/image", response_model=CourseOut)
async def remove_course_image(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> CourseOut:
    try:
        return CourseOut.of(await upload_pipeline.remove_course_image(principal, course_id))
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None


@router.post("/{course_id}/signature", response_model=CourseOut)
async def upload_signature(
    course_id: str,
    file: Annotated[UploadFile, File()],
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
    crop_x: Annotated[int | None, Form(ge=0)] = None,
    crop_y: Annotated[int | None, Form(ge=0)] = None,
    crop_width: Annotated[int | None, Form(gt=0)] = None,
    crop_height: Annotated[int | None, Form(gt=0)] = None,
    remove_background: Annotated[bool, Form()] = True,
) -> CourseOut:
    crop_fields = (crop_x, crop_y, crop_width, crop_height)
    if any(v is not None for v in crop_fields) and None in crop_fields:
        raise HTTPException(
            status_code=422,
            detail="crop_x, crop_y, crop_width and crop_height go together",
        )
    crop = (
        CropBox(x=crop_x, y=crop_y, width=crop_width, height=crop_height)  # type: ignore[arg-type]
        if crop_x is not None
        else None
    )
    data = await file.read()
    try:
        course = await upload_pipeline.upload_signature(
            principal,
            course_id,
            data,
            file.content_type or "",
            file.filename,
            crop=crop,
            remove_background=remove_background,
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return CourseOut.of(course)


@router.delete("/{course_id}/signature", response_model=CourseOut)
async def remove_signature(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_COURSES))],
) -> CourseOut:
    try:
        return CourseOut.of(await upload_pipeline.remove_signature(principal, course_id))
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None


# --- Registration ---------------------------------------------------------


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(ENROLL))],
) -> EnrollmentOut:
    try:
        enrollment = await enrollment_service.register(principal, course_id)
    except CourseNotFoundError:
        raise _not_found(course_id) from None
    except AlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="already registered") from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return EnrollmentOut.of(enrollment)
