from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from institute.models.principal import Principal
from institute.services.catalog_service import catalog_service
from institute.services.enrollment_service import enrollment_service

CertificateTemplate = Literal["classic", "modern", "elegant"]
TEMPLATES: tuple[str, ...] = ("classic", "modern", "elegant")


class NotCompletedError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class Certificate:
    """Everything needed to render a completion certificate."""

    course_id: str
    student_name: str
    course_title: str
    instructor: str
    duration: str
    signature_url: str | None
    template: CertificateTemplate = "classic"


async def certificate_for(
    principal: Principal, course_id: str, template: CertificateTemplate = "classic"
) -> Certificate:
    """Certificate data for a completed enrollment of *principal*.

    Raises NotCompletedError unless the enrollment is completed, and
    CourseNotFoundError if the course has since been deleted.
    """
    user = await enrollment_service.load_user(principal.user_id)
    if not user.has_completed(course_id):
        raise NotCompletedError(course_id)
    course = await catalog_service.get_course(course_id)
    return Certificate(
        course_id=course.id,
        student_name=user.name,
        course_title=course.title,
        instructor=course.instructor,
        duration=course.duration,
        signature_url=course.signature_image,
        template=template,
    )
