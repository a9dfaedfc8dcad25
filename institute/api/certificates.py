from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.principal import VIEW_CERTIFICATE, Principal
from institute.services.certificate_service import (
    CertificateTemplate,
    NotCompletedError,
    certificate_for,
)
from institute.services.errors import NotFoundError

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class CertificateOut(BaseModel):
    course_id: str
    student_name: str
    course_title: str
    instructor: str
    duration: str
    signature_url: str | None
    template: str


@router.get("/{course_id}", response_model=CertificateOut)
async def get_certificate(
    course_id: str,
    principal: Annotated[Principal, Depends(require_capability(VIEW_CERTIFICATE))],
    template: CertificateTemplate = "classic",
) -> CertificateOut:
    try:
        cert = await certificate_for(principal, course_id, template)
    except NotCompletedError:
        raise HTTPException(
            status_code=409, detail=f"course {course_id} is not completed"
        ) from None
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return CertificateOut(
        course_id=cert.course_id,
        student_name=cert.student_name,
        course_title=cert.course_title,
        instructor=cert.instructor,
        duration=cert.duration,
        signature_url=cert.signature_url,
        template=cert.template,
    )
