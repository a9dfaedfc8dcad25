"""AI add-on: course advisor chat and text-to-video generation.

Both answer 503 while GEMINI_API_KEY is unset.  Video generation is
asynchronous: POST returns a job (202) and the client polls GET until the
job leaves ``running``, or cancels it with DELETE.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.principal import USE_AI, Principal
from institute.models.video import VideoJob
from institute.services import ai_service
from institute.services.ai_service import (
    AINotConfiguredError,
    AIServiceError,
    ChatTurn,
    advisor_instruction,
)
from institute.services.catalog_service import catalog_service
from institute.services.video_jobs import VideoJobNotFoundError, video_jobs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/ai", tags=["ai"])


class ChatTurnIn(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatIn(BaseModel):
    message: str = Field(min_length=1)
    history: list[ChatTurnIn] = []


class ChatOut(BaseModel):
    reply: str


class VideoJobIn(BaseModel):
    prompt: str = Field(min_length=1)
    aspect_ratio: Literal["16:9", "9:16"] = "16:9"


class VideoJobOut(BaseModel):
    id: str
    prompt: str
    status: str
    attempts: int
    video_uri: str | None
    error: str | None

    @classmethod
    def of(cls, job: VideoJob) -> VideoJobOut:
        return cls(
            id=job.id,
            prompt=job.prompt,
            status=job.status,
            attempts=job.attempts,
            video_uri=job.video_uri,
            error=job.error,
        )


def _not_configured() -> HTTPException:
    return HTTPException(status_code=503, detail="AI features are not configured")


def _job_not_found(job_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"video job {job_id} not found")


@router.post("/chat", response_model=ChatOut)
async def chat(
    payload: ChatIn,
    principal: Annotated[Principal, Depends(require_capability(USE_AI))],
) -> ChatOut:
    ai = ai_service.generative_ai
    if ai is None:
        raise _not_configured()
    try:
        courses = await catalog_service.list_courses(principal.user_id)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    try:
        reply = await ai.chat(
            [ChatTurn(role=t.role, text=t.text) for t in payload.history],
            payload.message,
            system_instruction=advisor_instruction(courses),
        )
    except AIServiceError as exc:
        raise bad_gateway(exc) from None
    return ChatOut(reply=reply)


@router.post(
    "/videos", response_model=VideoJobOut, status_code=status.HTTP_202_ACCEPTED
)
async def start_video(
    payload: VideoJobIn,
    principal: Annotated[Principal, Depends(require_capability(USE_AI))],
) -> VideoJobOut:
    try:
        job = await video_jobs.start(
            principal.user_id, payload.prompt, aspect_ratio=payload.aspect_ratio
        )
    except AINotConfiguredError:
        raise _not_configured() from None
    except AIServiceError as exc:
        raise bad_gateway(exc) from None
    return VideoJobOut.of(job)


@router.get("/videos/{job_id}", response_model=VideoJobOut)
async def get_video_job(
    job_id: str,
    principal: Annotated[Principal, Depends(require_capability(USE_AI))],
) -> VideoJobOut:
    try:
        return VideoJobOut.of(video_jobs.get(job_id, principal.user_id))
    except VideoJobNotFoundError:
        raise _job_not_found(job_id) from None


@router.delete("/videos/{job_id}", response_model=VideoJobOut)
async def cancel_video_job(
    job_id: str,
    principal: Annotated[Principal, Depends(require_capability(USE_AI))],
) -> VideoJobOut:
    try:
        job = video_jobs.cancel(job_id, principal.user_id)
    except VideoJobNotFoundError:
        raise _job_not_found(job_id) from None
    logger.info("Video job %s cancelled by user=%s", job_id, principal.user_id)
    return VideoJobOut.of(job)
