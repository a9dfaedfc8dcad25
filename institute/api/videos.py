from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel

from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.principal import MANAGE_VIDEOS, Principal
from institute.models.video import VideoItem
from institute.services.upload_pipeline import UploadRejectedError, upload_pipeline
from institute.services.video_library import list_videos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/videos", tags=["videos"])


class VideoOut(BaseModel):
    id: str
    title: str
    duration: str
    type: str
    level: str
    category: str
    url: str | None
    created_at: int

    @classmethod
    def of(cls, v: VideoItem) -> VideoOut:
        return cls(
            id=v.id,
            title=v.title,
            duration=v.duration,
            type=v.type,
            level=v.level,
            category=v.category,
            url=v.url,
            created_at=v.created_at,
        )


@router.get("", response_model=list[VideoOut])
async def get_videos(
    level: str | None = None, category: str | None = None
) -> list[VideoOut]:
    try:
        videos = await list_videos(level=level, category=category)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return [VideoOut.of(v) for v in videos]


@router.post("", response_model=VideoOut, status_code=status.HTTP_201_CREATED)
async def upload_video(
    file: Annotated[UploadFile, File()],
    principal: Annotated[Principal, Depends(require_capability(MANAGE_VIDEOS))],
    title: Annotated[str, Form()] = "",
    duration: Annotated[str, Form()] = "",
    type: Annotated[str, Form()] = "Lecture",
    level: Annotated[str, Form()] = "Beginner",
    category: Annotated[str, Form()] = "General",
) -> VideoOut:
    data = await file.read()
    try:
        video = await upload_pipeline.upload_video(
            principal,
            data,
            file.content_type or "",
            file.filename,
            title=title,
            duration=duration,
            type=type,
            level=level,
            category=category,
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return VideoOut.of(video)
