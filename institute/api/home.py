"""Landing-page hero content: headline, subtitle, features, background."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from institute.api.dependencies import COLLABORATOR_ERRORS, bad_gateway, require_capability
from institute.models.home_content import Feature, HomeContent
from institute.models.principal import MANAGE_HOME, Principal
from institute.services.catalog_service import catalog_service
from institute.services.upload_pipeline import UploadRejectedError, upload_pipeline

router = APIRouter(prefix="/v1/home", tags=["home"])


class FeatureModel(BaseModel):
    title: str
    description: str = ""


class HomeContentIn(BaseModel):
    heroTitle: str = Field(min_length=1)
    heroSubtitle: str = ""
    features: list[FeatureModel] = []


class HomeContentOut(BaseModel):
    heroTitle: str
    heroSubtitle: str
    features: list[FeatureModel]
    heroImage: str | None

    @classmethod
    def of(cls, content: HomeContent) -> HomeContentOut:
        return cls(
            heroTitle=content.hero_title,
            heroSubtitle=content.hero_subtitle,
            features=[
                FeatureModel(title=f.title, description=f.description)
                for f in content.features
            ],
            heroImage=content.hero_image_url,
        )


@router.get("", response_model=HomeContentOut)
async def get_home() -> HomeContentOut:
    try:
        return HomeContentOut.of(await catalog_service.get_home_content())
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None


@router.put("", response_model=HomeContentOut)
async def save_home(
    payload: HomeContentIn,
    principal: Annotated[Principal, Depends(require_capability(MANAGE_HOME))],
) -> HomeContentOut:
    content = HomeContent(
        hero_title=payload.heroTitle,
        hero_subtitle=payload.heroSubtitle,
        features=tuple(
            Feature(title=f.title, description=f.description) for f in payload.features
        ),
    )
    try:
        saved = await catalog_service.save_home_text(principal, content)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return HomeContentOut.of(saved)


@router.post("/hero-image", response_model=HomeContentOut)
async def upload_hero_image(
    file: Annotated[UploadFile, File()],
    principal: Annotated[Principal, Depends(require_capability(MANAGE_HOME))],
) -> HomeContentOut:
    data = await file.read()
    try:
        content = await upload_pipeline.upload_hero_image(
            principal, data, file.content_type or "", file.filename
        )
    except UploadRejectedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return HomeContentOut.of(content)


@router.delete("/hero-image", response_model=HomeContentOut)
async def reset_hero_image(
    principal: Annotated[Principal, Depends(require_capability(MANAGE_HOME))],
) -> HomeContentOut:
    try:
        content = await upload_pipeline.reset_hero_image(principal)
    except COLLABORATOR_ERRORS as exc:
        raise bad_gateway(exc) from None
    return HomeContentOut.of(content)
