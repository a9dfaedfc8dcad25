from __future__ import annotations

import asyncio
from dataclasses import replace

from institute.models.video import VideoItem
from institute.repos.backends import video_repo
from institute.services.asset_resolver import asset_resolver


async def list_videos(
    *, level: str | None = None, category: str | None = None
) -> list[VideoItem]:
    """Library entries, newest first, each with a freshly signed URL."""
    videos = await video_repo.list(level=level, category=category)
    urls = await asyncio.gather(*(asset_resolver.resolve(v.path) for v in videos))
    return [replace(v, url=url) for v, url in zip(videos, urls, strict=True)]
