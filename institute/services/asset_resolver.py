"""Turns stored asset references into URLs a browser can load.

A reference is either an absolute URL (a permanent external image,
returned as-is) or a key in the private bucket, which is exchanged for a
signed URL on every call.  Nothing is cached: signed URLs expire, so
each catalog read signs afresh.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from institute.core.config import SETTINGS
from institute.core.metrics import ASSET_RESOLUTIONS
from institute.repos.backends import object_storage
from institute.repos.object_storage import ObjectStorage, StorageError, is_external_url

logger = logging.getLogger(__name__)


class AssetResolver:
    def __init__(self, storage: ObjectStorage, ttl_seconds: int) -> None:
        self._storage = storage
        self._ttl_seconds = ttl_seconds

    async def resolve(self, ref: str | None) -> str | None:
        """Signed or passthrough URL for *ref*; None when empty or unsignable.

        Failures are logged and swallowed: a missing image must not break
        the page that shows it.
        """
        if not ref:
            ASSET_RESOLUTIONS.labels(result="empty").inc()
            return None
        if is_external_url(ref):
            ASSET_RESOLUTIONS.labels(result="passthrough").inc()
            return ref
        try:
            url = await self._storage.create_signed_url(ref, self._ttl_seconds)
        except StorageError as exc:
            ASSET_RESOLUTIONS.labels(result="failed").inc()
            logger.warning("Could not sign asset %s: %s", ref, exc)
            return None
        ASSET_RESOLUTIONS.labels(result="signed").inc()
        return url

    async def resolve_many(self, refs: Iterable[str | None]) -> list[str | None]:
        return list(await asyncio.gather(*(self.resolve(r) for r in refs)))


asset_resolver = AssetResolver(object_storage, SETTINGS.signed_url_ttl_seconds)
