"""Private object storage for uploaded media.

Objects are addressed by storage key (``{owner}/{folder}/{sub}/{name}``)
inside a single private bucket and are only readable through
time-limited signed URLs.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Protocol, runtime_checkable
from urllib.parse import quote, unquote, urlsplit

import httpx
from supabase import Client, StorageException

logger = logging.getLogger(__name__)


def is_external_url(ref: str) -> bool:
    """Absolute URLs are permanent external references, never signed."""
    return ref.startswith("http")


def is_signed_url_for(url: str | None, path: str) -> bool:
    """True when *url* is a signed URL handed out for the object at *path*."""
    if not url or "/object/sign/" not in url:
        return False
    return unquote(urlsplit(url).path).endswith("/" + path)


class StorageError(Exception):
    """Upload, signing or removal failed."""


@runtime_checkable
class ObjectStorage(Protocol):
    async def upload(self, path: str, data: bytes, content_type: str) -> None: ...

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str: ...

    async def remove(self, paths: list[str]) -> None: ...


class InMemoryObjectStorage:
    """Keeps objects in a dict and hands out opaque signed URLs."""

    def __init__(self, bucket: str = "app-files") -> None:
        self.bucket = bucket
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        if path in self.objects:
            raise StorageError(f"object already exists: {path}")
        self.objects[path] = (data, content_type)

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        if path not in self.objects:
            raise StorageError(f"object not found: {path}")
        expires = int(time.time()) + ttl_seconds
        return (
            f"https://storage.invalid/object/sign/{self.bucket}/{quote(path)}"
            f"?token={secrets.token_urlsafe(16)}&expires={expires}"
        )

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.objects.pop(path, None)


class SupabaseObjectStorage:
    def __init__(self, client: Client, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    async def _call(self, op: str, fn):
        try:
            return await asyncio.to_thread(fn)
        except (StorageException, httpx.HTTPError) as exc:
            logger.warning("storage %s failed: %s", op, exc)
            raise StorageError(f"storage {op} failed: {exc}") from exc

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        bucket = self._client.storage.from_(self.bucket)
        await self._call(
            "upload",
            lambda: bucket.upload(
                path, data, file_options={"content-type": content_type}
            ),
        )

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        bucket = self._client.storage.from_(self.bucket)
        result = await self._call(
            "sign", lambda: bucket.create_signed_url(path, ttl_seconds)
        )
        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise StorageError(f"storage sign returned no URL for {path}")
        return url

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        bucket = self._client.storage.from_(self.bucket)
        await self._call("remove", lambda: bucket.remove(paths))
