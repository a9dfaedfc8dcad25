"""Media uploads: course covers, certificate signatures, home hero, videos.

Every upload is validated (type, size) before any storage call.  Valid
files are stored under ``{owner}/{category}/{sub_id}/{uuid}.{ext}`` in
the private bucket, the owning record is updated to point at the new
key, and the superseded object (if it was ours) is removed afterwards.
Callers get the record back with a freshly signed URL.

Signatures may be cropped before upload.  Cropping happens in a worker
thread since Pillow is CPU-bound.
"""

from __future__ import annotations

import asyncio
import io
import logging
import time
import uuid
from dataclasses import dataclass, replace

from PIL import Image, UnidentifiedImageError

from institute.core.metrics import UPLOADS
from institute.models.course import Course
from institute.models.home_content import DEFAULT_HERO_IMAGE, HomeContent
from institute.models.principal import Principal
from institute.models.video import VideoItem
from institute.repos.backends import course_repo, object_storage, video_repo
from institute.repos.course_repo import CourseRepo
from institute.repos.object_storage import ObjectStorage, StorageError
from institute.repos.table_store import StoreError
from institute.repos.video_repo import VideoRepo
from institute.services.asset_resolver import AssetResolver, asset_resolver
from institute.services.catalog_service import (
    CatalogService,
    catalog_service,
    is_stored_object,
)
from institute.services.errors import CourseNotFoundError
from institute.services.notification_bus import NotificationBus, notification_bus

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 2 * 1024 * 1024
SIGNATURE_TYPES = ("image/jpeg", "image/png", "image/svg+xml")
IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
SIGNATURE_ASPECT_RATIO = 512 / 224

INVALID_SIGNATURE_FORMAT = "Invalid format. Use JPG, PNG, or SVG."
INVALID_IMAGE_FORMAT = "Invalid format. Use JPG, PNG, or WEBP."
IMAGE_TOO_LARGE = "Image too large. Max 2MB."
INVALID_VIDEO = "Please upload a valid video file."
MISSING_VIDEO = "Please select a video file."
MISSING_TITLE = "Please provide a title."

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/ogg": "ogv",
    "video/quicktime": "mov",
    "video/x-matroska": "mkv",
}


class UploadRejectedError(ValueError):
    """The file failed validation; ``str(err)`` is user-facing."""


@dataclass(frozen=True, slots=True)
class CropBox:
    x: int
    y: int
    width: int
    height: int


# ---------------------------------------------------------------------------
# Validation and processing (no I/O)
# ---------------------------------------------------------------------------


def validate_image(content_type: str, size: int, *, signature: bool = False) -> None:
    allowed = SIGNATURE_TYPES if signature else IMAGE_TYPES
    if content_type not in allowed:
        raise UploadRejectedError(
            INVALID_SIGNATURE_FORMAT if signature else INVALID_IMAGE_FORMAT
        )
    if size > MAX_IMAGE_BYTES:
        raise UploadRejectedError(IMAGE_TOO_LARGE)


def validate_video(content_type: str, size: int) -> None:
    if size == 0:
        raise UploadRejectedError(MISSING_VIDEO)
    if not content_type.startswith("video/"):
        raise UploadRejectedError(INVALID_VIDEO)


def file_extension(content_type: str) -> str:
    """Object extension for a validated *content_type*; the client filename is ignored."""
    ext = _EXTENSIONS.get(content_type)
    if ext is not None:
        return ext
    subtype = content_type.partition("/")[2]
    return subtype if subtype.isalnum() and subtype.isascii() else "bin"


def storage_path(owner_id: str, category: str, sub_id: str, ext: str) -> str:
    return f"{owner_id}/{category}/{sub_id}/{uuid.uuid4()}.{ext}"


def crop_image(data: bytes, box: CropBox) -> bytes:
    """Crop a raster image to *box* (clamped to the image) and encode as PNG."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise UploadRejectedError("Could not read image.") from exc

    left = max(0, min(box.x, image.width))
    top = max(0, min(box.y, image.height))
    right = max(left, min(box.x + box.width, image.width))
    bottom = max(top, min(box.y + box.height, image.height))
    if right - left == 0 or bottom - top == 0:
        raise UploadRejectedError("Crop area is empty.")

    cropped = image.crop((left, top, right, bottom))
    if cropped.mode not in ("RGB", "RGBA"):
        cropped = cropped.convert("RGBA")
    out = io.BytesIO()
    cropped.save(out, format="PNG")
    return out.getvalue()


def title_from_filename(filename: str | None) -> str:
    if not filename:
        return ""
    return filename.rsplit(".", 1)[0] if "." in filename else filename


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class UploadPipeline:
    def __init__(
        self,
        courses: CourseRepo,
        videos: VideoRepo,
        catalog: CatalogService,
        storage: ObjectStorage,
        resolver: AssetResolver,
        bus: NotificationBus,
    ) -> None:
        self._courses = courses
        self._videos = videos
        self._catalog = catalog
        self._storage = storage
        self._resolver = resolver
        self._bus = bus

    async def _store(
        self,
        owner_id: str,
        category: str,
        sub_id: str,
        ext: str,
        data: bytes,
        content_type: str,
    ) -> str:
        path = storage_path(owner_id, category, sub_id, ext)
        try:
            await self._storage.upload(path, data, content_type)
        except StorageError:
            UPLOADS.labels(category=category, result="failed").inc()
            raise
        UPLOADS.labels(category=category, result="stored").inc()
        logger.info("Stored %s upload at %s (%d bytes)", category, path, len(data))
        return path

    async def _discard(self, ref: str | None) -> None:
        if not is_stored_object(ref):
            return
        try:
            await self._storage.remove([ref])  # type: ignore[list-item]
        except StorageError as exc:
            logger.warning("Could not remove superseded object %s: %s", ref, exc)

    async def _stored_course(self, course_id: str) -> Course:
        course = await self._courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    @staticmethod
    def _reject(category: str, exc: UploadRejectedError) -> None:
        UPLOADS.labels(category=category, result="rejected").inc()
        logger.info("Rejected %s upload: %s", category, exc)

    # -- course cover -------------------------------------------------------

    async def upload_course_image(
        self,
        admin: Principal,
        course_id: str,
        data: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> Course:
        try:
            validate_image(content_type, len(data))
        except UploadRejectedError as exc:
            self._reject("courses", exc)
            raise
        course = await self._stored_course(course_id)
        try:
            path = await self._store(
                admin.user_id,
                "courses",
                course_id,
                file_extension(content_type),
                data,
                content_type,
            )
            try:
                saved = await self._catalog.save_course(
                    admin, replace(course, image=None, image_path=path)
                )
            except StoreError:
                await self._discard(path)
                raise
        except (StorageError, StoreError):
            await self._bus.notify(admin.user_id, "Upload failed.", "info")
            raise
        await self._discard(course.image_path)
        return saved

    async def remove_course_image(self, admin: Principal, course_id: str) -> Course:
        course = await self._stored_course(course_id)
        await self._discard(course.image_path)
        return await self._catalog.save_course(
            admin, replace(course, image=None, image_path=None)
        )

    # -- signature ----------------------------------------------------------

    async def upload_signature(
        self,
        admin: Principal,
        course_id: str,
        data: bytes,
        content_type: str,
        filename: str | None = None,
        *,
        crop: CropBox | None = None,
        remove_background: bool = False,
    ) -> Course:
        """Store a certificate signature for *course_id*.

        Raster images are cropped when *crop* is given and re-encoded as
        PNG.  SVG is stored untouched.  *remove_background* only affects
        how the signature is blended on the certificate and is not applied
        to the pixels.
        """
        try:
            validate_image(content_type, len(data), signature=True)
            if crop is not None and content_type != "image/svg+xml":
                data = await asyncio.to_thread(crop_image, data, crop)
                content_type = "image/png"
        except UploadRejectedError as exc:
            self._reject("signatures", exc)
            raise

        course = await self._stored_course(course_id)
        try:
            path = await self._store(
                admin.user_id,
                "signatures",
                course_id,
                file_extension(content_type),
                data,
                content_type,
            )
            logger.debug(
                "Signature for %s stored, remove_background=%s", course_id, remove_background
            )
            try:
                saved = await self._catalog.save_course(
                    admin, replace(course, signature_path=path)
                )
            except StoreError:
                await self._discard(path)
                raise
        except (StorageError, StoreError):
            await self._bus.notify(admin.user_id, "Upload failed.", "info")
            raise
        await self._discard(course.signature_path)
        return saved

    async def remove_signature(self, admin: Principal, course_id: str) -> Course:
        course = await self._stored_course(course_id)
        await self._discard(course.signature_path)
        return await self._catalog.save_course(
            admin, replace(course, signature_image=None, signature_path=None)
        )

    # -- home hero ----------------------------------------------------------

    async def upload_hero_image(
        self,
        admin: Principal,
        data: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> HomeContent:
        try:
            validate_image(content_type, len(data))
        except UploadRejectedError as exc:
            self._reject("home", exc)
            await self._bus.notify(admin.user_id, str(exc), "info")
            raise

        try:
            path = await self._store(
                admin.user_id,
                "home",
                "hero",
                file_extension(content_type),
                data,
                content_type,
            )
            current = await self._catalog.stored_home_content()
            updated = replace(current, hero_image=path)
            await self._catalog.put_home_content(updated)
        except (StorageError, StoreError):
            await self._bus.notify(admin.user_id, "Upload failed.", "info")
            raise

        await self._discard(current.hero_image)
        await self._bus.notify(
            admin.user_id, "Home page background updated successfully", "success"
        )
        return replace(updated, hero_image_url=await self._resolver.resolve(path))

    async def reset_hero_image(self, admin: Principal) -> HomeContent:
        current = await self._catalog.stored_home_content()
        await self._discard(current.hero_image)
        updated = replace(current, hero_image=DEFAULT_HERO_IMAGE)
        await self._catalog.put_home_content(updated)
        await self._bus.notify(admin.user_id, "Restored default background", "info")
        return replace(updated, hero_image_url=DEFAULT_HERO_IMAGE)

    # -- video library ------------------------------------------------------

    async def upload_video(
        self,
        admin: Principal,
        data: bytes,
        content_type: str,
        filename: str | None = None,
        *,
        title: str = "",
        duration: str = "",
        type: str = "Lecture",
        level: str = "Beginner",
        category: str = "General",
    ) -> VideoItem:
        try:
            validate_video(content_type, len(data))
            title = title.strip() or title_from_filename(filename)
            if not title:
                raise UploadRejectedError(MISSING_TITLE)
        except UploadRejectedError as exc:
            self._reject("videos", exc)
            raise

        try:
            path = await self._store(
                admin.user_id,
                "videos",
                "library",
                file_extension(content_type),
                data,
                content_type,
            )
            try:
                video = await self._videos.add(
                    VideoItem.new(
                        title=title,
                        path=path,
                        created_at=int(time.time() * 1000),
                        duration=duration.strip() or "Unknown",
                        type=type or "Lecture",
                        level=level or "Beginner",
                        category=category or "General",
                    )
                )
            except StoreError:
                await self._discard(path)
                raise
        except (StorageError, StoreError):
            await self._bus.notify(admin.user_id, "Failed to upload video.", "info")
            raise

        logger.info("Video %s added to library by %s", video.id, admin.user_id)
        return replace(video, url=await self._resolver.resolve(video.path))


upload_pipeline = UploadPipeline(
    course_repo,
    video_repo,
    catalog_service,
    object_storage,
    asset_resolver,
    notification_bus,
)
