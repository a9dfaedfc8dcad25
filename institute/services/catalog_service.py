"""Course catalog and landing-page content.

Reads compose stored rows with freshly resolved asset URLs; the image and
signature of each course are resolved concurrently.  Writes are
confirmed by the store before any success notification is posted.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from institute.models.course import Course
from institute.models.home_content import DEFAULT_HOME_CONTENT, HomeContent
from institute.models.principal import Principal
from institute.repos.backends import (
    course_repo,
    enrollment_repo,
    object_storage,
    settings_repo,
)
from institute.repos.course_repo import CourseRepo
from institute.repos.enrollment_repo import EnrollmentRepo
from institute.repos.object_storage import ObjectStorage, StorageError, is_external_url
from institute.repos.settings_repo import SettingsRepo
from institute.repos.table_store import DuplicateRowError
from institute.services.asset_resolver import AssetResolver, asset_resolver
from institute.services.errors import CourseNotFoundError, notify_on_failure
from institute.services.notification_bus import NotificationBus, notification_bus

logger = logging.getLogger(__name__)

HOME_CONTENT_KEY = "home_content"


class DuplicateCourseError(Exception):
    pass


class CatalogService:
    def __init__(
        self,
        courses: CourseRepo,
        enrollments: EnrollmentRepo,
        settings: SettingsRepo,
        storage: ObjectStorage,
        resolver: AssetResolver,
        bus: NotificationBus,
    ) -> None:
        self._courses = courses
        self._enrollments = enrollments
        self._settings = settings
        self._storage = storage
        self._resolver = resolver
        self._bus = bus

    async def _enrich(self, course: Course) -> Course:
        image_url, signature_url = await self._resolver.resolve_many(
            [course.image_reference, course.signature_path]
        )
        return replace(course, image=image_url, signature_image=signature_url)

    # -- courses ------------------------------------------------------------

    async def list_courses(self, actor_id: str | None = None) -> list[Course]:
        if actor_id is None:
            stored = await self._courses.list_all()
        else:
            async with notify_on_failure(
                self._bus, actor_id, "Failed to load training programs from database."
            ):
                stored = await self._courses.list_all()
        return list(await asyncio.gather(*(self._enrich(c) for c in stored)))

    async def get_course(self, course_id: str) -> Course:
        course = await self._courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return await self._enrich(course)

    async def create_course(self, admin: Principal, course: Course) -> Course:
        async with notify_on_failure(self._bus, admin.user_id, "Failed to create course."):
            try:
                stored = await self._courses.add(course)
            except DuplicateRowError:
                await self._bus.notify(admin.user_id, "Failed to create course.", "info")
                raise DuplicateCourseError(course.id) from None
        logger.info("Course %s created by %s", course.id, admin.user_id)
        await self._bus.notify(
            admin.user_id, "New training program created successfully", "success"
        )
        return await self._enrich(stored)

    async def save_course(self, admin: Principal, course: Course) -> Course:
        """Upsert *course* as given; its path fields are the stored references."""
        async with notify_on_failure(self._bus, admin.user_id, "Failed to update course."):
            stored = await self._courses.save(course)
        logger.info("Course %s saved by %s", course.id, admin.user_id)
        await self._bus.notify(
            admin.user_id, "Training program updated successfully", "success"
        )
        return await self._enrich(stored)

    async def delete_course(self, admin: Principal, course_id: str) -> None:
        """Delete the course, its enrollments and its stored images."""
        async with notify_on_failure(self._bus, admin.user_id, "Failed to delete course."):
            course = await self._courses.get(course_id)
            if course is None:
                raise CourseNotFoundError(course_id)
            removed = await self._enrollments.delete_for_course(course_id)
            await self._courses.delete(course_id)

        orphaned = [p for p in (course.image_path, course.signature_path) if p]
        if orphaned:
            try:
                await self._storage.remove(orphaned)
            except StorageError as exc:
                logger.warning("Could not remove assets of course %s: %s", course_id, exc)
        logger.info(
            "Course %s deleted by %s (%d enrollments removed)",
            course_id,
            admin.user_id,
            removed,
        )
        await self._bus.notify(
            admin.user_id, "Training program deleted successfully", "success"
        )

    # -- home page ----------------------------------------------------------

    async def stored_home_content(self) -> HomeContent:
        """Home content as stored (defaults when never saved), unresolved."""
        value = await self._settings.get(HOME_CONTENT_KEY)
        if value is None:
            return DEFAULT_HOME_CONTENT
        return HomeContent.from_value(value)

    async def put_home_content(self, content: HomeContent) -> None:
        await self._settings.put(HOME_CONTENT_KEY, content.to_value())

    async def get_home_content(self) -> HomeContent:
        content = await self.stored_home_content()
        url = await self._resolver.resolve(content.hero_image)
        return replace(content, hero_image_url=url)

    async def save_home_text(self, admin: Principal, content: HomeContent) -> HomeContent:
        """Replace headline, subtitle and features; the hero image is kept."""
        async with notify_on_failure(
            self._bus, admin.user_id, "Failed to update home page content."
        ):
            current = await self.stored_home_content()
            updated = current.with_text_of(content)
            await self.put_home_content(updated)
        await self._bus.notify(
            admin.user_id, "Home page content updated successfully", "success"
        )
        url = await self._resolver.resolve(updated.hero_image)
        return replace(updated, hero_image_url=url)


def is_stored_object(ref: str | None) -> bool:
    return bool(ref) and not is_external_url(ref)  # type: ignore[arg-type]


catalog_service = CatalogService(
    course_repo,
    enrollment_repo,
    settings_repo,
    object_storage,
    asset_resolver,
    notification_bus,
)
