"""Domain errors shared by the services, mapped to HTTP in the routers."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from institute.repos.object_storage import StorageError
from institute.repos.table_store import StoreError

logger = logging.getLogger(__name__)


class NotFoundError(Exception):
    pass


class CourseNotFoundError(NotFoundError):
    def __init__(self, course_id: str) -> None:
        super().__init__(f"course {course_id} not found")
        self.course_id = course_id


class EnrollmentNotFoundError(NotFoundError):
    def __init__(self, user_id: str, course_id: str) -> None:
        super().__init__(f"user {user_id} is not enrolled in course {course_id}")


class UserNotFoundError(NotFoundError):
    pass


class AlreadyRegisteredError(Exception):
    pass


@asynccontextmanager
async def notify_on_failure(bus, user_id: str, message: str) -> AsyncIterator[None]:
    """Post *message* to the user's channel if a collaborator call fails,
    then let the error propagate."""
    try:
        yield
    except (StoreError, StorageError) as exc:
        logger.warning("%s (user=%s): %s", message, user_id, exc)
        await bus.notify(user_id, message, "info")
        raise
