"""Enrollment operations: register, progress, completion review.

State changes go through ``transition()`` in models/enrollment.py; this
module adds persistence, notifications and the simulated emails.  Every
write is confirmed by the store before anything is reported back, and a
failed write posts the matching "Failed to ..." notification.

Concurrent admin actions on the same enrollment are last-writer-wins.
"""

from __future__ import annotations

import asyncio
import logging

from institute.core.metrics import ENROLLMENT_TRANSITIONS
from institute.models.enrollment import COMPLETED, Enrollment, transition
from institute.models.principal import Principal
from institute.models.user import User
from institute.repos.backends import course_repo, enrollment_repo, profile_repo
from institute.repos.course_repo import CourseRepo
from institute.repos.enrollment_repo import EnrollmentRepo
from institute.repos.profile_repo import ProfileRepo
from institute.repos.table_store import DuplicateRowError
from institute.services import email_service
from institute.services.errors import (
    AlreadyRegisteredError,
    CourseNotFoundError,
    EnrollmentNotFoundError,
    UserNotFoundError,
    notify_on_failure,
)
from institute.services.notification_bus import NotificationBus, notification_bus

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = "You are already registered for this training program."
ALREADY_COMPLETED = "You have already completed this training program."


class EnrollmentService:
    def __init__(
        self,
        profiles: ProfileRepo,
        courses: CourseRepo,
        enrollments: EnrollmentRepo,
        bus: NotificationBus,
    ) -> None:
        self._profiles = profiles
        self._courses = courses
        self._enrollments = enrollments
        self._bus = bus

    async def _require(self, user_id: str, course_id: str) -> Enrollment:
        enrollment = await self._enrollments.get(user_id, course_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(user_id, course_id)
        return enrollment

    async def _course_title(self, course_id: str) -> str:
        course = await self._courses.get(course_id)
        return course.title if course is not None else "training program"

    # -- student actions ----------------------------------------------------

    async def register(self, user: Principal, course_id: str) -> Enrollment:
        async with notify_on_failure(
            self._bus, user.user_id, "Failed to register. Please try again."
        ):
            if await self._enrollments.get(user.user_id, course_id) is not None:
                await self._bus.notify(user.user_id, ALREADY_REGISTERED, "info")
                raise AlreadyRegisteredError(course_id)

            course = await self._courses.get(course_id)
            if course is None:
                raise CourseNotFoundError(course_id)

            enrollment = Enrollment.new(user_id=user.user_id, course_id=course_id)
            try:
                await self._enrollments.add(enrollment)
            except DuplicateRowError:
                await self._bus.notify(user.user_id, ALREADY_REGISTERED, "info")
                raise AlreadyRegisteredError(course_id) from None

        ENROLLMENT_TRANSITIONS.labels(transition="register").inc()
        logger.info("User %s registered for course %s", user.user_id, course_id)
        await self._bus.notify(
            user.user_id, f"Successfully registered for {course.title}!", "success"
        )
        await email_service.send_registration_confirmation(
            user.user_id, user.email, user.name, course.title
        )
        return enrollment

    async def set_progress(
        self, user: Principal, course_id: str, percent: int
    ) -> Enrollment:
        """Overwrite progress; 0..100 is enforced by the request schema."""
        async with notify_on_failure(
            self._bus, user.user_id, "Failed to save progress."
        ):
            enrollment = await self._require(user.user_id, course_id)
            updated = enrollment.with_progress(percent)
            await self._enrollments.save(updated)
        logger.debug(
            "Progress user=%s course=%s %d%%", user.user_id, course_id, percent
        )
        return updated

    async def request_completion(self, user: Principal, course_id: str) -> Enrollment:
        async with notify_on_failure(
            self._bus, user.user_id, "Failed to submit request."
        ):
            enrollment = await self._require(user.user_id, course_id)
            if enrollment.status == COMPLETED:
                await self._bus.notify(user.user_id, ALREADY_COMPLETED, "info")
                return enrollment

            updated = transition(enrollment, "request_completion")
            await self._enrollments.save(updated)
            title = await self._course_title(course_id)

        ENROLLMENT_TRANSITIONS.labels(transition="request_completion").inc()
        logger.info("User %s requested completion of %s", user.user_id, course_id)
        await self._bus.notify(user.user_id, f"Completion request sent for {title}", "info")
        return updated

    # -- admin review -------------------------------------------------------

    async def approve_completion(
        self, admin: Principal, user_id: str, course_id: str
    ) -> Enrollment:
        async with notify_on_failure(self._bus, admin.user_id, "Failed to approve."):
            enrollment = await self._require(user_id, course_id)
            updated = transition(enrollment, "approve")
            await self._enrollments.save(updated)
            student = await self._profiles.get(user_id)
            course = await self._courses.get(course_id)

        ENROLLMENT_TRANSITIONS.labels(transition="approve").inc()
        name = student.name if student is not None else user_id
        logger.info("Admin %s approved %s for user %s", admin.user_id, course_id, user_id)
        await self._bus.notify(admin.user_id, f"Approved completion for {name}.", "success")
        if student is not None and course is not None:
            await email_service.send_completion_congratulations(
                admin.user_id, student.email, student.name, course.title
            )
        return updated

    async def reject_completion(
        self, admin: Principal, user_id: str, course_id: str
    ) -> Enrollment:
        async with notify_on_failure(self._bus, admin.user_id, "Failed to reject."):
            enrollment = await self._require(user_id, course_id)
            updated = transition(enrollment, "reject")
            await self._enrollments.save(updated)
            student = await self._profiles.get(user_id)

        ENROLLMENT_TRANSITIONS.labels(transition="reject").inc()
        name = student.name if student is not None else user_id
        logger.info("Admin %s rejected %s for user %s", admin.user_id, course_id, user_id)
        await self._bus.notify(admin.user_id, f"Rejected completion for {name}", "info")
        return updated

    # -- aggregates ---------------------------------------------------------

    async def load_user(self, user_id: str) -> User:
        profile, enrollments = await asyncio.gather(
            self._profiles.get(user_id), self._enrollments.list_for_user(user_id)
        )
        if profile is None:
            raise UserNotFoundError(user_id)
        return User.from_enrollments(profile, enrollments)

    async def list_users(self) -> list[User]:
        profiles, enrollments = await asyncio.gather(
            self._profiles.list_all(), self._enrollments.list_all()
        )
        by_user: dict[str, list[Enrollment]] = {}
        for e in enrollments:
            by_user.setdefault(e.user_id, []).append(e)
        return [User.from_enrollments(p, by_user.get(p.id, [])) for p in profiles]


enrollment_service = EnrollmentService(
    profile_repo, course_repo, enrollment_repo, notification_bus
)
