"""Outbound email, simulated.

No mail is delivered: the message is logged and the sender sees an
``email`` notification confirming what would have gone out.
"""

from __future__ import annotations

import logging

from institute.services.notification_bus import notification_bus

logger = logging.getLogger(__name__)

REGISTRATION_SUBJECT = "Training Registration Confirmation"
COMPLETION_SUBJECT = "\U0001f389 Congratulations! You have completed {title}"


async def send_email(notify_user_id: str, to: str, subject: str, body: str) -> None:
    logger.info("[EMAIL SIMULATION] to=%s subject=%r body=%r", to, subject, body)
    await notification_bus.notify(
        notify_user_id, f"Email sent to {to}: {subject}", "email"
    )


async def send_registration_confirmation(
    notify_user_id: str, to: str, name: str, course_title: str
) -> None:
    await send_email(
        notify_user_id,
        to,
        REGISTRATION_SUBJECT,
        f"Dear {name},\n\nYou have successfully registered for {course_title}. "
        "We are excited to have you on board!\n\nBest,\nThe Institute Team",
    )


async def send_completion_congratulations(
    notify_user_id: str, to: str, name: str, course_title: str
) -> None:
    await send_email(
        notify_user_id,
        to,
        COMPLETION_SUBJECT.format(title=course_title),
        f"Dear {name},\n\nWe are thrilled to congratulate you on successfully "
        f"completing the training program \"{course_title}\".\n\n"
        "Warm regards,\nThe Institute Team",
    )
