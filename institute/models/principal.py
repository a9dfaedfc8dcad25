from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["student", "admin"]

# Capabilities checked by require_capability().  Routers never compare
# roles directly; they ask for a capability and this table decides.
ENROLL = "enroll"
TRACK_PROGRESS = "track_progress"
VIEW_CERTIFICATE = "view_certificate"
USE_AI = "use_ai"
MANAGE_COURSES = "manage_courses"
MANAGE_HOME = "manage_home"
MANAGE_VIDEOS = "manage_videos"
REVIEW_COMPLETIONS = "review_completions"
VIEW_ALL_USERS = "view_all_users"

_STUDENT_CAPABILITIES = frozenset(
    {ENROLL, TRACK_PROGRESS, VIEW_CERTIFICATE, USE_AI}
)

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    "student": _STUDENT_CAPABILITIES,
    "admin": _STUDENT_CAPABILITIES
    | {MANAGE_COURSES, MANAGE_HOME, MANAGE_VIDEOS, REVIEW_COMPLETIONS, VIEW_ALL_USERS},
}


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity resolved from a bearer token.

    Carried through the request via FastAPI's dependency system.

        user_id: subject of the session
        email:   address the session was opened with
        name:    display name (profile name, metadata name or email local part)
        role:    student|admin, resolved once per request
        access_token: the raw bearer token, kept for sign-out
    """

    user_id: str
    email: str
    name: str
    role: Role = "student"
    access_token: str = ""

    def can(self, capability: str) -> bool:
        return capability in ROLE_CAPABILITIES.get(self.role, frozenset())

    def is_admin(self) -> bool:
        return self.role == "admin"
