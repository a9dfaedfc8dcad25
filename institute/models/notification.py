from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

NotificationType = Literal["success", "info", "email"]


@dataclass(frozen=True, slots=True)
class Notification:
    """A transient, user-visible event.

    ``id`` is unique per channel and strictly increasing, so sorting by
    id is insertion order.
    """

    id: int
    message: str
    type: NotificationType = "info"
    created_at: float = 0.0

    def expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds
