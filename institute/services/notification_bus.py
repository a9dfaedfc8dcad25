"""Per-user transient notifications.

Each user has a channel of short-lived messages (toast-style).  Entries
expire ``NOTIFICATION_TTL_SECONDS`` after creation and may be dismissed
earlier.  There is no deduplication: publishing the same text twice
yields two entries.

Ids are strictly increasing, so sorting by id is insertion order.  The
in-memory bus uses creation time in milliseconds, bumped when two
notifications land in the same millisecond; the Redis bus draws them from
a counter shared by every worker.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from institute.core.config import SETTINGS
from institute.core.metrics import NOTIFICATIONS
from institute.db.redis import redis_pool
from institute.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationBus(Protocol):
    async def notify(
        self, user_id: str, message: str, type: NotificationType = "info"
    ) -> Notification: ...

    async def list(self, user_id: str) -> list[Notification]:
        """Live notifications for *user_id*, oldest first."""
        ...

    async def dismiss(self, user_id: str, notification_id: int) -> bool: ...


class _IdClock:
    def __init__(self, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._last_id = 0

    def next_id(self) -> int:
        self._last_id = max(int(self._clock() * 1000), self._last_id + 1)
        return self._last_id


class InMemoryNotificationBus:
    """Channels held in a dict.

    Reads filter by age exactly.  Writes also sweep every channel (at most
    once per TTL) so channels nobody reads do not keep expired entries.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = time.time
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._ids = _IdClock(clock)
        self._channels: dict[str, list[Notification]] = {}
        self._next_sweep = 0.0

    def _live(self, user_id: str, now: float) -> list[Notification]:
        live = [
            n
            for n in self._channels.get(user_id, [])
            if not n.expired(now, self._ttl_seconds)
        ]
        if live:
            self._channels[user_id] = live
        else:
            self._channels.pop(user_id, None)
        return live

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._ttl_seconds
        for user_id in list(self._channels):
            self._live(user_id, now)

    async def notify(
        self, user_id: str, message: str, type: NotificationType = "info"
    ) -> Notification:
        self._sweep(self._clock())
        nid = self._ids.next_id()
        n = Notification(id=nid, message=message, type=type, created_at=nid / 1000)
        self._channels.setdefault(user_id, []).append(n)
        NOTIFICATIONS.labels(type=type).inc()
        logger.debug("Notification %d for user=%s: %s", nid, user_id, message)
        return n

    async def list(self, user_id: str) -> list[Notification]:
        return list(self._live(user_id, self._clock()))

    async def dismiss(self, user_id: str, notification_id: int) -> bool:
        now = self._clock()
        self._sweep(now)
        channel = self._live(user_id, now)
        kept = [n for n in channel if n.id != notification_id]
        if len(kept) == len(channel):
            return False
        if kept:
            self._channels[user_id] = kept
        else:
            self._channels.pop(user_id, None)
        return True


class RedisNotificationBus:
    """One sorted set per user, scored by creation time in milliseconds.

    Ids come from a shared INCR counter, so they are unique and increasing
    across every worker.  Expired members are trimmed with
    ZREMRANGEBYSCORE on every read and the whole key carries a TTL so
    idle channels vanish on their own.
    """

    _PREFIX = "notifications:"
    _SEQUENCE = "notifications-seq"

    def __init__(
        self, redis_client, ttl_seconds: int, clock: Callable[[], float] = time.time
    ) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def _key(self, user_id: str) -> str:
        return f"{self._PREFIX}{user_id}"

    async def notify(
        self, user_id: str, message: str, type: NotificationType = "info"
    ) -> Notification:
        nid = int(await self._redis.incr(self._SEQUENCE))
        now = self._clock()
        n = Notification(id=nid, message=message, type=type, created_at=now)
        member = json.dumps(
            {"id": nid, "message": message, "type": type, "created_at": now}
        )
        key = self._key(user_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zadd(key, {member: int(now * 1000)})
            pipe.expire(key, self._ttl_seconds)
            await pipe.execute()
        NOTIFICATIONS.labels(type=type).inc()
        return n

    async def list(self, user_id: str) -> list[Notification]:
        key = self._key(user_id)
        cutoff_ms = int((self._clock() - self._ttl_seconds) * 1000)
        await self._redis.zremrangebyscore(key, "-inf", cutoff_ms)
        result = []
        for raw in await self._redis.zrange(key, 0, -1):
            data = json.loads(raw)
            result.append(
                Notification(
                    id=int(data["id"]),
                    message=data["message"],
                    type=data["type"],
                    created_at=float(data["created_at"]),
                )
            )
        return sorted(result, key=lambda n: n.id)

    async def dismiss(self, user_id: str, notification_id: int) -> bool:
        key = self._key(user_id)
        for raw in await self._redis.zrange(key, 0, -1):
            if int(json.loads(raw)["id"]) == notification_id:
                return await self._redis.zrem(key, raw) > 0
        return False


if redis_pool is not None:
    notification_bus: NotificationBus = RedisNotificationBus(
        redis_pool, SETTINGS.notification_ttl_seconds
    )
else:
    notification_bus = InMemoryNotificationBus(SETTINGS.notification_ttl_seconds)
