"""Revoked access tokens, keyed by the token's ``jti`` claim.

Entries live only until the token would have expired anyway (the ``exp``
claim); after that the signature check rejects it on its own.  Redis
holds the list when REDIS_URL is configured so a logout is seen by every
worker; otherwise it is kept in process memory.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from institute.core.metrics import SESSION_REVOCATION_CHECKS
from institute.db.redis import redis_pool


@runtime_checkable
class TokenBlacklist(Protocol):
    async def revoke(self, jti: str, expires_at: float) -> None: ...

    async def is_revoked(self, jti: str) -> bool: ...


class InMemoryTokenBlacklist:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._revoked: dict[str, float] = {}  # jti -> exp (unix seconds)
        self._clock = clock

    def _purge(self) -> None:
        now = self._clock()
        for jti in [j for j, exp in self._revoked.items() if exp <= now]:
            del self._revoked[jti]

    async def revoke(self, jti: str, expires_at: float) -> None:
        self._purge()
        if expires_at > self._clock():
            self._revoked[jti] = expires_at

    async def is_revoked(self, jti: str) -> bool:
        exp = self._revoked.get(jti)
        revoked = exp is not None and exp > self._clock()
        if exp is not None and not revoked:
            del self._revoked[jti]
        SESSION_REVOCATION_CHECKS.labels(result="revoked" if revoked else "valid").inc()
        return revoked


class RedisTokenBlacklist:
    _PREFIX = "revoked:jti:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def revoke(self, jti: str, expires_at: float) -> None:
        ttl_seconds = int(expires_at - time.time())
        if ttl_seconds <= 0:
            return
        # SETEX: value and TTL in one command, no key without expiry
        await self._redis.setex(f"{self._PREFIX}{jti}", ttl_seconds, "1")

    async def is_revoked(self, jti: str) -> bool:
        revoked = bool(await self._redis.exists(f"{self._PREFIX}{jti}"))
        SESSION_REVOCATION_CHECKS.labels(result="revoked" if revoked else "valid").inc()
        return revoked


if redis_pool is not None:
    token_blacklist: TokenBlacklist = RedisTokenBlacklist(redis_pool)
else:
    token_blacklist = InMemoryTokenBlacklist()
