from __future__ import annotations

import asyncio

from institute.services.token_blacklist import InMemoryTokenBlacklist


class _Clock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_revoked_until_token_expiry() -> None:
    clock = _Clock()
    blacklist = InMemoryTokenBlacklist(clock=clock)
    asyncio.run(blacklist.revoke("jti-1", clock.now + 60))

    assert asyncio.run(blacklist.is_revoked("jti-1")) is True
    assert asyncio.run(blacklist.is_revoked("jti-2")) is False

    clock.now += 61
    assert asyncio.run(blacklist.is_revoked("jti-1")) is False
    assert blacklist._revoked == {}


def test_expired_entries_do_not_accumulate() -> None:
    clock = _Clock()
    blacklist = InMemoryTokenBlacklist(clock=clock)
    for i in range(100):
        asyncio.run(blacklist.revoke(f"old-{i}", clock.now + 30))

    clock.now += 31
    asyncio.run(blacklist.revoke("fresh", clock.now + 30))
    assert list(blacklist._revoked) == ["fresh"]


def test_already_expired_token_is_not_stored() -> None:
    clock = _Clock()
    blacklist = InMemoryTokenBlacklist(clock=clock)
    asyncio.run(blacklist.revoke("stale", clock.now - 1))
    assert blacklist._revoked == {}
