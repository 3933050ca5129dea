from __future__ import annotations

import asyncio

from algoarena.services.cache import CacheService, InMemoryCacheService, RedisCacheService


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class _RecordingRedis:
    """Just enough of redis.asyncio.Redis for RedisCacheService."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.scan_matches: list[str] = []

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    async def scan(self, cursor, match, count):
        self.scan_matches.append(match)
        prefix = match.rstrip("*").replace("\\", "")
        return 0, [k for k in self.data if k.startswith(prefix)]


def test_in_memory_satisfies_protocol() -> None:
    assert isinstance(InMemoryCacheService(), CacheService)


def test_in_memory_ttl_expiry() -> None:
    clock = _Clock()
    cache = InMemoryCacheService(clock=clock)
    asyncio.run(cache.set("progress:bulk:u1", "v", 10))

    clock.now += 9
    assert asyncio.run(cache.get("progress:bulk:u1")) == "v"
    clock.now += 1
    assert asyncio.run(cache.get("progress:bulk:u1")) is None


def test_in_memory_delete_prefix_is_scoped() -> None:
    cache = InMemoryCacheService()

    async def _run() -> None:
        await cache.set("progress:solved:u1:q1", "true", 60)
        await cache.set("progress:solved:u1:q2", "true", 60)
        await cache.set("progress:solved:u10:q1", "true", 60)
        await cache.delete_prefix("progress:solved:u1:")

    asyncio.run(_run())
    assert asyncio.run(cache.get("progress:solved:u1:q1")) is None
    assert asyncio.run(cache.get("progress:solved:u1:q2")) is None
    assert asyncio.run(cache.get("progress:solved:u10:q1")) == "true"


def test_redis_keys_are_prefixed_and_ttl_applied() -> None:
    redis = _RecordingRedis()
    cache = RedisCacheService(redis)

    asyncio.run(cache.set("progress:stats:u1", "{}", 1800))

    assert redis.data == {"cache:progress:stats:u1": "{}"}
    assert redis.ttls["cache:progress:stats:u1"] == 1800
    assert asyncio.run(cache.get("progress:stats:u1")) == "{}"


def test_redis_delete_prefix_escapes_glob_characters() -> None:
    redis = _RecordingRedis()
    cache = RedisCacheService(redis)

    async def _run() -> None:
        await cache.set("questions:summary:u[1]:0", "a", 60)
        await cache.set("questions:summary:u2:0", "b", 60)
        await cache.delete_prefix("questions:summary:u[1]:")

    asyncio.run(_run())
    assert redis.scan_matches == ["cache:questions:summary:u\\[1\\]:*"]
    assert list(redis.data) == ["cache:questions:summary:u2:0"]
