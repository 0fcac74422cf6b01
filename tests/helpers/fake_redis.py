"""In-memory stand-in for the subset of ``redis.asyncio.Redis`` the store uses."""

from __future__ import annotations


class FakeRedis:
    """Async Redis double with string, set and hash commands (decoded responses)."""

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.hashes: dict[str, dict[str, str]] = {}

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self.strings.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.strings[key] = value
        return True

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [self.strings.get(key) for key in keys]

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.strings.pop(key, None) is not None)

    async def sadd(self, key: str, *members: str) -> int:
        members_set = self.sets.setdefault(key, set())
        before = len(members_set)
        members_set.update(members)
        return len(members_set) - before

    async def srem(self, key: str, *members: str) -> int:
        members_set = self.sets.get(key, set())
        removed = members_set.intersection(members)
        members_set.difference_update(members)
        return len(removed)

    async def smembers(self, key: str) -> set[str]:
        return set(self.sets.get(key, set()))

    async def hsetnx(self, key: str, field: str, value: str) -> int:
        fields = self.hashes.setdefault(key, {})
        if field in fields:
            return 0
        fields[field] = value
        return 1

    async def hget(self, key: str, field: str) -> str | None:
        return self.hashes.get(key, {}).get(field)

    async def hdel(self, key: str, *fields: str) -> int:
        stored = self.hashes.get(key, {})
        return sum(1 for field in fields if stored.pop(field, None) is not None)

    async def aclose(self) -> None:
        pass
