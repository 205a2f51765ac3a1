"""
Key-value cache (Redis) for the character sheet API.

Responsibilities:
- map a caller identity (API key) to a spreadsheet document id
- hold a serialized Character per caller identity for CACHE_TTL_SECONDS

Every redis failure surfaces as CacheUnavailable; the service decides
whether that is fatal (it never is for the character cache).
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import redis

from app.core import settings
from app.core.errors import CacheUnavailable

IDENTITY_PREFIX = "identity:"
CHARACTER_PREFIX = "character:"


def identity_key(key: str) -> str:
    return f"{IDENTITY_PREFIX}{key}"


def character_key(key: str) -> str:
    return f"{CHARACTER_PREFIX}{key}"


class KeyValueCache(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class RedisCache:
    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None) -> None:
        self.url = url or settings.get_redis_url()
        self.client = client or redis.Redis.from_url(self.url, socket_connect_timeout=2, socket_timeout=2)

    def get(self, key: str) -> Optional[bytes]:
        try:
            value = self.client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailable(f"cache get failed: {e}", {"key": key}) from e
        if value is None:
            return None
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            raise CacheUnavailable(f"cache set failed: {e}", {"key": key}) from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            raise CacheUnavailable(f"cache delete failed: {e}", {"key": key}) from e


def cache_health(cache: Any) -> Dict[str, Any]:
    client = getattr(cache, "client", None)
    if client is None:
        return {"status": "ok", "kind": type(cache).__name__}
    try:
        client.ping()
        return {"status": "ok", "kind": "redis"}
    except redis.RedisError as e:
        return {"status": "error", "kind": "redis", "error": str(e)}
