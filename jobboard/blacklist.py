"""
Revoked-token stores.

A revoked token only has to be remembered until it would have expired on
its own, so every entry carries a TTL. The in-memory store takes a clock so
expiry can be exercised without sleeping; the Redis store lets several API
processes share revocations.
"""
from __future__ import annotations

import hashlib
import math
import threading
import time
from typing import Callable, Protocol

import redis

from .logging_config import get_logger

logger = get_logger(__name__)


def _fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenBlacklist(Protocol):
    def add(self, token: str, ttl_seconds: float) -> None: ...

    def contains(self, token: str) -> bool: ...


class InMemoryTokenBlacklist:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()

    def add(self, token: str, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        with self._lock:
            self._purge()
            self._entries[_fingerprint(token)] = self._clock() + ttl_seconds

    def contains(self, token: str) -> bool:
        key = _fingerprint(token)
        with self._lock:
            expires_at = self._entries.get(key)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._entries[key]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            self._purge()
            return len(self._entries)

    def _purge(self) -> None:
        now = self._clock()
        for key in [k for k, exp in self._entries.items() if exp <= now]:
            del self._entries[key]


class RedisTokenBlacklist:
    key_prefix = "jobboard:revoked:"

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisTokenBlacklist":
        return cls(redis.Redis.from_url(url))

    def add(self, token: str, ttl_seconds: float) -> None:
        ttl = math.ceil(ttl_seconds)
        if ttl <= 0:
            return
        self._client.setex(self.key_prefix + _fingerprint(token), ttl, "1")

    def contains(self, token: str) -> bool:
        return bool(self._client.exists(self.key_prefix + _fingerprint(token)))


def build_blacklist(redis_url: str | None) -> TokenBlacklist:
    if redis_url:
        logger.info("Token revocations stored in Redis")
        return RedisTokenBlacklist.from_url(redis_url)
    logger.info("Token revocations stored in process memory")
    return InMemoryTokenBlacklist()
