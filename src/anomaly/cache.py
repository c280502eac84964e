"""
Best-effort key/value caches for baselines.

The baseline provider only depends on the BaselineCache protocol. Callers
treat every cache error as non-fatal.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import Optional, Protocol, Tuple

import redis

from src.core.config import RedisConfig

logger = logging.getLogger(__name__)


class BaselineCache(Protocol):
    """Byte cache with per-entry time-to-live."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        ...


class InMemoryTTLCache:
    """Tiny per-process TTL cache, bounded in size (LRU eviction)."""

    def __init__(self, maxsize: int = 1024) -> None:
        self.maxsize = max(1, maxsize)
        self._store: "OrderedDict[str, Tuple[float, bytes]]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: str) -> Optional[bytes]:
        now = time.monotonic()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                self._store.pop(key, None)
                return None
            self._store.move_to_end(key)
            return value

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        expires_at = time.monotonic() + max(1, ttl_seconds)
        with self._lock:
            self._store[key] = (expires_at, value)
            self._store.move_to_end(key)
            if len(self._store) > self.maxsize:
                self._store.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class RedisBaselineCache:
    """
    Redis-backed cache shared by several pipeline processes.

    Uses SETEX so expiry is enforced by Redis itself.
    """

    def __init__(self, client: "redis.Redis") -> None:
        self._client = client

    @classmethod
    def from_config(cls, settings: RedisConfig) -> "RedisBaselineCache":
        client = redis.Redis.from_url(
            settings.url,
            socket_timeout=settings.socket_timeout,
            socket_connect_timeout=settings.socket_timeout,
        )
        logger.info("Using Redis baseline cache at %s", settings.url)
        return cls(client)

    def get(self, key: str) -> Optional[bytes]:
        return self._client.get(key)

    def set_with_ttl(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._client.setex(key, ttl_seconds, value)
