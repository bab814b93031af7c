"""
Accelerator cache for secret payloads.

The cache is never authoritative: it only saves a database read of the
payload bytes. Every backend call goes through ``SecretCache._isolated``, which
logs the failure and degrades to a miss, so a dead or corrupt cache can slow a
request down but never change its outcome.
"""

from __future__ import annotations

import base64
import binascii
import json
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import redis
import structlog

from burnlink.config import Settings
from burnlink.services.errors import CacheWarning

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry:
    ciphertext: bytes
    iv: bytes
    password_required: bool = False

    def serialize(self) -> str:
        return json.dumps(
            {
                "ciphertext": base64.b64encode(self.ciphertext).decode(),
                "iv": base64.b64encode(self.iv).decode(),
                "password_required": self.password_required,
            }
        )

    @staticmethod
    def deserialize(raw: str | bytes) -> CacheEntry:
        try:
            data = json.loads(raw)
            return CacheEntry(
                ciphertext=base64.b64decode(data["ciphertext"], validate=True),
                iv=base64.b64decode(data["iv"], validate=True),
                password_required=bool(data.get("password_required", False)),
            )
        except (ValueError, TypeError, KeyError, binascii.Error) as e:
            raise CacheWarning("corrupt cache entry") from e


class CacheBackend:
    def get(self, key: str) -> str | bytes | None:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_seconds: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def delete(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class NullCacheBackend(CacheBackend):
    """Cache disabled: every read misses, every write is dropped."""

    def get(self, key: str) -> None:
        return None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None


class MemoryCacheBackend(CacheBackend):
    """Per-process cache with monotonic expiry. Suitable for a single worker."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= now:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = time.monotonic()
        with self._lock:
            # Entries that expire unread are only reclaimed here
            expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (value, now + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisCacheBackend(CacheBackend):
    def __init__(self, url: str, socket_timeout: float = 0.5) -> None:
        self.redis = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def get(self, key: str) -> bytes | None:
        return self.redis.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.redis.set(key, value, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self.redis.delete(key)


class SecretCache:
    def __init__(self, backend: CacheBackend, key_prefix: str = "secret:") -> None:
        self.backend = backend
        self.key_prefix = key_prefix

    def key(self, secret_id: str) -> str:
        return f"{self.key_prefix}{secret_id}"

    def _isolated(self, operation: str, secret_id: str, call: Callable[[], T]) -> T | None:
        try:
            return call()
        except Exception as e:
            logger.warning(
                "cache_unavailable",
                operation=operation,
                secret_ref=secret_id[:4],
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def put(self, secret_id: str, entry: CacheEntry, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            return
        self._isolated(
            "set",
            secret_id,
            lambda: self.backend.set(self.key(secret_id), entry.serialize(), ttl_seconds),
        )

    def get(self, secret_id: str) -> CacheEntry | None:
        def load() -> CacheEntry | None:
            raw = self.backend.get(self.key(secret_id))
            return CacheEntry.deserialize(raw) if raw is not None else None

        return self._isolated("get", secret_id, load)

    def evict(self, secret_id: str) -> None:
        self._isolated("delete", secret_id, lambda: self.backend.delete(self.key(secret_id)))


def build_cache(settings: Settings) -> SecretCache:
    """Build the cache selected by ``settings.cache_backend``."""
    if settings.cache_backend == "redis":
        if not settings.redis_url:
            raise RuntimeError("REDIS_URL is required when CACHE_BACKEND=redis")
        backend: CacheBackend = RedisCacheBackend(
            settings.redis_url, socket_timeout=settings.cache_socket_timeout_seconds
        )
    elif settings.cache_backend == "memory":
        backend = MemoryCacheBackend()
    else:
        backend = NullCacheBackend()
    logger.info("cache_configured", backend=settings.cache_backend)
    return SecretCache(backend, key_prefix=settings.cache_key_prefix)
