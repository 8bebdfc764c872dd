"""Per-job run guards: the same job never runs twice at the same time.

The in-memory guard covers one agent process. With RUN_GUARD_SETTINGS
``use_redis`` on, a Redis lock (SET NX PX) covers every agent sharing the
Redis server; the TTL releases locks held by crashed workers.
"""
from __future__ import annotations

import threading
import uuid
from typing import Optional, Protocol

import redis

from jobagent.config import RUN_GUARD_SETTINGS
from jobagent.utils import get_logger

logger = get_logger(__name__)

# Delete the key only if we still own it
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class RunGuard(Protocol):
    def acquire(self, job_name: str) -> Optional[str]: ...
    def release(self, job_name: str, token: str) -> None: ...


class InMemoryRunGuard:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._held: dict[str, str] = {}

    def acquire(self, job_name: str) -> Optional[str]:
        with self._lock:
            if job_name in self._held:
                return None
            token = uuid.uuid4().hex
            self._held[job_name] = token
            return token

    def release(self, job_name: str, token: str) -> None:
        with self._lock:
            if self._held.get(job_name) == token:
                del self._held[job_name]

    def held(self) -> list[str]:
        with self._lock:
            return sorted(self._held)


class RedisRunGuard:
    def __init__(self, client: "redis.Redis", *, key_prefix: str | None = None, ttl_seconds: int | None = None) -> None:
        self._client = client
        self._prefix = str(key_prefix if key_prefix is not None else RUN_GUARD_SETTINGS.get("key_prefix", "jobagent:run:"))
        ttl = ttl_seconds if ttl_seconds is not None else RUN_GUARD_SETTINGS.get("ttl_seconds", 3600)
        self._ttl_ms = int(ttl) * 1000  # type: ignore[arg-type]
        self._release = client.register_script(_RELEASE_SCRIPT)

    def _key(self, job_name: str) -> str:
        return f"{self._prefix}{job_name}"

    def acquire(self, job_name: str) -> Optional[str]:
        token = uuid.uuid4().hex
        if self._client.set(self._key(job_name), token, nx=True, px=self._ttl_ms):
            return token
        return None

    def release(self, job_name: str, token: str) -> None:
        try:
            self._release(keys=[self._key(job_name)], args=[token])
        except redis.RedisError as e:
            # The TTL frees the lock eventually
            logger.warning("Failed to release run guard", job=job_name, error=str(e))

    def health_check(self) -> bool:
        try:
            return bool(self._client.ping())
        except (redis.RedisError, ConnectionError):
            return False


def create_run_guard() -> InMemoryRunGuard | RedisRunGuard:
    """Redis guard when configured and reachable, in-memory guard otherwise."""
    if RUN_GUARD_SETTINGS.get("use_redis", False):
        url = str(RUN_GUARD_SETTINGS.get("redis_url", "redis://localhost:6379/0"))
        timeout = float(RUN_GUARD_SETTINGS.get("health_check_timeout", 2))  # type: ignore[arg-type]
        try:
            client = redis.from_url(url, socket_connect_timeout=timeout, decode_responses=True)
            guard = RedisRunGuard(client)
            if guard.health_check():
                logger.info("Using Redis run guard", url=url)
                return guard
            logger.warning("Redis unreachable, using in-memory run guard", url=url)
        except (redis.RedisError, ConnectionError, ValueError) as e:
            logger.warning("Error initializing Redis run guard, using in-memory run guard", error=str(e))
    logger.info("Using in-memory run guard")
    return InMemoryRunGuard()


__all__ = ["RunGuard", "InMemoryRunGuard", "RedisRunGuard", "create_run_guard"]
