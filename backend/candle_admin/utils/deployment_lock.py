"""
Deployment lock — at most one in-flight deployment per catalog.

The in-memory lease covers a single API process. The Redis lease (SET NX EX
with an owner token) covers the API and Celery workers together; its TTL
frees the lease if a worker dies mid-run.
Version: 1.0.0
"""
import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import redis

from candle_admin.core.config import Settings
from candle_admin.core.exceptions import DeploymentInProgressError

logger = logging.getLogger(__name__)

_LOCK_KEY = "deploy_lock:{catalog_id}"

# Compare-and-delete so a lease that expired and was re-acquired by
# someone else is never released by the old owner.
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class DeploymentLock:
    """Base lease. Subclasses implement acquire/release."""

    def acquire(self, catalog_id: str, owner: str) -> bool:
        raise NotImplementedError

    def release(self, catalog_id: str, owner: str) -> None:
        raise NotImplementedError

    def holder(self, catalog_id: str) -> Optional[str]:
        raise NotImplementedError

    @asynccontextmanager
    async def hold(self, catalog_id: str, owner: str) -> AsyncIterator[None]:
        """Hold the lease for the duration of the block or raise DeploymentInProgressError."""
        if not self.acquire(catalog_id, owner):
            raise DeploymentInProgressError(catalog_id, holder=self.holder(catalog_id))
        try:
            yield
        finally:
            self.release(catalog_id, owner)


class InMemoryDeploymentLock(DeploymentLock):
    def __init__(self) -> None:
        self._owners: Dict[str, str] = {}
        self._mutex = threading.Lock()

    def acquire(self, catalog_id: str, owner: str) -> bool:
        with self._mutex:
            if catalog_id in self._owners:
                logger.info(f"Deployment lock HELD: catalog={catalog_id}, holder={self._owners[catalog_id]}")
                return False
            self._owners[catalog_id] = owner
        logger.info(f"Deployment lock ACQUIRED: catalog={catalog_id}, owner={owner}")
        return True

    def release(self, catalog_id: str, owner: str) -> None:
        with self._mutex:
            if self._owners.get(catalog_id) == owner:
                del self._owners[catalog_id]
        logger.debug(f"Deployment lock released: catalog={catalog_id}")

    def holder(self, catalog_id: str) -> Optional[str]:
        with self._mutex:
            return self._owners.get(catalog_id)


class RedisDeploymentLock(DeploymentLock):
    def __init__(self, client: redis.Redis, ttl_seconds: int = 900) -> None:
        self._redis = client
        self._ttl = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisDeploymentLock":
        client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        return cls(client, ttl_seconds=settings.deployment_lock_ttl_seconds)

    def acquire(self, catalog_id: str, owner: str) -> bool:
        key = _LOCK_KEY.format(catalog_id=catalog_id)
        acquired = self._redis.set(key, owner, nx=True, ex=self._ttl)
        if acquired:
            logger.info(f"Deployment lock ACQUIRED: catalog={catalog_id}, owner={owner}, ttl={self._ttl}s")
        else:
            logger.info(f"Deployment lock HELD: catalog={catalog_id}, holder={self._redis.get(key)}")
        return bool(acquired)

    def release(self, catalog_id: str, owner: str) -> None:
        self._redis.eval(_RELEASE_SCRIPT, 1, _LOCK_KEY.format(catalog_id=catalog_id), owner)
        logger.debug(f"Deployment lock released: catalog={catalog_id}")

    def holder(self, catalog_id: str) -> Optional[str]:
        return self._redis.get(_LOCK_KEY.format(catalog_id=catalog_id))


def build_deployment_lock(settings: Settings) -> DeploymentLock:
    if settings.deployment_lock_backend == "redis":
        return RedisDeploymentLock.from_settings(settings)
    return InMemoryDeploymentLock()
