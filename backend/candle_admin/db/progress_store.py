"""
Progress store — per-run deployment progress events with time-based expiry.

Two backends behind one interface:
- InMemoryProgressStore: dict of lists, single API process
- RedisProgressStore: list per run plus a sorted set of run timestamps,
  shared between the API and Celery workers

Runs whose last event is older than the retention window are dropped by
expire(), which the API lifespan sweeper or the Celery beat task calls.
Version: 1.0.0
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

import redis

from candle_admin.core.config import Settings
from candle_admin.schemas.deployment import DeploymentProgress

logger = logging.getLogger("progress_store")

_RUN_KEY = "deploy_progress:{run_id}"
_RUNS_INDEX_KEY = "deploy_progress:runs"


class ProgressStore(ABC):
    """Append-only event log keyed by run id."""

    def __init__(self, retention_seconds: int = 300) -> None:
        self.retention_seconds = retention_seconds

    @abstractmethod
    def append(self, run_id: str, event: DeploymentProgress) -> None:
        ...

    @abstractmethod
    def list(self, run_id: str) -> List[DeploymentProgress]:
        """Events for a run in append order; empty for unknown or expired runs."""
        ...

    @abstractmethod
    def expire(self, now: float | None = None) -> int:
        """Drop runs idle longer than the retention window. Returns how many."""
        ...


class InMemoryProgressStore(ProgressStore):
    def __init__(self, retention_seconds: int = 300) -> None:
        super().__init__(retention_seconds)
        self._runs: Dict[str, Tuple[float, List[DeploymentProgress]]] = {}
        self._mutex = threading.Lock()

    def append(self, run_id: str, event: DeploymentProgress) -> None:
        with self._mutex:
            _, events = self._runs.get(run_id, (0.0, []))
            events.append(event)
            self._runs[run_id] = (time.time(), events)

    def list(self, run_id: str) -> List[DeploymentProgress]:
        with self._mutex:
            _, events = self._runs.get(run_id, (0.0, []))
            return list(events)

    def expire(self, now: float | None = None) -> int:
        cutoff = (now if now is not None else time.time()) - self.retention_seconds
        with self._mutex:
            stale = [run_id for run_id, (touched, _) in self._runs.items() if touched < cutoff]
            for run_id in stale:
                del self._runs[run_id]
        if stale:
            logger.info("progress expired runs=%s", len(stale))
        return len(stale)


class RedisProgressStore(ProgressStore):
    def __init__(self, client: redis.Redis, retention_seconds: int = 300) -> None:
        super().__init__(retention_seconds)
        self._redis = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisProgressStore":
        client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        return cls(client, retention_seconds=settings.progress_retention_seconds)

    def append(self, run_id: str, event: DeploymentProgress) -> None:
        key = _RUN_KEY.format(run_id=run_id)
        pipe = self._redis.pipeline()
        pipe.rpush(key, event.model_dump_json())
        # Key TTL is a backstop in case no sweeper runs
        pipe.expire(key, self.retention_seconds * 2)
        pipe.zadd(_RUNS_INDEX_KEY, {run_id: time.time()})
        pipe.execute()

    def list(self, run_id: str) -> List[DeploymentProgress]:
        raw = self._redis.lrange(_RUN_KEY.format(run_id=run_id), 0, -1)
        return [DeploymentProgress.model_validate_json(item) for item in raw]

    def expire(self, now: float | None = None) -> int:
        cutoff = (now if now is not None else time.time()) - self.retention_seconds
        stale = self._redis.zrangebyscore(_RUNS_INDEX_KEY, "-inf", cutoff)
        if not stale:
            return 0
        pipe = self._redis.pipeline()
        for run_id in stale:
            pipe.delete(_RUN_KEY.format(run_id=run_id))
        pipe.zrem(_RUNS_INDEX_KEY, *stale)
        pipe.execute()
        logger.info("progress expired runs=%s", len(stale))
        return len(stale)


def build_progress_store(settings: Settings) -> ProgressStore:
    if settings.progress_store_backend == "redis":
        return RedisProgressStore.from_settings(settings)
    return InMemoryProgressStore(retention_seconds=settings.progress_retention_seconds)
