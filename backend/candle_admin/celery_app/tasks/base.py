"""
Base task class — logging hooks, async helper, and lazy worker-local DI.
Version: 1.0.0
"""
import asyncio
import logging
from celery import Task

logger = logging.getLogger(__name__)


class BaseTask(Task):
    """Base task with common functionality for all workers."""

    abstract = True

    # No autoretry: tasks declare their own retry policy explicitly.
    max_retries = 0

    track_started = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(f"Task {self.name}[{task_id}] failed: {exc}")

    def on_success(self, retval, task_id, args, kwargs):
        logger.info(f"Task {self.name}[{task_id}] succeeded")


# ============================================
# Async Helper
# ============================================
def run_async(coro):
    """
    Run async function in sync context.

    Each call creates a new event loop to avoid conflicts.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ============================================
# Dependency helpers (lazy loading, worker-local)
# ============================================
_dependencies = None


def get_dependencies():
    """
    Lazy load dependencies.

    Called after fork so each worker gets its own Redis and HTTP clients.
    """
    global _dependencies
    if _dependencies is None:
        # Lazy imports: circular dependency avoidance
        from candle_admin.core.config import settings
        from candle_admin.clients.shopify_client import ShopifyClient
        from candle_admin.db.progress_store import build_progress_store
        from candle_admin.services.deployment_service import DeploymentService
        from candle_admin.services.shopify_catalog_service import ShopifyCatalogService
        from candle_admin.utils.deployment_lock import build_deployment_lock

        progress_store = build_progress_store(settings)
        catalog = ShopifyCatalogService(ShopifyClient(settings), settings)

        _dependencies = {
            "settings": settings,
            "progress_store": progress_store,
            "deployment_service": DeploymentService(
                catalog=catalog,
                lock=build_deployment_lock(settings),
                progress_store=progress_store,
            ),
        }
    return _dependencies


def get_deployment_service():
    return get_dependencies()["deployment_service"]


def get_progress_store():
    return get_dependencies()["progress_store"]
