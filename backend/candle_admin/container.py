"""
Lazy DI container — singleton access to clients, stores, and services.

Works in both FastAPI (async) and Celery (sync) contexts.
Import individual getters to avoid circular imports.
Version: 1.0.0
"""

from functools import lru_cache

from candle_admin.core.config import settings
from candle_admin.clients.shopify_client import ShopifyClient
from candle_admin.clients.gemini_client import GeminiClient
from candle_admin.db.progress_store import ProgressStore, build_progress_store
from candle_admin.services.shopify_catalog_service import ShopifyCatalogService
from candle_admin.services.deployment_service import DeploymentService
from candle_admin.services.description_service import DescriptionService
from candle_admin.utils.deployment_lock import DeploymentLock, build_deployment_lock


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_shopify_client():
    return ShopifyClient(settings)


@lru_cache(maxsize=1)
def get_gemini_client():
    return GeminiClient(
        api_key=settings.gemini_api_key or "",
        model=settings.gemini_model,
    )


# -- Stores & locks --------------------------------------------------------

@lru_cache(maxsize=1)
def get_progress_store() -> ProgressStore:
    return build_progress_store(settings)


@lru_cache(maxsize=1)
def get_deployment_lock() -> DeploymentLock:
    return build_deployment_lock(settings)


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_catalog_service():
    return ShopifyCatalogService(get_shopify_client(), settings)


@lru_cache(maxsize=1)
def get_deployment_service():
    return DeploymentService(
        catalog=get_catalog_service(),
        lock=get_deployment_lock(),
        progress_store=get_progress_store(),
    )


@lru_cache(maxsize=1)
def get_description_service():
    return DescriptionService(get_gemini_client())
