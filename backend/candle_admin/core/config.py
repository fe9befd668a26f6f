import os
from typing import List, Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


def _split_csv(raw: Optional[str]) -> List[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def _optional_int(raw: Optional[str]) -> Optional[int]:
    return int(raw) if raw and raw.strip() else None


class Settings(BaseModel):
    # Firebase Auth (admin dashboard sign-in)
    firebase_project_id: Optional[str] = os.getenv("FIREBASE_PROJECT_ID")
    firebase_jwks_url: str = os.getenv(
        "FIREBASE_JWKS_URL",
        "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com",
    )
    authorized_emails: List[str] = _split_csv(os.getenv("AUTHORIZED_EMAILS"))
    cors_allowed_origins: List[str] = _split_csv(os.getenv("CORS_ALLOWED_ORIGINS", "*"))

    @property
    def firebase_issuer(self) -> str:
        """Get the Firebase ID token issuer."""
        return f"https://securetoken.google.com/{self.firebase_project_id}"

    # Shopify
    shopify_store_domain: str | None = os.getenv("SHOPIFY_STORE_DOMAIN")
    shopify_admin_api_token: str | None = os.getenv("SHOPIFY_ADMIN_API_TOKEN")
    shopify_api_version: str = os.getenv("SHOPIFY_API_VERSION", "2025-07")
    # Sales channel that freshly created vessels are published to (skipped when unset)
    shopify_publication_name: str | None = os.getenv("SHOPIFY_PUBLICATION_NAME")
    shopify_page_size: int = int(os.getenv("SHOPIFY_PAGE_SIZE", "50"))
    # Starting stock for new variants; empty leaves quantities untouched
    shopify_inventory_quantity: int | None = _optional_int(os.getenv("SHOPIFY_INVENTORY_QUANTITY", "999"))

    # Gemini
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-pro")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0"))

    # Deployment progress ("memory" or "redis")
    progress_store_backend: str = os.getenv("PROGRESS_STORE_BACKEND", "memory")
    progress_retention_seconds: int = int(os.getenv("PROGRESS_RETENTION_SECONDS", "300"))
    progress_sweep_interval_seconds: int = int(os.getenv("PROGRESS_SWEEP_INTERVAL_SECONDS", "60"))

    # Single in-flight deployment per store ("memory" or "redis")
    deployment_lock_backend: str = os.getenv("DEPLOYMENT_LOCK_BACKEND", "memory")
    deployment_lock_ttl_seconds: int = int(os.getenv("DEPLOYMENT_LOCK_TTL_SECONDS", "900"))

    @property
    def background_deploys_enabled(self) -> bool:
        """Celery workers only share progress and the lease through Redis."""
        return self.progress_store_backend == "redis" and self.deployment_lock_backend == "redis"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
