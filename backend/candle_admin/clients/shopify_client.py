"""
Shopify client — Admin API transport (REST + GraphQL) with typed responses.

No retries here: failed calls raise and the caller decides.
Version: 1.0.0
"""
import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from candle_admin.core.config import Settings
from candle_admin.core.exceptions import (
    ConnectionTimeoutError,
    ExternalAPIError,
    RateLimitError,
)

logger = logging.getLogger("shopify_client")

T = TypeVar("T", bound=BaseModel)


class ShopifyClient:
    def __init__(self, settings: Settings) -> None:
        raw_domain = settings.shopify_store_domain
        self._store_domain = self._normalize_store_domain(raw_domain)
        self._token = settings.shopify_admin_api_token
        self._api_version = settings.shopify_api_version
        logger.info(f"ShopifyClient initialized: domain={self._store_domain} (raw: {raw_domain}), api_version={self._api_version}")

    @property
    def store_domain(self) -> Optional[str]:
        return self._store_domain

    @staticmethod
    def _normalize_store_domain(domain: Optional[str]) -> Optional[str]:
        """
        Normalize Shopify store domain to ensure it has .myshopify.com suffix.

        Handles these formats:
        - "my-store" -> "my-store.myshopify.com"
        - "my-store.myshopify.com" -> "my-store.myshopify.com" (unchanged)
        - "https://my-store.myshopify.com" -> "my-store.myshopify.com" (strips protocol)
        - "https://my-store.myshopify.com/admin/api/2025-07/graphql.json" -> "my-store.myshopify.com"
        """
        if not domain:
            return domain

        domain = domain.replace("https://", "").replace("http://", "")

        # A full Admin API URL may be configured; keep only the host
        domain = domain.split("/", 1)[0]

        if not domain.endswith(".myshopify.com"):
            domain = f"{domain}.myshopify.com"

        return domain

    def to_gid(self, entity: str, value: str | int) -> str:
        if isinstance(value, str) and value.startswith("gid://"):
            return value
        return f"gid://shopify/{entity}/{value}"

    def _base_url(self) -> str:
        if not self._store_domain or not self._token:
            raise ExternalAPIError("Shopify", "SHOPIFY_STORE_DOMAIN / SHOPIFY_ADMIN_API_TOKEN not configured")
        return f"https://{self._store_domain}/admin/api/{self._api_version}"

    async def call_shopify(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        base = self._base_url()
        url = f"{base}{path}"
        logger.info("shopify request method=%s path=%s params=%s", method, path, params)

        headers = {
            "X-Shopify-Access-Token": self._token or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.request(method=method, url=url, headers=headers, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise ConnectionTimeoutError(f"Shopify request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            raise ConnectionTimeoutError(f"Shopify connection failed: {exc}") from exc

        logger.info("shopify response status=%s path=%s", resp.status_code, path)
        if resp.status_code == 429:
            retry_after = int(float(resp.headers.get("Retry-After", "2")))
            raise RateLimitError("Shopify", retry_after=retry_after)
        if resp.status_code >= 400:
            raise ExternalAPIError("Shopify", resp.text, status_code=resp.status_code)

        if resp.text:
            return resp.json()
        return {}

    async def call_shopify_graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        data = await self.call_shopify("POST", "/graphql.json", json=payload)
        if data.get("errors"):
            messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in data["errors"]]
            raise ExternalAPIError("Shopify", "GraphQL error: " + "\n".join(messages), status_code=502)
        return data

    async def query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        model: Optional[Type[T]] = None,
    ) -> Any:
        """
        Run a GraphQL document and return its ``data`` payload.

        With ``model`` the payload is validated into that pydantic type, so a
        malformed response fails here rather than deep in a caller.
        """
        result = await self.call_shopify_graphql(query, variables)
        data = result.get("data")
        if data is None:
            raise ExternalAPIError("Shopify", "GraphQL response has no data", status_code=502)
        if model is None:
            return data
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ExternalAPIError(
                "Shopify", f"unexpected {model.__name__} payload: {exc.error_count()} error(s)", status_code=502,
            ) from exc
