from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from marinecatalog.modules.commerce.types import ConnectionStatus, Product, ProductPage

logger = logging.getLogger(__name__)


class CommerceError(Exception):
    """Raised when a commerce backend cannot answer a list/search call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CommerceClient(ABC):
    """Contract every product source (live store or local catalog) implements."""

    @abstractmethod
    def get_products(
        self,
        page: int,
        page_size: int,
        search_term: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ProductPage:
        """Return one page of products plus total / total_pages."""

    @abstractmethod
    def search_products(self, query: str, limit: int) -> List[Product]:
        """Free-text search; a flat list with no pagination metadata."""

    @abstractmethod
    def get_connection_status(self) -> ConnectionStatus:
        """Last known connection state. Never performs I/O."""


def build_commerce_client(config: Mapping) -> CommerceClient:
    """Pick the product source from app config.

    COMMERCE_BACKEND=auto uses Shopify when a store domain and token are set,
    otherwise the local catalog tables.
    """
    from marinecatalog.modules.commerce.local import LocalCatalogClient
    from marinecatalog.modules.commerce.shopify import ShopifyClient

    backend = (config.get("COMMERCE_BACKEND") or "auto").strip().lower()
    has_credentials = bool(config.get("SHOPIFY_STORE_DOMAIN") and config.get("SHOPIFY_ACCESS_TOKEN"))

    if backend == "auto":
        backend = "shopify" if has_credentials else "local"

    if backend == "shopify":
        if not has_credentials:
            raise ValueError("COMMERCE_BACKEND=shopify requires SHOPIFY_STORE_DOMAIN and SHOPIFY_ACCESS_TOKEN")
        logger.info("Using Shopify catalog at %s", config["SHOPIFY_STORE_DOMAIN"])
        return ShopifyClient(
            store_domain=config["SHOPIFY_STORE_DOMAIN"],
            access_token=config["SHOPIFY_ACCESS_TOKEN"],
            api_version=config.get("SHOPIFY_API_VERSION", "2024-07"),
            timeout=float(config.get("SHOPIFY_TIMEOUT", 15)),
            max_retries=int(config.get("SHOPIFY_MAX_RETRIES", 2)),
        )

    if backend == "local":
        logger.info("Using local catalog (offline data)")
        return LocalCatalogClient()

    raise ValueError(f"Unknown COMMERCE_BACKEND: {backend!r}")
