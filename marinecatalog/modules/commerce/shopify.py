"""Shopify Admin REST client.

Shopify paginates with opaque cursors (the `page_info` parameter carried in the
`Link` response header), while the catalog pages by number. To serve page N we
walk cursors from the nearest page we have already seen, fetching only product
ids for the pages in between. Cursors are remembered per query so paging
forward and back is usually a single request.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from marinecatalog.modules.commerce.client import CommerceClient, CommerceError
from marinecatalog.modules.commerce.types import (
    DISCONNECTED,
    ConnectionStatus,
    Pagination,
    Product,
    ProductImage,
    ProductPage,
    ProductVariant,
    page_count,
)

logger = logging.getLogger(__name__)

# Shopify rejects larger `limit` values
MAX_SHOPIFY_LIMIT = 250
# How many distinct queries keep their cursor chains
CURSOR_CACHE_SIZE = 64

_TAG_RE = re.compile(r"<[^>]+>")


class ShopifyClient(CommerceClient):
    """Product listing/search against one Shopify store."""

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = "2024-07",
        timeout: float = 15.0,
        max_retries: int = 2,
        session: Optional[requests.Session] = None,
    ):
        domain = store_domain.strip().rstrip("/")
        for prefix in ("https://", "http://"):
            if domain.startswith(prefix):
                domain = domain[len(prefix):]
        self.store_domain = domain
        self.base_url = f"https://{domain}/admin/api/{api_version}"
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            "X-Shopify-Access-Token": access_token,
            "Accept": "application/json",
        })
        if session is None:
            retry = Retry(
                total=max_retries,
                backoff_factor=0.5,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=frozenset({"GET"}),
                respect_retry_after_header=True,
                raise_on_status=False,
            )
            self.session.mount("https://", HTTPAdapter(max_retries=retry))

        self._status = DISCONNECTED
        self._lock = threading.Lock()
        self._cursors: "OrderedDict[Tuple, List[Optional[str]]]" = OrderedDict()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_products(
        self,
        page: int,
        page_size: int,
        search_term: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ProductPage:
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_SHOPIFY_LIMIT))

        filters: Dict[str, str] = {"status": "active"}
        if category:
            filters["product_type"] = category
        if search_term and search_term.strip():
            filters["title"] = search_term.strip()

        total = self._count(filters)
        total_pages = page_count(total, page_size)
        products = self._fetch_page(filters, page_size, page) if page <= total_pages else []

        self._set_status(True)
        logger.info(
            "Shopify page %s/%s (%s products, category=%s)", page, total_pages, len(products), category or "all"
        )
        return ProductPage(data=products, pagination=Pagination(total=total, total_pages=total_pages))

    def search_products(self, query: str, limit: int) -> List[Product]:
        params = {
            "status": "active",
            "title": query.strip(),
            "limit": max(1, min(limit, MAX_SHOPIFY_LIMIT)),
        }
        resp = self._get("products.json", params)
        products = [self._to_product(raw) for raw in self._payload(resp, "products")]
        self._set_status(True)
        logger.info("Shopify search %r returned %s products", query, len(products))
        return products

    def get_connection_status(self) -> ConnectionStatus:
        return self._status

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_status(self, connected: bool) -> None:
        self._status = ConnectionStatus(is_connected=connected, using_live_data=connected)

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        url = f"{self.base_url}/{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            self._set_status(False)
            logger.warning("Shopify request to %s failed: %s", path, exc)
            raise CommerceError("Could not reach the store. Please try again.") from exc

        if resp.status_code >= 400:
            self._set_status(False)
            logger.warning("Shopify %s returned HTTP %s", path, resp.status_code)
            if resp.status_code in (401, 403):
                message = "The store rejected our credentials."
            elif resp.status_code == 429:
                message = "The store is busy right now. Please try again shortly."
            else:
                message = f"The store returned an error (HTTP {resp.status_code})."
            raise CommerceError(message, status_code=resp.status_code)
        return resp

    def _payload(self, resp: requests.Response, key: str) -> Any:
        try:
            data = resp.json()
        except ValueError as exc:
            self._set_status(False)
            raise CommerceError("The store sent a malformed response.") from exc
        if not isinstance(data, dict) or key not in data:
            self._set_status(False)
            raise CommerceError("The store sent a malformed response.")
        return data[key]

    def _count(self, filters: Dict[str, str]) -> int:
        resp = self._get("products/count.json", dict(filters))
        try:
            return int(self._payload(resp, "count"))
        except (TypeError, ValueError) as exc:
            self._set_status(False)
            raise CommerceError("The store sent a malformed response.") from exc

    def _fetch_page(self, filters: Dict[str, str], page_size: int, page: int) -> List[Product]:
        key = (tuple(sorted(filters.items())), page_size)
        with self._lock:
            cursors = list(self._cursors.get(key) or [None])

        # cursors[i] opens page i + 1; page 1 needs no cursor
        current = min(page, len(cursors))
        cursor = cursors[current - 1]
        while True:
            params: Dict[str, Any] = {"limit": page_size}
            if cursor is None:
                params.update(filters)
            else:
                # Shopify forbids filter params alongside page_info
                params["page_info"] = cursor
            if current < page:
                params["fields"] = "id"

            resp = self._get("products.json", params)
            raw_products = self._payload(resp, "products")
            next_cursor = _next_page_info(resp)
            if next_cursor and len(cursors) == current:
                cursors.append(next_cursor)

            if current == page:
                products = [self._to_product(raw) for raw in raw_products]
                break
            if not next_cursor:
                products = []
                break
            cursor = next_cursor
            current += 1

        with self._lock:
            self._cursors[key] = cursors
            self._cursors.move_to_end(key)
            while len(self._cursors) > CURSOR_CACHE_SIZE:
                self._cursors.popitem(last=False)
        return products

    def _to_product(self, raw: Dict[str, Any]) -> Product:
        variants = raw.get("variants") or []
        raw_images = sorted(raw.get("images") or [], key=lambda i: i.get("position") or 0)
        featured_id = (raw.get("image") or {}).get("id")

        images = []
        for idx, img in enumerate(raw_images):
            is_primary = img.get("id") == featured_id if featured_id else idx == 0
            images.append(ProductImage(
                id=str(img.get("id", idx)),
                url=img.get("src") or "",
                alt_text=img.get("alt"),
                is_primary=is_primary,
            ))

        sku = next((v.get("sku") for v in variants if v.get("sku")), None)
        price = _decimal(variants[0].get("price")) if variants else None
        body = raw.get("body_html")
        description = _TAG_RE.sub("", body).strip() if body else None

        return Product(
            id=str(raw.get("id")),
            title=raw.get("title") or "",
            manufacturer=raw.get("vendor") or "",
            category_name=raw.get("product_type") or "",
            sku=sku,
            price=price,
            description=description or None,
            images=tuple(images),
            variants=tuple(
                ProductVariant(id=str(v.get("id")), sku=v.get("sku") or None, inventory_qty=v.get("inventory_quantity"))
                for v in variants
            ),
        )


def _next_page_info(resp: requests.Response) -> Optional[str]:
    link = resp.links.get("next")
    if not link or not link.get("url"):
        return None
    return parse_qs(urlparse(link["url"]).query).get("page_info", [None])[0]


def _decimal(raw: Any) -> Optional[Decimal]:
    if raw in (None, ""):
        return None
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return None
