"""Render-ready dicts for the catalog templates and JSON views.

Nothing here fetches or mutates; each function is a pure function of a
snapshot (or a product) plus display settings.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from marinecatalog.modules.catalog.view_model import VIEW_MODES, CatalogSnapshot
from marinecatalog.modules.commerce.categories import ALL, CATEGORIES
from marinecatalog.modules.commerce.types import Product

DEFAULT_PLACEHOLDER = "https://via.placeholder.com/400x300?text=No+Image"


def format_price(product: Product, currency_symbol: str = "$") -> Optional[str]:
    """Pre-formatted display price wins; otherwise symbol + two decimals."""
    if product.display_price:
        return product.display_price
    if product.price is None:
        return None
    amount = Decimal(product.price).quantize(Decimal("0.01"))
    return f"{currency_symbol}{amount:,.2f}"


def product_card(
    product: Product,
    view_mode: str = "grid",
    currency_symbol: str = "$",
    placeholder_url: str = DEFAULT_PLACEHOLDER,
) -> Dict[str, Any]:
    image = product.primary_image
    card = {
        "id": product.id,
        "title": product.title,
        "manufacturer": product.manufacturer or None,
        "category": product.category_name or None,
        "price": format_price(product, currency_symbol),
        "sku": product.sku or None,
        "image_url": image.url if image and image.url else placeholder_url,
        "image_alt": (image.alt_text if image and image.alt_text else product.title),
        # Swapped in by the template if the image fails to load
        "fallback_image_url": placeholder_url,
        "view_mode": view_mode,
    }
    if view_mode == "list":
        card["description"] = product.description
    return card


def filter_sidebar(snapshot: CatalogSnapshot, categories: Sequence[str] = CATEGORIES) -> Dict[str, Any]:
    selected = snapshot.intent.category
    options = [{"value": ALL, "label": "All Categories", "selected": selected == ALL}]
    options += [{"value": c, "label": c, "selected": selected == c} for c in categories]
    return {
        "options": options,
        "search": snapshot.intent.search,
        "show_clear": selected != ALL or bool(snapshot.intent.search),
    }


def pagination_controls(page: int, total_pages: int) -> Dict[str, Any]:
    total_pages = max(1, total_pages)
    page = min(max(1, page), total_pages)
    return {
        "page": page,
        "total_pages": total_pages,
        "label": f"Page {page} of {total_pages}",
        "has_previous": page > 1,
        "has_next": page < total_pages,
        "previous_page": page - 1 if page > 1 else None,
        "next_page": page + 1 if page < total_pages else None,
        "visible": total_pages > 1,
    }


def view_mode_toggle(current: str) -> List[Dict[str, Any]]:
    labels = {"grid": "Grid view", "list": "List view"}
    return [{"value": m, "label": labels[m], "active": m == current} for m in VIEW_MODES]


def results_summary(snapshot: CatalogSnapshot) -> str:
    count = len(snapshot.products)
    if snapshot.intent.is_search:
        return f"{count} products found"
    return f"Showing {count} of {snapshot.total} products"


def connection_badge(snapshot: CatalogSnapshot) -> Dict[str, Any]:
    status = snapshot.connection
    if not status.is_connected:
        return {"label": "Disconnected", "tone": "error"}
    if status.using_live_data:
        return {"label": "Live", "tone": "ok"}
    return {"label": "Offline catalog", "tone": "muted"}


def catalog_page(
    snapshot: CatalogSnapshot,
    currency_symbol: str = "$",
    placeholder_url: str = DEFAULT_PLACEHOLDER,
) -> Dict[str, Any]:
    """Everything the catalog template needs, in one dict."""
    return {
        "cards": [
            product_card(p, snapshot.view_mode, currency_symbol, placeholder_url) for p in snapshot.products
        ],
        "sidebar": filter_sidebar(snapshot),
        "pagination": pagination_controls(snapshot.intent.page, snapshot.total_pages),
        "view_modes": view_mode_toggle(snapshot.view_mode),
        "summary": results_summary(snapshot),
        "connection": connection_badge(snapshot),
        "view_mode": snapshot.view_mode,
        "error": snapshot.error,
        "is_empty": snapshot.error is None and not snapshot.products,
        "is_search": snapshot.intent.is_search,
        "loading": snapshot.loading,
        "searching": snapshot.searching,
    }
