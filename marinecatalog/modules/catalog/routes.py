from __future__ import annotations

import logging

from flask import Blueprint, current_app, request

from marinecatalog.app.common.errors import abort_json
from marinecatalog.app.common.json import ok
from marinecatalog.app.common.validation import get_json, parse_int, require_fields
from marinecatalog.modules.catalog.sessions import commerce_client, current_view_model
from marinecatalog.modules.catalog.view_model import InvalidIntent
from marinecatalog.modules.commerce.categories import ALL, CATEGORIES, category_filter, normalize_category
from marinecatalog.modules.commerce.client import CommerceError

logger = logging.getLogger(__name__)

bp = Blueprint("catalog", __name__)


def _commerce_unavailable(exc: CommerceError) -> None:
    abort_json(
        502,
        "commerce_unavailable",
        exc.message,
        {"upstream_status": exc.status_code} if exc.status_code else None,
    )


@bp.get("/products")
def list_products():
    """GET /api/products - One page of products, straight from the commerce backend.

    Query params:
      - page: >= 1 (default 1)
      - page_size: 1..MAX_PAGE_SIZE (default CATALOG_PAGE_SIZE)
      - category: one of /api/categories, or ALL
      - q: optional title filter applied to the listing
    """
    cfg = current_app.config
    page = parse_int(request.args.get("page"), "page", 1)
    if page < 1:
        abort_json(400, "validation_error", "page must be >= 1", {"field": "page"})
    page_size = parse_int(request.args.get("page_size"), "page_size", cfg["CATALOG_PAGE_SIZE"])
    page_size = max(1, min(page_size, cfg["MAX_PAGE_SIZE"]))

    category = normalize_category(request.args.get("category"))
    if category is None:
        abort_json(400, "validation_error", "Unknown category", {"allowed": [ALL, *CATEGORIES]})
    search = (request.args.get("q") or "").strip() or None

    client = commerce_client()
    try:
        result = client.get_products(page, page_size, search, category_filter(category))
    except CommerceError as exc:
        logger.warning("Product listing failed: %s", exc)
        _commerce_unavailable(exc)

    return {
        "items": [p.to_dict() for p in result.data],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": result.pagination.total,
            "total_pages": result.pagination.total_pages,
        },
        "connection": client.get_connection_status().to_dict(),
    }, 200


@bp.get("/products/search")
def search_products():
    """GET /api/products/search?q=...&limit=... - Flat search results, no paging."""
    cfg = current_app.config
    query = (request.args.get("q") or "").strip()
    if not query:
        abort_json(400, "validation_error", "q is required", {"field": "q"})
    limit = parse_int(request.args.get("limit"), "limit", cfg["SEARCH_LIMIT"])
    limit = max(1, min(limit, cfg["SEARCH_LIMIT"]))

    client = commerce_client()
    try:
        results = client.search_products(query, limit)
    except CommerceError as exc:
        logger.warning("Product search failed: %s", exc)
        _commerce_unavailable(exc)

    return {
        "query": query,
        "items": [p.to_dict() for p in results[:limit]],
        "count": min(len(results), limit),
        "connection": client.get_connection_status().to_dict(),
    }, 200


@bp.get("/categories")
def list_categories():
    return {"all": ALL, "categories": list(CATEGORIES)}, 200


@bp.get("/connection")
def connection_status():
    """Last known backend status; does not contact the store."""
    return commerce_client().get_connection_status().to_dict(), 200


# --- Session-backed catalog view (same operations the HTML page uses) ---

@bp.get("/catalog")
def catalog_state():
    vm = current_view_model()
    snapshot = vm.reload() if vm.needs_initial_load else vm.snapshot()
    return _with_toasts(vm, snapshot)


@bp.post("/catalog/<action>")
def catalog_action(action: str):
    """POST /api/catalog/<action> - category | page | search | retry | clear | view."""
    vm = current_view_model()

    try:
        if action == "category":
            data = get_json()
            require_fields(data, ["category"])
            snapshot = vm.set_category(data["category"])
        elif action == "page":
            data = get_json()
            require_fields(data, ["page"])
            snapshot = vm.set_page(parse_int(data["page"], "page"))
        elif action == "search":
            data = get_json()
            require_fields(data, ["query"])
            snapshot = vm.submit_search(str(data["query"] or ""))
        elif action == "retry":
            snapshot = vm.reload()
        elif action == "clear":
            snapshot = vm.clear_filters()
        elif action == "view":
            data = get_json()
            require_fields(data, ["mode"])
            snapshot = vm.set_view_mode(str(data["mode"]))
        else:
            abort_json(404, "not_found", f"Unknown catalog action: {action}")
    except InvalidIntent as exc:
        abort_json(400, "validation_error", str(exc))

    return _with_toasts(vm, snapshot)


def _with_toasts(vm, snapshot):
    payload = snapshot.to_dict()
    payload["toasts"] = [{"level": t.level, "message": t.message} for t in vm.context.drain_toasts()]
    return ok(payload)
