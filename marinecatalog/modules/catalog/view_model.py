"""Catalog view model: turns page/category/search intent into commerce calls.

Every intent change issues exactly one fetch (two when a listing has to be
clamped after the catalog shrank) and replaces the displayed result set
wholesale. Switching the view mode never fetches.
Fetches are fenced with a generation counter: only the response to the most
recently issued request may touch display state, so a slow response to an
older click can never overwrite a newer one. One view model may be driven from
several request threads at once; a lock guards the fence and the display
state, but is never held while the commerce backend is being called.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from marinecatalog.modules.catalog.context import CatalogContext
from marinecatalog.modules.commerce.categories import ALL, category_filter, normalize_category
from marinecatalog.modules.commerce.client import CommerceClient, CommerceError
from marinecatalog.modules.commerce.types import ConnectionStatus, Product

logger = logging.getLogger(__name__)

LIST_FAILED = "Failed to load products. Please try again."
SEARCH_FAILED = "Search failed. Please try again."

VIEW_MODES = ("grid", "list")


class InvalidIntent(ValueError):
    """Rejected user input (unknown category, bad page number, bad view mode)."""


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class QueryIntent:
    page: int = 1
    category: str = ALL
    search: str = ""

    @property
    def is_search(self) -> bool:
        return bool(self.search)


@dataclass(frozen=True)
class CatalogSnapshot:
    intent: QueryIntent
    products: Tuple[Product, ...]
    total: int
    total_pages: int
    phase: Phase
    loading: bool
    searching: bool
    error: Optional[str]
    connection: ConnectionStatus
    view_mode: str
    page_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": {
                "page": self.intent.page,
                "category": self.intent.category,
                "search": self.intent.search,
            },
            "items": [p.to_dict() for p in self.products],
            "pagination": {
                "page": self.intent.page,
                "page_size": self.page_size,
                "total": self.total,
                "total_pages": self.total_pages,
            },
            "phase": self.phase.value,
            "loading": self.loading,
            "searching": self.searching,
            "error": self.error,
            "connection": self.connection.to_dict(),
            "view_mode": self.view_mode,
        }


class CatalogViewModel:
    def __init__(
        self,
        client: CommerceClient,
        context: CatalogContext,
        page_size: int = 12,
        search_limit: int = 24,
    ):
        self._client = client
        self._context = context
        self._page_size = page_size
        self._search_limit = search_limit

        self._intent = QueryIntent()
        self._products: List[Product] = []
        self._total = 0
        # Unknown until the first successful fetch
        self._total_pages: Optional[int] = None
        self._phase = Phase.IDLE
        self._loading = False
        self._searching = False
        self._error: Optional[str] = None
        self._view_mode = "grid"
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def intent(self) -> QueryIntent:
        with self._lock:
            return self._intent

    @property
    def context(self) -> CatalogContext:
        return self._context

    @property
    def needs_initial_load(self) -> bool:
        with self._lock:
            return self._phase is Phase.IDLE

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------

    def open(self, page: int = 1, category: Optional[str] = ALL, search: Optional[str] = "") -> CatalogSnapshot:
        """Seed the whole intent at once (e.g. from URL query args) and fetch."""
        return self._fetch(QueryIntent(
            page=max(1, page),
            category=self._require_category(category),
            search=(search or "").strip(),
        ))

    def set_category(self, category: Optional[str]) -> CatalogSnapshot:
        return self._fetch(QueryIntent(page=1, category=self._require_category(category), search=""))

    def set_page(self, page: int) -> CatalogSnapshot:
        page = max(1, page)
        with self._lock:
            if self._total_pages is not None:
                page = min(page, self._total_pages)
            intent = replace(self._intent, page=page)
        return self._fetch(intent)

    def submit_search(self, query: Optional[str]) -> CatalogSnapshot:
        # Blank input drops back to the category listing
        with self._lock:
            intent = replace(self._intent, page=1, search=(query or "").strip())
        return self._fetch(intent)

    def clear_filters(self) -> CatalogSnapshot:
        return self._fetch(QueryIntent())

    def set_view_mode(self, mode: str) -> CatalogSnapshot:
        mode = (mode or "").strip().lower()
        if mode not in VIEW_MODES:
            raise InvalidIntent(f"Unknown view mode: {mode!r}")
        with self._lock:
            self._view_mode = mode
        return self.snapshot()

    def reload(self) -> CatalogSnapshot:
        """Re-issue the fetch for the current intent (also the retry action)."""
        with self._lock:
            intent = self._intent
        return self._fetch(intent)

    def snapshot(self) -> CatalogSnapshot:
        with self._lock:
            return CatalogSnapshot(
                intent=self._intent,
                products=tuple(self._products),
                total=self._total,
                total_pages=self._total_pages or 1,
                phase=self._phase,
                loading=self._loading,
                searching=self._searching,
                error=self._error,
                connection=self._context.connection,
                view_mode=self._view_mode,
                page_size=self._page_size,
            )

    # ------------------------------------------------------------------
    # Fetch lifecycle
    # ------------------------------------------------------------------

    def _fetch(self, intent: QueryIntent) -> CatalogSnapshot:
        if intent.is_search:
            self._run_search(replace(intent, page=1))
        else:
            self._run_listing(intent)
        return self.snapshot()

    def _run_listing(self, intent: QueryIntent, after: Optional[int] = None) -> None:
        ticket = self._begin(intent, searching=False, after=after)
        if ticket is None:
            return
        logger.info("Loading products page=%s category=%s", intent.page, intent.category)
        try:
            result = self._client.get_products(
                intent.page, self._page_size, None, category_filter(intent.category)
            )
        except CommerceError as exc:
            self._fail(ticket, exc, LIST_FAILED)
            return
        finally:
            self._end(ticket)

        total_pages = max(1, result.pagination.total_pages)
        with self._lock:
            if not self._is_current(ticket):
                logger.debug("Discarding stale listing response (ticket %s < %s)", ticket, self._generation)
                return
            clamp = intent.page > total_pages and after is None
            if not clamp:
                self._succeed(list(result.data), result.pagination.total, total_pages)

        if clamp:
            # Catalog shrank under us; show the last page that exists.
            self._run_listing(replace(intent, page=total_pages), after=ticket)
            return
        logger.info("Loaded %s products (page %s of %s)", len(result.data), intent.page, total_pages)

    def _run_search(self, intent: QueryIntent) -> None:
        ticket = self._begin(intent, searching=True)
        logger.info("Searching products for %r", intent.search)
        try:
            results = self._client.search_products(intent.search, self._search_limit)
        except CommerceError as exc:
            self._fail(ticket, exc, SEARCH_FAILED)
            return
        finally:
            self._end(ticket)

        results = list(results)[: self._search_limit]
        with self._lock:
            if not self._is_current(ticket):
                logger.debug("Discarding stale search response (ticket %s < %s)", ticket, self._generation)
                return
            self._succeed(results, len(results), 1)
        logger.info("Found %s search results", len(results))

    def _begin(self, intent: QueryIntent, searching: bool, after: Optional[int] = None) -> Optional[int]:
        """Commit the intent and issue its ticket; None if `after` was superseded."""
        with self._lock:
            if after is not None and not self._is_current(after):
                return None
            self._generation += 1
            self._intent = intent
            self._phase = Phase.LOADING
            self._loading = not searching
            self._searching = searching
            self._error = None
            return self._generation

    def _end(self, ticket: int) -> None:
        with self._lock:
            if self._is_current(ticket):
                self._loading = False
                self._searching = False

    # Callers hold self._lock for the two methods below.

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._generation

    def _succeed(self, products: List[Product], total: int, total_pages: int) -> None:
        self._products = products
        self._total = total
        self._total_pages = total_pages
        self._phase = Phase.LOADED
        self._error = None
        self._context.record_success(self._client.get_connection_status())

    def _fail(self, ticket: int, exc: CommerceError, fallback: str) -> None:
        with self._lock:
            if not self._is_current(ticket):
                logger.debug("Ignoring failure of stale request (ticket %s): %s", ticket, exc)
                return
            message = exc.message or fallback
            self._products = []
            self._total = 0
            self._phase = Phase.ERROR
            self._error = message
            self._context.record_failure()
            self._context.notify(message, level="error")
        logger.warning("Catalog fetch failed: %s", message)

    @staticmethod
    def _require_category(raw: Optional[str]) -> str:
        category = normalize_category(raw)
        if category is None:
            raise InvalidIntent(f"Unknown category: {raw!r}")
        return category
