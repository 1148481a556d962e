from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Optional

from flask import Flask, current_app, session

from marinecatalog.modules.catalog.context import CatalogContext
from marinecatalog.modules.catalog.view_model import CatalogViewModel
from marinecatalog.modules.commerce.client import CommerceClient, build_commerce_client

logger = logging.getLogger(__name__)

EXTENSION_KEY = "marinecatalog"
SESSION_KEY = "catalog_id"


class CatalogSessions:
    """One view model per browser session, least recently used evicted first."""

    def __init__(self, client: CommerceClient, page_size: int = 12, search_limit: int = 24, limit: int = 500):
        self.client = client
        self.page_size = page_size
        self.search_limit = search_limit
        self.limit = limit
        self._views: "OrderedDict[str, CatalogViewModel]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._views)

    def get(self, key: str) -> CatalogViewModel:
        with self._lock:
            vm = self._views.get(key)
            if vm is None:
                vm = CatalogViewModel(
                    self.client,
                    CatalogContext(),
                    page_size=self.page_size,
                    search_limit=self.search_limit,
                )
                self._views[key] = vm
                while len(self._views) > self.limit:
                    evicted, _ = self._views.popitem(last=False)
                    logger.debug("Evicted catalog session %s", evicted)
            else:
                self._views.move_to_end(key)
            return vm


def init_catalog(app: Flask, client: Optional[CommerceClient] = None) -> CatalogSessions:
    client = client or build_commerce_client(app.config)
    sessions = CatalogSessions(
        client,
        page_size=app.config["CATALOG_PAGE_SIZE"],
        search_limit=app.config["SEARCH_LIMIT"],
        limit=app.config["CATALOG_SESSION_LIMIT"],
    )
    app.extensions[EXTENSION_KEY] = sessions
    return sessions


def catalog_sessions() -> CatalogSessions:
    return current_app.extensions[EXTENSION_KEY]


def commerce_client() -> CommerceClient:
    return catalog_sessions().client


def current_view_model() -> CatalogViewModel:
    """The view model bound to the caller's browser session."""
    key = session.get(SESSION_KEY)
    if not key:
        key = uuid.uuid4().hex
        session[SESSION_KEY] = key
    return catalog_sessions().get(key)
