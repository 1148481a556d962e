from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from marinecatalog.app.models import CatalogProduct
from marinecatalog.modules.commerce.client import CommerceClient, CommerceError
from marinecatalog.modules.commerce.types import (
    ConnectionStatus,
    Pagination,
    Product,
    ProductImage,
    ProductPage,
    ProductVariant,
    page_count,
)

logger = logging.getLogger(__name__)


class LocalCatalogClient(CommerceClient):
    """Serves the catalog tables seeded by `flask seed`.

    Needs an app context (Flask-SQLAlchemy session). Never reports live data.
    """

    def __init__(self):
        self._status = ConnectionStatus(is_connected=False, using_live_data=False)

    def get_products(
        self,
        page: int,
        page_size: int,
        search_term: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ProductPage:
        page = max(1, page)
        page_size = max(1, page_size)

        q = self._base_query(search_term)
        if category:
            q = q.filter(func.lower(CatalogProduct.category_name) == category.lower())

        try:
            total = q.count()
            rows = (
                q.order_by(CatalogProduct.id.asc())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
        except SQLAlchemyError as exc:
            self._status = ConnectionStatus(is_connected=False, using_live_data=False)
            logger.exception("Local catalog query failed")
            raise CommerceError("Failed to load products. Please try again.") from exc

        self._status = ConnectionStatus(is_connected=True, using_live_data=False)
        return ProductPage(
            data=[_to_product(r) for r in rows],
            pagination=Pagination(total=total, total_pages=page_count(total, page_size)),
        )

    def search_products(self, query: str, limit: int) -> List[Product]:
        try:
            rows = (
                self._base_query(query)
                .order_by(CatalogProduct.id.asc())
                .limit(max(1, limit))
                .all()
            )
        except SQLAlchemyError as exc:
            self._status = ConnectionStatus(is_connected=False, using_live_data=False)
            logger.exception("Local catalog search failed")
            raise CommerceError("Search failed. Please try again.") from exc

        self._status = ConnectionStatus(is_connected=True, using_live_data=False)
        return [_to_product(r) for r in rows]

    def get_connection_status(self) -> ConnectionStatus:
        return self._status

    @staticmethod
    def _base_query(search_term: Optional[str]):
        q = CatalogProduct.query.filter_by(is_active=True)
        term = (search_term or "").strip()
        if term:
            like = f"%{term}%"
            q = q.filter(
                or_(
                    CatalogProduct.title.ilike(like),
                    CatalogProduct.sku.ilike(like),
                    CatalogProduct.manufacturer.ilike(like),
                    CatalogProduct.description.ilike(like),
                )
            )
        return q


def _to_product(row: CatalogProduct) -> Product:
    images = row.images or []
    has_primary = any(i.is_primary for i in images)
    return Product(
        id=str(row.id),
        title=row.title,
        manufacturer=row.manufacturer or "",
        category_name=row.category_name,
        sku=row.sku,
        price=(Decimal(row.price_cents) / 100) if row.price_cents is not None else None,
        display_price=row.display_price,
        description=row.description,
        images=tuple(
            ProductImage(
                id=str(i.id),
                url=i.url,
                alt_text=i.alt_text,
                is_primary=i.is_primary if has_primary else idx == 0,
            )
            for idx, i in enumerate(images)
        ),
        variants=tuple(
            ProductVariant(id=str(v.id), sku=v.sku, inventory_qty=v.inventory_qty) for v in row.variants or []
        ),
    )
