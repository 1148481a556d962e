"""Read-only product data handed out by commerce backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ProductImage:
    id: str
    url: str
    alt_text: Optional[str] = None
    is_primary: bool = False


@dataclass(frozen=True)
class ProductVariant:
    id: str
    sku: Optional[str] = None
    inventory_qty: Optional[int] = None


@dataclass(frozen=True)
class Product:
    id: str
    title: str
    manufacturer: str = ""
    category_name: str = ""
    sku: Optional[str] = None
    price: Optional[Decimal] = None
    display_price: Optional[str] = None
    description: Optional[str] = None
    images: Tuple[ProductImage, ...] = ()
    variants: Tuple[ProductVariant, ...] = ()

    @property
    def primary_image(self) -> Optional[ProductImage]:
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def inventory_qty(self) -> Optional[int]:
        counts = [v.inventory_qty for v in self.variants if v.inventory_qty is not None]
        return sum(counts) if counts else None

    def to_dict(self) -> Dict[str, Any]:
        primary = self.primary_image
        return {
            "id": self.id,
            "title": self.title,
            "manufacturer": self.manufacturer,
            "category_name": self.category_name,
            "sku": self.sku,
            "price": str(self.price) if self.price is not None else None,
            "display_price": self.display_price,
            "description": self.description,
            "image_url": primary.url if primary else None,
            "images": [
                {"id": i.id, "url": i.url, "alt_text": i.alt_text, "is_primary": i is primary}
                for i in self.images
            ],
            "variants": [
                {"id": v.id, "sku": v.sku, "inventory_qty": v.inventory_qty} for v in self.variants
            ],
            "inventory_qty": self.inventory_qty,
        }


@dataclass(frozen=True)
class Pagination:
    total: int
    total_pages: int

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "total_pages": self.total_pages}


@dataclass(frozen=True)
class ProductPage:
    data: List[Product] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(total=0, total_pages=1))


@dataclass(frozen=True)
class ConnectionStatus:
    is_connected: bool = False
    using_live_data: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {"is_connected": self.is_connected, "using_live_data": self.using_live_data}


DISCONNECTED = ConnectionStatus(is_connected=False, using_live_data=False)


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for `total` items; never less than 1."""
    if page_size <= 0:
        return 1
    return max(1, -(-total // page_size))
