from __future__ import annotations

from datetime import datetime
from sqlalchemy import Index

from marinecatalog.app.extensions import db


class CatalogProduct(db.Model):
    """Offline copy of a storefront product, served when no live store is configured."""

    __tablename__ = "catalog_products"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    title = db.Column(db.String(255), nullable=False, index=True)
    manufacturer = db.Column(db.String(255), nullable=False, default="")
    category_name = db.Column(db.String(100), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    price_cents = db.Column(db.Integer, nullable=True)
    display_price = db.Column(db.String(50), nullable=True)  # overrides price_cents when set
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    images = db.relationship(
        "CatalogImage",
        backref="product",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="CatalogImage.position",
    )
    variants = db.relationship(
        "CatalogVariant",
        backref="product",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="CatalogVariant.id",
    )


class CatalogImage(db.Model):
    __tablename__ = "catalog_images"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("catalog_products.id"), nullable=False, index=True)
    url = db.Column(db.String(1024), nullable=False)
    alt_text = db.Column(db.String(255), nullable=True)
    position = db.Column(db.Integer, nullable=False, default=1)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)


class CatalogVariant(db.Model):
    __tablename__ = "catalog_variants"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("catalog_products.id"), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=True)
    inventory_qty = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        Index("ix_catalog_variants_product_sku", "product_id", "sku"),
    )
