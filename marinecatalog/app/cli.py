from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional

import click
from flask import Blueprint

from marinecatalog.app.extensions import db
from marinecatalog.app.models import CatalogImage, CatalogProduct, CatalogVariant
from marinecatalog.modules.commerce.categories import ALL, normalize_category

logger = logging.getLogger(__name__)

cli_bp = Blueprint("cli", __name__, cli_group=None)

# (title, manufacturer, category, price_cents)
DEMO_PRODUCTS = [
    ("Flush Pull Latch, Locking", "Southco", "Marine Locks", 4850),
    ("Cam Action Compression Latch", "Southco", "Marine Locks", 6275),
    ("Keyed Slam Latch", "Perko", "Marine Locks", 3999),
    ("Stainless Padlock Hasp", "Whitecap", "Marine Locks", 1899),
    ("Concealed Cabinet Hinge", "Sugatsune", "Hinges", 1450),
    ("Heavy Duty Strap Hinge", "Whitecap", "Hinges", 2325),
    ("Flush Mount Hatch Hinge", "Perko", "Hinges", 1275),
    ("Continuous Piano Hinge 72in", "Sea-Dog", "Hinges", 5699),
    ("Lift-Off Hinge Pair", "Sea-Dog", "Hinges", 1099),
    ("Cast Stainless Cleat 6in", "Sea-Dog", "Hardware", 2150),
    ("Rod Holder Insert", "Taco Marine", "Hardware", 899),
    ("Folding Pad Eye", "Whitecap", "Hardware", 1649),
    ("Drawer Pull, Polished", "Sugatsune", "Hardware", 1125),
    ("Door Holder Ajar Hook", "Whitecap", "Ajar Hooks", 1399),
    ("Spring-Loaded Ajar Hook", "Sea-Dog", "Ajar Hooks", 1575),
    ("Bow Chock, Angled", "Perko", "Deck Hardware", 3450),
    ("Deck Fill Plate, Fuel", "Perko", "Deck Hardware", 2799),
    ("Pop-Up Cleat 4.5in", "Sea-Dog", "Deck Hardware", 4199),
    ("Stern Light Base", "Attwood", "Deck Hardware", 2349),
    ("Lift Handle, Flush Ring", "Southco", "Hatch Hardware", 2899),
    ("Hatch Adjuster Arm", "Whitecap", "Hatch Hardware", 3325),
    ("Gas Spring Lift Support", "Sea-Dog", "Hatch Hardware", 2675),
    ("Hatch Gasket Seal 10ft", "Attwood", "Hatch Hardware", 1950),
    ("Machine Screw Assortment 316", "Seachoice", "Fasteners", 1499),
    ("Nylon Insert Lock Nut 1/4in", "Seachoice", "Fasteners", 649),
    ("Fender Washer Pack", "Seachoice", "Fasteners", 549),
    ("Self-Tapping Screw Box", "Seachoice", "Fasteners", 899),
]


def parse_price_cents(raw: Optional[str]) -> Optional[int]:
    raw = (raw or "").strip().lstrip("$").replace(",", "")
    if not raw:
        return None
    if "." in raw:
        return int(round(float(raw) * 100))
    return int(raw)


def slug_sku(name: str, used: set[str]) -> str:
    base = re.sub(r"[^A-Za-z0-9]+", "", (name or "").upper())[:10] or "ITEM"
    sku = f"MH-{base}"
    i = 2
    while sku in used:
        sku = f"MH-{base}-{i}"
        i += 1
    used.add(sku)
    return sku


def seed_catalog(rows: Iterable[Dict[str, str]]) -> int:
    """Insert catalog rows (CSV-style dicts) and return how many were added."""
    used_skus = {s for (s,) in db.session.query(CatalogProduct.sku) if s}
    added = 0
    for row in rows:
        title = (row.get("Title") or "").strip()
        if not title:
            continue

        # Unknown categories are kept verbatim; they just never match a filter.
        raw_category = (row.get("Category") or "").strip()
        category = normalize_category(raw_category)
        if category in (None, ALL):
            category = raw_category or "Hardware"

        sku = (row.get("SKU") or "").strip()
        if sku in used_skus:
            logger.warning("Duplicate SKU %s for %r; generating a new one", sku, title)
            sku = ""
        sku = sku or slug_sku(title, used_skus)
        used_skus.add(sku)
        product = CatalogProduct(
            sku=sku,
            title=title,
            manufacturer=(row.get("Manufacturer") or "").strip(),
            category_name=category,
            description=(row.get("Description") or "").strip() or None,
            price_cents=parse_price_cents(row.get("Price")),
            display_price=(row.get("DisplayPrice") or "").strip() or None,
        )

        image_url = (row.get("Image_URL") or "").strip()
        if image_url.startswith(("http://", "https://", "/static/")):
            product.images.append(CatalogImage(url=image_url, alt_text=title, position=1, is_primary=True))

        inventory = (row.get("Inventory") or "").strip()
        product.variants.append(CatalogVariant(sku=sku, inventory_qty=int(inventory) if inventory.isdigit() else None))

        db.session.add(product)
        added += 1

    db.session.commit()
    return added


def demo_rows():
    for title, manufacturer, category, price_cents in DEMO_PRODUCTS:
        yield {
            "Title": title,
            "Manufacturer": manufacturer,
            "Category": category,
            "Price": f"{price_cents / 100:.2f}",
            "Inventory": "25",
        }


@cli_bp.cli.command("init-db")
def init_db_cmd() -> None:
    """Create tables."""
    db.create_all()
    print("DB initialized (tables created).")


@cli_bp.cli.command("seed")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="CSV with Title, Manufacturer, Category, SKU, Price, Description, Image_URL, Inventory.")
def seed_cmd(csv_path: Optional[Path]) -> None:
    """Seed the local catalog (CSV if given, otherwise demo marine hardware).

    Safe to run multiple times; it will no-op if products exist.
    """
    db.create_all()

    if CatalogProduct.query.count() > 0:
        print("Catalog already has products. Drop the database to reseed.")
        return

    if csv_path is not None:
        if not csv_path.exists():
            raise click.ClickException(f"CSV not found: {csv_path}")
        print(f"Seeding from CSV: {csv_path}")
        with open(csv_path, newline="", encoding="utf-8-sig") as f:
            added = seed_catalog(csv.DictReader(f))
    else:
        print("No CSV given, seeding demo marine hardware.")
        added = seed_catalog(demo_rows())

    print(f"Seeded {added} products.")
