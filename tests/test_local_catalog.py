from decimal import Decimal

from marinecatalog.app.cli import DEMO_PRODUCTS, parse_price_cents, seed_catalog
from marinecatalog.app.models import CatalogProduct
from marinecatalog.modules.commerce.local import LocalCatalogClient


def test_lists_by_category_with_totals(local_app):
    client = LocalCatalogClient()
    page = client.get_products(1, 2, None, "Hinges")

    hinges = [p for p in DEMO_PRODUCTS if p[2] == "Hinges"]
    assert page.pagination.total == len(hinges)
    assert page.pagination.total_pages == 3
    assert len(page.data) == 2
    assert all(p.category_name == "Hinges" for p in page.data)

    last = client.get_products(3, 2, None, "hinges")
    assert len(last.data) == 1
    assert last.pagination.total == len(hinges)


def test_unfiltered_listing_pages_through_everything(local_app):
    client = LocalCatalogClient()
    seen = []
    for page in range(1, 4):
        result = client.get_products(page, 12)
        assert result.pagination.total == len(DEMO_PRODUCTS)
        seen += [p.id for p in result.data]
    assert len(seen) == len(set(seen)) == len(DEMO_PRODUCTS)


def test_product_mapping(local_app):
    product = LocalCatalogClient().search_products("Keyed Slam", 24)[0]
    assert product.manufacturer == "Perko"
    assert product.price == Decimal("39.99")
    assert product.sku.startswith("MH-")
    assert product.inventory_qty == 25
    assert product.primary_image is None


def test_search_matches_title_sku_and_manufacturer(local_app):
    client = LocalCatalogClient()
    assert {p.manufacturer for p in client.search_products("southco", 24)} == {"Southco"}
    assert len(client.search_products("hinge", 2)) == 2
    assert client.search_products("anchor windlass", 24) == []


def test_reports_offline_data(local_app):
    client = LocalCatalogClient()
    assert client.get_connection_status().is_connected is False
    client.get_products(1, 12)
    status = client.get_connection_status()
    assert status.is_connected is True
    assert status.using_live_data is False


def test_seed_rows_with_images_and_display_price(local_app):
    added = seed_catalog([
        {"Title": "Hatch Lift Ring", "Category": "HATCH HARDWARE", "SKU": "HL-1",
         "DisplayPrice": "Call for price", "Image_URL": "https://cdn.example.com/ring.jpg"},
        {"Title": "", "Category": "Hinges"},
    ])
    assert added == 1
    row = CatalogProduct.query.filter_by(sku="HL-1").one()
    assert row.category_name == "Hatch Hardware"

    product = LocalCatalogClient().search_products("HL-1", 5)[0]
    assert product.display_price == "Call for price"
    assert product.price is None
    assert product.primary_image.url == "https://cdn.example.com/ring.jpg"


def test_seed_repeated_sku_gets_a_generated_one(local_app):
    added = seed_catalog([
        {"Title": "Mooring Cleat", "Category": "Deck Hardware", "SKU": "MC-7", "Price": "19.99"},
        {"Title": "Mooring Cleat Large", "Category": "Deck Hardware", "SKU": "MC-7", "Price": "24.99"},
    ])
    assert added == 2

    first = CatalogProduct.query.filter_by(sku="MC-7").one()
    assert first.title == "Mooring Cleat"
    second = CatalogProduct.query.filter_by(title="Mooring Cleat Large").one()
    assert second.sku.startswith("MH-MOORINGCLE")
    assert second.variants[0].sku == second.sku


def test_parse_price_cents():
    assert parse_price_cents("$1,234.50") == 123450
    assert parse_price_cents("1299") == 1299
    assert parse_price_cents("") is None


def test_seed_command_is_idempotent(local_app):
    runner = local_app.test_cli_runner()
    result = runner.invoke(args=["seed"])
    assert result.exit_code == 0
    assert "already has products" in result.output
    assert CatalogProduct.query.count() == len(DEMO_PRODUCTS)
