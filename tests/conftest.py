import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from marinecatalog.app.cli import demo_rows, seed_catalog
from marinecatalog.app.config import TestConfig
from marinecatalog.app.extensions import db
from marinecatalog.app.factory import create_app
from marinecatalog.modules.catalog.context import CatalogContext
from marinecatalog.modules.catalog.view_model import CatalogViewModel
from fakes import FakeCommerceClient, make_products


@pytest.fixture()
def fake_client():
    # 50 Hardware products -> 5 pages of 12; a handful of Hinges on the side
    return FakeCommerceClient(make_products(50, "Hardware") + make_products(5, "Hinges", start=100))


@pytest.fixture()
def view_model(fake_client):
    return CatalogViewModel(fake_client, CatalogContext(), page_size=12, search_limit=24)


@pytest.fixture()
def app(fake_client):
    app = create_app(TestConfig, commerce_client=fake_client)
    with app.app_context():
        db.create_all()
    yield app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


# app backed by the local catalog tables (no fake client)
@pytest.fixture()
def local_app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        seed_catalog(demo_rows())
        yield app
        db.session.remove()
        db.drop_all()
