import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///marinecatalog.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Comma-separated list
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8080"))

    # auto | shopify | local ("auto" picks shopify when credentials are present)
    COMMERCE_BACKEND = os.getenv("COMMERCE_BACKEND", "auto")
    SHOPIFY_STORE_DOMAIN = os.getenv("SHOPIFY_STORE_DOMAIN", "")
    SHOPIFY_ACCESS_TOKEN = os.getenv("SHOPIFY_ACCESS_TOKEN", "")
    SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2024-07")
    SHOPIFY_TIMEOUT = float(os.getenv("SHOPIFY_TIMEOUT", "15"))
    SHOPIFY_MAX_RETRIES = int(os.getenv("SHOPIFY_MAX_RETRIES", "2"))

    # Catalog paging
    CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", "12"))
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "50"))
    SEARCH_LIMIT = int(os.getenv("SEARCH_LIMIT", "24"))

    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")
    PLACEHOLDER_IMAGE_URL = os.getenv(
        "PLACEHOLDER_IMAGE_URL", "https://via.placeholder.com/400x300?text=No+Image"
    )

    # Max browser sessions that keep a live catalog view in memory
    CATALOG_SESSION_LIMIT = int(os.getenv("CATALOG_SESSION_LIMIT", "500"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    COMMERCE_BACKEND = "local"
    SHOPIFY_STORE_DOMAIN = ""
    SHOPIFY_ACCESS_TOKEN = ""
    CATALOG_SESSION_LIMIT = 8
