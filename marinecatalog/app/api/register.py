from flask import Flask

from marinecatalog.modules.catalog.routes import bp as catalog_bp


def register_api_blueprints(app: Flask) -> None:
    app.register_blueprint(catalog_bp, url_prefix="/api")

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": "Marine Catalog API",
            "version": "0.1.0",
            "endpoints": {
                "catalog": ["/products", "/products/search", "/categories", "/connection"],
                "session": [
                    "/catalog",
                    "/catalog/category",
                    "/catalog/page",
                    "/catalog/search",
                    "/catalog/retry",
                    "/catalog/clear",
                    "/catalog/view",
                ],
            },
        }, 200
