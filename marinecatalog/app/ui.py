"""Server-rendered catalog pages.

Each POST runs one view-model operation and redirects back to GET /catalog,
which renders the view model's current snapshot without fetching again.
"""

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for

from marinecatalog.modules.catalog.presenters import catalog_page as present_catalog
from marinecatalog.modules.catalog.sessions import current_view_model
from marinecatalog.modules.catalog.view_model import InvalidIntent

ui_bp = Blueprint("ui", __name__)


def _flash_toasts(vm) -> None:
    for toast in vm.context.drain_toasts():
        flash(toast.message, toast.level)


def _back_to_catalog():
    return redirect(url_for("ui.catalog_page"))


def _form_int(name: str):
    raw = (request.form.get(name) or "").strip()
    try:
        return int(raw)
    except ValueError:
        return None


@ui_bp.get("/")
def home():
    return _back_to_catalog()


@ui_bp.get("/catalog")
def catalog_page():
    vm = current_view_model()
    args = request.args

    if any(k in args for k in ("category", "page", "q")):
        # Deep link, e.g. /catalog?category=HINGES from a category tile
        try:
            page = int(args.get("page") or 1)
        except ValueError:
            page = 1
        try:
            snapshot = vm.open(page=page, category=args.get("category"), search=args.get("q"))
        except InvalidIntent as exc:
            flash(str(exc), "error")
            snapshot = vm.open(page=page, search=args.get("q"))
    elif vm.needs_initial_load:
        snapshot = vm.reload()
    else:
        snapshot = vm.snapshot()

    _flash_toasts(vm)
    cfg = current_app.config
    return render_template(
        "pages/catalog.html",
        catalog=present_catalog(snapshot, cfg["CURRENCY_SYMBOL"], cfg["PLACEHOLDER_IMAGE_URL"]),
    )


@ui_bp.post("/catalog/category")
def choose_category():
    vm = current_view_model()
    try:
        vm.set_category(request.form.get("category"))
    except InvalidIntent as exc:
        flash(str(exc), "error")
    return _back_to_catalog()


@ui_bp.post("/catalog/page")
def choose_page():
    vm = current_view_model()
    page = _form_int("page")
    if page is None:
        flash("Page must be a number.", "error")
    else:
        vm.set_page(page)
    return _back_to_catalog()


@ui_bp.post("/catalog/search")
def search():
    vm = current_view_model()
    vm.submit_search(request.form.get("q"))
    return _back_to_catalog()


@ui_bp.post("/catalog/retry")
def retry():
    vm = current_view_model()
    vm.reload()
    return _back_to_catalog()


@ui_bp.post("/catalog/clear")
def clear_filters():
    vm = current_view_model()
    vm.clear_filters()
    return _back_to_catalog()


@ui_bp.post("/catalog/view")
def choose_view_mode():
    vm = current_view_model()
    try:
        vm.set_view_mode(request.form.get("mode") or "")
    except InvalidIntent as exc:
        flash(str(exc), "error")
    return _back_to_catalog()
