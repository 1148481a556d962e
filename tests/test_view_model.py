import threading

import pytest

from marinecatalog.modules.catalog.presenters import pagination_controls
from marinecatalog.modules.catalog.view_model import (
    LIST_FAILED,
    SEARCH_FAILED,
    CatalogViewModel,
    InvalidIntent,
    Phase,
)
from marinecatalog.modules.catalog.context import CatalogContext
from marinecatalog.modules.commerce.categories import ALL
from marinecatalog.modules.commerce.client import CommerceError
from fakes import FakeCommerceClient, failing, make_products


# VM-001: category=Hardware, page=2, page_size=12 -> "Page 2 of 5" with 12 cards
def test_hardware_page_two(view_model, fake_client):
    view_model.set_category("Hardware")
    snap = view_model.set_page(2)

    assert fake_client.calls[-1] == ("get_products", 2, 12, None, "Hardware")
    assert len(snap.products) == 12
    assert snap.total == 50
    assert snap.total_pages == 5
    assert pagination_controls(snap.intent.page, snap.total_pages)["label"] == "Page 2 of 5"


# VM-002: every page is at most page_size long and total is stable
def test_pages_are_bounded_and_total_is_stable(view_model):
    view_model.set_category("Hardware")
    totals = set()
    for page in range(1, 6):
        snap = view_model.set_page(page)
        assert len(snap.products) <= 12
        totals.add(snap.total)
    assert totals == {50}
    assert len(snap.products) == 2  # 50 - 4 * 12


# VM-003: non-empty search resets page and total_pages to 1
def test_search_resets_pagination(view_model, fake_client):
    view_model.set_category("Hardware")
    view_model.set_page(4)

    snap = view_model.submit_search("  cleat 1 ")

    assert fake_client.calls[-1] == ("search_products", "cleat 1", 24)
    assert snap.intent.page == 1
    assert snap.total_pages == 1
    assert snap.intent.search == "cleat 1"
    assert snap.phase is Phase.LOADED


# VM-004: search results are capped even if the backend returns more
def test_search_is_capped(fake_client):
    vm = CatalogViewModel(fake_client, CatalogContext(), page_size=12, search_limit=5)
    snap = vm.submit_search("cleat")
    assert len(snap.products) == 5
    assert snap.total == 5


# VM-005: clearing the search falls back to the selected category at page 1
def test_empty_search_reverts_to_category_listing(view_model, fake_client):
    view_model.set_category("Hinges")
    view_model.submit_search("cleat")

    snap = view_model.submit_search("   ")

    assert fake_client.calls[-1] == ("get_products", 1, 12, None, "Hinges")
    assert snap.intent.search == ""
    assert snap.intent.category == "Hinges"
    assert snap.intent.page == 1
    assert len(snap.products) == 5


# VM-006: picking a category resets the page and drops an active search
def test_category_resets_page_and_search(view_model, fake_client):
    view_model.set_category("Hardware")
    view_model.set_page(3)
    view_model.submit_search("cleat")

    snap = view_model.set_category("Hinges")

    assert fake_client.calls[-1] == ("get_products", 1, 12, None, "Hinges")
    assert snap.intent.page == 1
    assert snap.intent.search == ""
    assert all(p.category_name == "Hinges" for p in snap.products)


def test_all_category_is_unfiltered(view_model, fake_client):
    snap = view_model.set_category("all")
    assert snap.intent.category == ALL
    assert fake_client.calls[-1] == ("get_products", 1, 12, None, None)
    assert snap.total == 55


def test_category_names_are_case_insensitive(view_model, fake_client):
    snap = view_model.set_category("HINGES")
    assert snap.intent.category == "Hinges"
    assert fake_client.calls[-1][-1] == "Hinges"


def test_unknown_category_is_rejected(view_model, fake_client):
    with pytest.raises(InvalidIntent):
        view_model.set_category("Anchors")
    assert fake_client.calls == []


# VM-007: failure empties results, reports an error, disconnects; retry repeats the query
def test_failure_then_retry(view_model, fake_client):
    view_model.set_category("Hardware")
    view_model.set_page(2)
    assert view_model.snapshot().connection.is_connected

    fake_client.fail_with = failing("Store unavailable")
    snap = view_model.set_page(3)
    failed_call = fake_client.calls[-1]

    assert snap.phase is Phase.ERROR
    assert snap.products == ()
    assert snap.error == "Store unavailable"
    assert snap.connection.is_connected is False
    assert snap.connection.using_live_data is False
    toasts = view_model.context.drain_toasts()
    assert [(t.level, t.message) for t in toasts] == [("error", "Store unavailable")]

    fake_client.fail_with = None
    snap = view_model.reload()

    assert fake_client.calls[-1] == failed_call
    assert snap.phase is Phase.LOADED
    assert snap.error is None
    assert len(snap.products) == 12
    assert snap.connection.is_connected is True


def test_generic_messages_when_error_has_none(view_model, fake_client):
    fake_client.fail_with = CommerceError("")
    assert view_model.reload().error == LIST_FAILED
    assert view_model.submit_search("cleat").error == SEARCH_FAILED


def test_search_failure_clears_results(view_model, fake_client):
    view_model.reload()
    fake_client.fail_with = failing("timeout")
    snap = view_model.submit_search("cleat")
    assert snap.products == ()
    assert snap.connection.is_connected is False


def test_unexpected_errors_propagate_and_reset_busy_flags(view_model, fake_client):
    fake_client.fail_with = RuntimeError("bug")
    with pytest.raises(RuntimeError):
        view_model.reload()
    snap = view_model.snapshot()
    assert snap.loading is False
    assert snap.searching is False


# VM-008: set_page clamps into [1, total_pages]
def test_set_page_clamps(view_model, fake_client):
    view_model.set_category("Hardware")

    assert view_model.set_page(99).intent.page == 5
    assert fake_client.calls[-1][1] == 5
    assert view_model.set_page(0).intent.page == 1
    assert fake_client.calls[-1][1] == 1


def test_page_is_clamped_when_catalog_shrinks(view_model, fake_client):
    snap = view_model.open(page=9, category="Hardware")

    assert [c[1] for c in fake_client.calls] == [9, 5]
    assert snap.intent.page == 5
    assert len(snap.products) == 2


def test_open_from_query_args(view_model, fake_client):
    snap = view_model.open(page=2, category="hatch hardware")
    assert snap.intent.category == "Hatch Hardware"
    assert fake_client.calls[-1] == ("get_products", 1, 12, None, "Hatch Hardware")
    # no Hatch Hardware products -> clamped back to page 1 of an empty listing
    assert snap.products == ()
    assert snap.total_pages == 1


def test_clear_filters(view_model, fake_client):
    view_model.set_category("Hinges")
    view_model.submit_search("cleat")

    snap = view_model.clear_filters()

    assert snap.intent.category == ALL
    assert snap.intent.search == ""
    assert fake_client.calls[-1] == ("get_products", 1, 12, None, None)


# VM-009: a response to an older request never overwrites a newer one
def test_stale_listing_response_is_discarded(view_model, fake_client):
    view_model.set_category("Hardware")

    # While page 2 is in flight the user clicks through to page 3, which resolves first.
    fake_client.on_call = lambda: view_model.set_page(3)
    snap = view_model.set_page(2)

    assert snap.intent.page == 3
    assert [p.id for p in snap.products] == [str(i) for i in range(25, 37)]
    assert snap.loading is False


def test_stale_failure_is_ignored(view_model, fake_client):
    def newer_request_wins():
        view_model.set_page(2)
        fake_client.fail_with = failing("late failure")

    view_model.set_category("Hardware")
    fake_client.on_call = newer_request_wins
    snap = view_model.reload()

    assert snap.phase is Phase.LOADED
    assert snap.error is None
    assert snap.intent.page == 2
    assert view_model.context.drain_toasts() == []


def test_concurrent_requests_keep_the_newest_result(view_model, monkeypatch):
    view_model.reload()
    entered, release = threading.Event(), threading.Event()
    succeed = view_model._succeed
    held = []

    # The page-2 request stalls right after winning the freshness check
    def stalled_succeed(*args):
        if not held:
            held.append(True)
            entered.set()
            release.wait(timeout=5)
        succeed(*args)

    monkeypatch.setattr(view_model, "_succeed", stalled_succeed)
    older = threading.Thread(target=view_model.set_page, args=(2,), daemon=True)
    older.start()
    assert entered.wait(timeout=5)

    newer = threading.Thread(target=view_model.set_page, args=(3,), daemon=True)
    newer.start()
    newer.join(timeout=0.2)
    release.set()
    older.join(timeout=5)
    newer.join(timeout=5)

    snap = view_model.snapshot()
    assert snap.intent.page == 3
    assert [p.id for p in snap.products] == [str(i) for i in range(25, 37)]
    assert snap.loading is False


def test_busy_flags_bracket_each_fetch(view_model, fake_client):
    seen = {}
    fake_client.on_call = lambda: seen.update(listing=view_model.snapshot())
    view_model.reload()
    fake_client.on_call = lambda: seen.update(search=view_model.snapshot())
    after = view_model.submit_search("cleat")

    assert seen["listing"].loading is True and seen["listing"].searching is False
    assert seen["listing"].phase is Phase.LOADING
    assert seen["search"].searching is True and seen["search"].loading is False
    assert after.loading is False and after.searching is False


def test_offline_backend_reports_connected_but_not_live():
    vm = CatalogViewModel(FakeCommerceClient(make_products(3), live=False), CatalogContext())
    snap = vm.reload()
    assert snap.connection.is_connected is True
    assert snap.connection.using_live_data is False


def test_view_mode_does_not_fetch(view_model, fake_client):
    assert view_model.set_view_mode("LIST").view_mode == "list"
    assert fake_client.calls == []
    with pytest.raises(InvalidIntent):
        view_model.set_view_mode("table")


def test_initial_state_is_idle(view_model):
    snap = view_model.snapshot()
    assert snap.phase is Phase.IDLE
    assert snap.total_pages == 1
    assert snap.connection.is_connected is False
