from __future__ import annotations

from typing import Optional

# Sentinel for "no category filter"
ALL = "ALL"

# Fixed storefront categories; not fetched from the store.
CATEGORIES = (
    "Marine Locks",
    "Hinges",
    "Hardware",
    "Ajar Hooks",
    "Deck Hardware",
    "Hatch Hardware",
    "Fasteners",
)

_BY_KEY = {name.casefold(): name for name in CATEGORIES}


def normalize_category(raw: Optional[str]) -> Optional[str]:
    """Return the canonical category name, ALL for no filter, or None if unknown.

    Accepts any casing ("HATCH HARDWARE", "hatch hardware") since links from
    older storefront pages use upper-case names.
    """
    value = (raw or "").strip()
    if not value or value.casefold() in (ALL.casefold(), "all categories"):
        return ALL
    return _BY_KEY.get(value.casefold())


def category_filter(category: str) -> Optional[str]:
    """Category argument for a commerce backend (None means unfiltered)."""
    return None if category == ALL else category
