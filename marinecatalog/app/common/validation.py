from __future__ import annotations

from typing import Any, Dict, Iterable, Optional
from flask import request

from marinecatalog.app.common.errors import abort_json


def get_json() -> Dict[str, Any]:
    if not request.is_json:
        abort_json(400, "invalid_json", "Request must be application/json")
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        abort_json(400, "invalid_json", "Malformed JSON body")
    return data


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if f not in data]
    if missing:
        abort_json(400, "validation_error", "Missing required fields", {"missing": missing})


def parse_int(raw: Any, name: str, default: Optional[int] = None) -> int:
    """Parse an int from a query arg / form field / JSON value.

    Blank values fall back to `default`; anything non-numeric is a 400.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if default is None:
            abort_json(400, "validation_error", f"{name} is required", {"field": name})
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        abort_json(400, "validation_error", f"{name} must be an integer", {"field": name})
