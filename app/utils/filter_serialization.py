"""
app/utils/filter_serialization.py

Round-trips a filter state through one JSON-encoded query parameter, so a
dashboard view can be shared as a URL.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence
from urllib.parse import parse_qs, quote

FILTERS_QUERY_KEY = "filters"


def encode_filters_to_query(filters: Mapping[str, Sequence[Any]]) -> str:
    """
    Return ``filters=<urlencoded JSON>`` for *filters*.
    """

    payload = {key: list(values) for key, values in filters.items()}
    encoded = quote(json.dumps(payload, ensure_ascii=False, sort_keys=True), safe="")
    return f"{FILTERS_QUERY_KEY}={encoded}"


def decode_filters_from_query(query: str) -> dict[str, list[Any]] | None:
    """
    Parse a query string produced by :func:`encode_filters_to_query`.

    Returns ``None`` when the parameter is missing or is not a JSON object
    of lists.
    """

    params = parse_qs(query.lstrip("?"))
    values = params.get(FILTERS_QUERY_KEY)
    if not values:
        return None
    try:
        parsed = json.loads(values[0])
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    if not all(isinstance(v, list) for v in parsed.values()):
        return None
    return {str(k): v for k, v in parsed.items()}
