from __future__ import annotations

import pytest

from app.utils.filter_serialization import (
    FILTERS_QUERY_KEY,
    decode_filters_from_query,
    encode_filters_to_query,
)
from app.utils.formatters import MISSING, format_metric, format_rate, format_whole


class TestFormatters:
    @pytest.mark.parametrize(
        "value, expected",
        [(None, MISSING), (0, "0"), (1234.5, "1,235"), (-9876543.2, "-9,876,543")],
    )
    def test_format_whole(self, value, expected: str) -> None:
        assert format_whole(value) == expected

    @pytest.mark.parametrize(
        "value, digits, expected",
        [(None, 1, MISSING), (0.1234, 1, "12.3%"), (0.5, 0, "50%"), (-0.05, 1, "-5.0%"), (0.125, 0, "13%")],
    )
    def test_format_rate(self, value, digits: int, expected: str) -> None:
        assert format_rate(value, digits) == expected

    def test_format_metric_by_unit(self) -> None:
        assert format_metric(0.2, "ratio") == "20.0%"
        assert format_metric(1234.0, "count") == "1,234"
        assert format_metric(98765.4321, "currency") == "98,765"
        assert format_metric(None, "10k_currency") == MISSING

    def test_non_finite_values_render_as_missing(self) -> None:
        assert format_whole(float("inf")) == MISSING
        assert format_rate(float("nan")) == MISSING
        assert format_rate(1e307) == MISSING
        assert format_whole(1e60) == f"{int(1e60):,}"


class TestFilterSerialization:
    def test_round_trip(self) -> None:
        filters = {"third_level_organization": ["天府", "高新"], "week_number": [10]}
        query = encode_filters_to_query(filters)

        assert query.startswith(f"{FILTERS_QUERY_KEY}=")
        assert "天府" not in query
        assert decode_filters_from_query(query) == filters
        assert decode_filters_from_query(f"?{query}") == filters

    def test_decode_ignores_other_parameters(self) -> None:
        query = "page=2&" + encode_filters_to_query({"insurance_type": ["商业险"]})
        assert decode_filters_from_query(query) == {"insurance_type": ["商业险"]}

    @pytest.mark.parametrize(
        "query",
        ["", "page=2", "filters=not-json", "filters=%5B1%2C2%5D", "filters=%7B%22a%22%3A1%7D"],
    )
    def test_invalid_payloads_decode_to_none(self, query: str) -> None:
        assert decode_filters_from_query(query) is None
