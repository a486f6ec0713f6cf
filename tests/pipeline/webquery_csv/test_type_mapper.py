"""Unit tests for the WebQuery column class to warehouse type mapping."""

import pytest

from src.pipeline.webquery_csv import type_mapper as tm


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("date", "DATE"),
        ("text", "STRING"),
        ("integral", "INTEGER"),
        ("decimal", "FLOAT"),
        ("percent", "FLOAT"),
    ],
)
def test_known_tokens_map_to_destination_types(token: str, expected: str) -> None:
    assert tm.map_webquery_type(token) == expected


@pytest.mark.parametrize("token", [None, "", "Integral", " integral", "currency"])
def test_unknown_or_missing_tokens_fall_back_to_default(token) -> None:
    """Lookups are exact-match; anything else yields the default type."""
    assert tm.map_webquery_type(token) == tm.DEFAULT_TYPE == "STRING"


def test_type_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        tm.WEBQUERY_TYPE_MAP["money"] = "NUMERIC"  # type: ignore[index]
    assert "money" not in tm.WEBQUERY_TYPE_MAP
