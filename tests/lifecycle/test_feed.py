"""Tests for feed category listing and filtering."""

from __future__ import annotations

from hottakes.lifecycle.feed import BASE_CATEGORIES, filter_predictions, list_categories
from tests.factories import make_prediction


def _feed():
    return [
        make_prediction("p1", title="Lakers win tonight", category="Sports"),
        make_prediction("p2", title="New phone flops", category="Tech", description="Battery woes"),
        make_prediction("p3", title="Cat becomes mayor", category="Local"),
    ]


def test_categories_include_base_then_custom() -> None:
    categories = list_categories(_feed())
    assert categories[: len(BASE_CATEGORIES)] == list(BASE_CATEGORIES)
    assert categories[-1] == "Local"
    assert categories.count("Sports") == 1


def test_filter_all_returns_everything() -> None:
    assert len(filter_predictions(_feed(), category="All")) == 3
    assert len(filter_predictions(_feed())) == 3


def test_filter_by_category() -> None:
    result = filter_predictions(_feed(), category="Tech")
    assert [p.id for p in result] == ["p2"]


def test_search_is_case_insensitive_over_title_and_description() -> None:
    assert [p.id for p in filter_predictions(_feed(), search="LAKERS")] == ["p1"]
    assert [p.id for p in filter_predictions(_feed(), search="battery")] == ["p2"]


def test_category_and_search_combine() -> None:
    assert filter_predictions(_feed(), category="Sports", search="phone") == []
