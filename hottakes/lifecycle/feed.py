"""Feed helpers: category listing and search filtering."""

from __future__ import annotations

from collections.abc import Iterable

from hottakes.common.schemas import Prediction

ALL_CATEGORIES = "All"
BASE_CATEGORIES: tuple[str, ...] = ("Sports", "Tech", "Pop Culture", "World", "Finance", "Science")


def list_categories(predictions: Iterable[Prediction]) -> list[str]:
    """Base categories first, then any other category in use, in first-seen order."""
    categories = list(BASE_CATEGORIES)
    for prediction in predictions:
        if prediction.category not in categories:
            categories.append(prediction.category)
    return categories


def filter_predictions(
    predictions: Iterable[Prediction],
    category: str | None = None,
    search: str | None = None,
) -> list[Prediction]:
    """Filter by exact category and case-insensitive text search.

    ``None`` or ``"All"`` disables the category filter; an empty search
    matches everything. Search looks at title and description.
    """
    needle = (search or "").strip().lower()
    result = []
    for prediction in predictions:
        if category and category != ALL_CATEGORIES and prediction.category != category:
            continue
        if needle and needle not in f"{prediction.title} {prediction.description}".lower():
            continue
        result.append(prediction)
    return result
